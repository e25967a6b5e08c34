#!/usr/bin/env python3
"""Exceptions raised by the provider and metadata clients"""

from typing import List, Optional


class CatalogError(Exception):
    """Base class for every error raised by iptvcore"""


class TransientNetworkError(CatalogError):
    """Retryable transport fault, or a non-2xx response on a non-final attempt"""


class FatalResponseError(CatalogError):
    """Non-2xx response on the final attempt, or a body that is not valid JSON"""

    def __init__(self, message: str, status_code: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class AuthenticationError(CatalogError):
    """Provider answered the credential exchange without the expected user info"""


class NoMatchFound(CatalogError):
    """Every metadata resolution tier came back empty"""

    def __init__(self, title: str, tiers: Optional[List[str]] = None):
        tiers = tiers or []
        super().__init__(f"No metadata match for '{title}' after tiers: {', '.join(tiers) or 'none'}")
        self.title = title
        self.tiers = tiers
