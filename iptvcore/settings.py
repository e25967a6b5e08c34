#!/usr/bin/env python3
"""
Runtime settings built from the YAML config mapping

The keyword tables are frozen here, once, at process start. Nothing
downstream mutates them.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from iptvcore.constants import (
    DEFAULT_CATEGORY_PATTERNS, TITLE_CLEANUP_PATTERNS,
    TMDB_DEFAULT_LANGUAGE, TMDB_FALLBACK_LANGUAGE,
)
from iptvcore.patterns import LocaleKeywordSet, PatternRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomCategory:
    """User-defined category: an id plus the keywords that select it"""
    id: str
    keywords: Tuple[str, ...]
    use_tmdb: bool = True


@dataclass(frozen=True)
class Settings:
    server: str = ''
    username: str = ''
    password: str = ''
    tmdb_api_key: Optional[str] = None
    tmdb_language: str = TMDB_DEFAULT_LANGUAGE
    tmdb_fallback_language: str = TMDB_FALLBACK_LANGUAGE
    max_attempts: int = 3
    retry_base_delay: float = 1.0
    request_timeout: float = 10.0
    catchup_format: int = 0
    category_patterns: Mapping[str, Any] = field(default_factory=dict)
    custom_categories: Tuple[CustomCategory, ...] = ()
    hidden_categories: Tuple[str, ...] = ()

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, Any]]) -> 'Settings':
        """Build settings from a loaded config mapping; unknown keys are ignored"""
        config = config or {}

        custom: List[CustomCategory] = []
        for entry in config.get('custom_categories') or []:
            cat_id = str(entry.get('id', '')).strip()
            keywords = tuple(str(kw) for kw in entry.get('keywords') or [] if str(kw).strip())
            if not cat_id:
                logger.warning(f"Skipping custom category without id: {entry}")
                continue
            custom.append(CustomCategory(id=cat_id, keywords=keywords,
                                         use_tmdb=bool(entry.get('use_tmdb', True))))

        return cls(
            server=str(config.get('server', '')),
            username=str(config.get('username', '')),
            password=str(config.get('password', '')),
            tmdb_api_key=config.get('tmdb_api_key') or None,
            tmdb_language=config.get('tmdb_language') or TMDB_DEFAULT_LANGUAGE,
            tmdb_fallback_language=config.get('tmdb_fallback_language') or TMDB_FALLBACK_LANGUAGE,
            max_attempts=int(config.get('max_attempts', 3)),
            retry_base_delay=float(config.get('retry_base_delay', 1.0)),
            request_timeout=float(config.get('request_timeout', 10.0)),
            catchup_format=int(config.get('catchup_format', 0)),
            category_patterns=config.get('category_patterns') or {},
            custom_categories=tuple(custom),
            hidden_categories=tuple(config.get('hidden_categories') or ()),
        )


def build_registry(settings: Optional[Settings] = None) -> PatternRegistry:
    """Freeze the default tables (plus any configured overrides) into a PatternRegistry"""
    category_table = LocaleKeywordSet(DEFAULT_CATEGORY_PATTERNS)
    if settings is not None and settings.category_patterns:
        category_table = category_table.merged(settings.category_patterns)
        logger.info(f"Category patterns overridden for: {', '.join(settings.category_patterns)}")

    cleanup_table = LocaleKeywordSet.from_key_first(TITLE_CLEANUP_PATTERNS)
    return PatternRegistry(category_table, cleanup_table)


def default_registry() -> PatternRegistry:
    return build_registry(None)


def describe(settings: Settings) -> Dict[str, Any]:
    """Loggable summary with credentials masked"""
    return {
        'server': settings.server,
        'username': settings.username,
        'password': '***' if settings.password else '',
        'tmdb': 'enabled' if settings.tmdb_api_key else 'disabled',
        'tmdb_language': settings.tmdb_language,
        'max_attempts': settings.max_attempts,
        'retry_base_delay': settings.retry_base_delay,
        'custom_categories': [c.id for c in settings.custom_categories],
        'hidden_categories': list(settings.hidden_categories),
    }
