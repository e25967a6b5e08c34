#!/usr/bin/env python3
"""
TMDb API client

Thin endpoint wrappers only: each method is one retrying request through
RetryingTransport. The fallback chain that decides which endpoint to call
next lives in iptvcore/resolver.py.
"""

import logging
from typing import Any, Dict, List, Optional

from iptvcore.constants import (
    TMDB_BASE_URL, TMDB_DEFAULT_LANGUAGE, TMDB_FALLBACK_LANGUAGE,
)
from iptvcore.transport import RetryingTransport

logger = logging.getLogger(__name__)


class TMDbClient:
    """Interface to The Movie Database API"""

    def __init__(self, api_key: Optional[str], transport: Optional[RetryingTransport] = None,
                 language: str = TMDB_DEFAULT_LANGUAGE,
                 fallback_language: str = TMDB_FALLBACK_LANGUAGE,
                 base_url: str = TMDB_BASE_URL):
        self.api_key = api_key or ''
        self.transport = transport or RetryingTransport()
        self.language = language
        self.fallback_language = fallback_language
        self.base_url = base_url.rstrip('/')

    def is_enabled(self) -> bool:
        return bool(self.api_key)

    def _get(self, path: str, language: Optional[str] = None, **params) -> Any:
        query = {'api_key': self.api_key, 'language': language or self.language}
        query.update({k: v for k, v in params.items() if v is not None})
        return self.transport.request(f"{self.base_url}{path}", query)

    @staticmethod
    def _results(data: Any) -> List[Dict]:
        if isinstance(data, dict):
            return data.get('results') or []
        return []

    # ── lookups ─────────────────────────────────────────────────────────────

    def find_by_external_id(self, external_id: str, source: str = 'imdb_id') -> Dict[str, List[Dict]]:
        """Return {'movie_results': [...], 'tv_results': [...]} for an IMDb-style id"""
        data = self._get(f"/find/{external_id}", external_source=source)
        if not isinstance(data, dict):
            return {'movie_results': [], 'tv_results': []}
        return {
            'movie_results': data.get('movie_results') or [],
            'tv_results': data.get('tv_results') or [],
        }

    def search_movie(self, title: str, year: Optional[int] = None) -> List[Dict]:
        return self._results(self._get('/search/movie', query=title, year=year))

    def search_tv(self, title: str, year: Optional[int] = None) -> List[Dict]:
        return self._results(self._get('/search/tv', query=title, first_air_date_year=year))

    def search_multi(self, title: str) -> List[Dict]:
        return self._results(self._get('/search/multi', query=title))

    # ── details ─────────────────────────────────────────────────────────────

    def get_movie_details(self, movie_id, language: Optional[str] = None,
                          append: str = 'credits,external_ids') -> Dict:
        return self._get(f"/movie/{movie_id}", language=language, append_to_response=append)

    def get_tv_details(self, tv_id, language: Optional[str] = None,
                       append: str = 'credits,external_ids') -> Dict:
        return self._get(f"/tv/{tv_id}", language=language, append_to_response=append)

    def get_details(self, media_type: str, media_id, language: Optional[str] = None,
                    append: str = 'credits,external_ids') -> Dict:
        if media_type == 'tv':
            return self.get_tv_details(media_id, language=language, append=append)
        return self.get_movie_details(media_id, language=language, append=append)

    def get_person_details(self, person_id) -> Dict:
        return self._get(f"/person/{person_id}", append_to_response='combined_credits')
