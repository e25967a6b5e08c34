#!/usr/bin/env python3
"""
Provider catalog client with a session-scoped cache

All catalog actions go through {server}/player_api.php with the account
credentials as query parameters, via RetryingTransport.

Cache policy:
  - keyed by (resource kind, category id or '_all')
  - once stored, a payload is served for the rest of the process, empty
    payloads included; nothing is ever invalidated
  - no single-flight: two callers asking for the same missing key before
    the first returns both hit the network, and the last write wins
Per-item lookups (series info, VOD info, EPG) are never cached.
"""

import time
import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

from iptvcore.constants import PRELOAD_STEPS
from iptvcore.errors import AuthenticationError
from iptvcore.transport import RetryingTransport

logger = logging.getLogger(__name__)

ALL = '_all'

CatalogKey = Tuple[str, str]
ProgressCallback = Callable[[int, int, Optional[str]], None]


@dataclass(frozen=True)
class PreloadProgress:
    """One cooperative yield point of the preload sequence"""
    step: int
    total: int
    label: str
    done: bool  # False: about to fetch; True: fetch finished


@dataclass(frozen=True)
class PreloadResult:
    """Outcome of preload_cache(): ok is False when a step raised"""
    ok: bool
    completed: int
    total: int
    error: Optional[BaseException] = None


class ProviderClient:
    """Interface to an IPTV provider's player API with an in-memory cache"""

    def __init__(self, server: str, username: str, password: str,
                 transport: Optional[RetryingTransport] = None,
                 clock: Callable[[], float] = time.time):
        self.server = server.rstrip('/')
        self.username = username
        self.password = password
        self.transport = transport or RetryingTransport()
        self.clock = clock

        self.auth_data: Optional[Dict[str, Any]] = None
        self.server_time_offset = 0

        self.cache: Dict[CatalogKey, Any] = {}
        self.cache_hits = 0
        self.cache_misses = 0

    @property
    def api_url(self) -> str:
        return f"{self.server}/player_api.php"

    def _params(self, action: Optional[str] = None, **extra) -> Dict[str, Any]:
        params: Dict[str, Any] = {'username': self.username, 'password': self.password}
        if action:
            params['action'] = action
        params.update({k: v for k, v in extra.items() if v is not None})
        return params

    def request(self, action: Optional[str] = None, **extra) -> Any:
        """Uncached call of one player_api action; returns the decoded JSON payload"""
        return self.transport.request(self.api_url, self._params(action, **extra))

    # ── authentication ──────────────────────────────────────────────────────

    def authenticate(self) -> Dict[str, Any]:
        """
        Exchange credentials for the account/server info.

        Also computes the server clock offset (server timestamp minus local
        timestamp, seconds) used for EPG and catchup time math.

        Raises:
            AuthenticationError: response has no user_info
            FatalResponseError / TransientNetworkError: from the transport
        """
        try:
            data = self.request()
        except Exception as e:
            logger.error(f"Authentication request failed: {e}")
            raise

        if not isinstance(data, dict) or not data.get('user_info'):
            logger.error("Authentication failed: response has no user_info")
            raise AuthenticationError('Invalid credentials: response has no user_info')

        self.auth_data = data
        server_info = data.get('server_info') or {}
        server_now = server_info.get('timestamp_now')
        if server_now:
            local_now = int(self.clock())
            self.server_time_offset = int(server_now) - local_now
            logger.info(
                f"Server time offset: {self.server_time_offset}s "
                f"(server={server_now} local={local_now})"
            )
        else:
            self.server_time_offset = 0
        return data

    def server_time(self) -> int:
        """Current Unix time on the provider's clock"""
        return int(self.clock()) + self.server_time_offset

    # ── cached catalog ──────────────────────────────────────────────────────

    def _cached(self, kind: str, action: str, category_id: Optional[str] = None) -> Any:
        key = (kind, str(category_id) if category_id else ALL)
        if key in self.cache:
            self.cache_hits += 1
            logger.debug(f"CACHE hit {kind}[{key[1]}]")
            return self.cache[key]

        self.cache_misses += 1
        payload = self.request(action, category_id=category_id or None)
        self.cache[key] = payload
        return payload

    def get_live_categories(self) -> Any:
        return self._cached('live_categories', 'get_live_categories')

    def get_live_streams(self, category_id: Optional[str] = None) -> Any:
        return self._cached('live_streams', 'get_live_streams', category_id)

    def get_vod_categories(self) -> Any:
        return self._cached('vod_categories', 'get_vod_categories')

    def get_vod_streams(self, category_id: Optional[str] = None) -> Any:
        return self._cached('vod_streams', 'get_vod_streams', category_id)

    def get_series_categories(self) -> Any:
        return self._cached('series_categories', 'get_series_categories')

    def get_series(self, category_id: Optional[str] = None) -> Any:
        return self._cached('series', 'get_series', category_id)

    def fetch_resource(self, kind: str, category_id: Optional[str] = None) -> Any:
        """Cached fetch by resource kind name (e.g. 'vod_streams')"""
        fetchers = {
            'live_categories': lambda: self.get_live_categories(),
            'live_streams': lambda: self.get_live_streams(category_id),
            'vod_categories': lambda: self.get_vod_categories(),
            'vod_streams': lambda: self.get_vod_streams(category_id),
            'series_categories': lambda: self.get_series_categories(),
            'series': lambda: self.get_series(category_id),
        }
        if kind not in fetchers:
            raise ValueError(f"Unknown resource kind: {kind}")
        return fetchers[kind]()

    def get_cache_stats(self) -> Dict:
        total = self.cache_hits + self.cache_misses
        hit_rate = (self.cache_hits / total * 100) if total > 0 else 0
        return {
            'hits': self.cache_hits,
            'misses': self.cache_misses,
            'total_queries': total,
            'hit_rate': hit_rate,
            'cache_size': len(self.cache),
        }

    # ── uncached per-item lookups ───────────────────────────────────────────

    def get_series_info(self, series_id) -> Any:
        return self.request('get_series_info', series_id=series_id)

    def get_vod_info(self, vod_id) -> Any:
        return self.request('get_vod_info', vod_id=vod_id)

    def get_epg(self, stream_id) -> Any:
        return self.request('get_simple_data_table', stream_id=stream_id)

    def get_short_epg(self, stream_id, limit: int = 4) -> Any:
        return self.request('get_short_epg', stream_id=stream_id, limit=limit)

    # ── preload ─────────────────────────────────────────────────────────────

    def iter_preload(self) -> Iterator[PreloadProgress]:
        """
        Fetch live, VOD and series catalogs in that order.

        Yields before and after each fetch; the caller regains control at
        every yield. Exceptions from a fetch propagate out of the generator.
        """
        total = len(PRELOAD_STEPS)
        for index, (label, kind) in enumerate(PRELOAD_STEPS, start=1):
            yield PreloadProgress(step=index, total=total, label=label, done=False)
            self.fetch_resource(kind)
            yield PreloadProgress(step=index, total=total, label=label, done=True)

    def preload_cache(self, on_progress: Optional[ProgressCallback] = None) -> PreloadResult:
        """
        Drive iter_preload(), reporting (step, total, label) before each fetch.

        The (0, 0, None) sentinel is sent on success and on failure alike;
        the returned PreloadResult tells them apart.
        """
        logger.info("CACHE preload starting...")
        total = len(PRELOAD_STEPS)
        completed = 0
        try:
            for event in self.iter_preload():
                if event.done:
                    completed = event.step
                elif on_progress:
                    on_progress(event.step, event.total, event.label)
        except Exception as e:
            logger.error(f"CACHE preload failed after {completed}/{total} steps: {e}")
            result = PreloadResult(ok=False, completed=completed, total=total, error=e)
        else:
            logger.info("CACHE preload complete")
            result = PreloadResult(ok=True, completed=completed, total=total)

        if on_progress:
            on_progress(0, 0, None)
        return result

    # ── stream URLs ─────────────────────────────────────────────────────────

    def get_live_stream_url(self, stream_id, extension: str = 'ts') -> str:
        return f"{self.server}/live/{self.username}/{self.password}/{stream_id}.{extension}"

    def get_vod_stream_url(self, stream_id, extension: str = 'mkv') -> str:
        return f"{self.server}/movie/{self.username}/{self.password}/{stream_id}.{extension}"

    def get_series_stream_url(self, stream_id, extension: str = 'mkv') -> str:
        return f"{self.server}/series/{self.username}/{self.password}/{stream_id}.{extension}"

    def get_catchup_url(self, stream_id, start: int, duration: int, extension: str = 'ts',
                        format: int = 0, tz: Optional[tzinfo] = None) -> str:
        """
        Catchup/timeshift URL for a past programme.

        Args:
            stream_id: live stream id
            start: programme start, Unix seconds
            duration: minutes
            format: 0 timeshift.php with YYYY-MM-DD:HH-MM start (also used for unknown codes),
                    1 timeshift path with Unix start,
                    2 live path with utc/lutc range,
                    3 bare path with utc/lutc range
            tz: zone for the formatted start of format 0 (local time when None)
        """
        end = start + duration * 60
        base = self.server
        user, password = self.username, self.password

        if format == 1:
            return f"{base}/timeshift/{user}/{password}/{duration}/{start}/{stream_id}.{extension}"
        if format == 2:
            return f"{base}/live/{user}/{password}/{stream_id}.{extension}?utc={start}&lutc={end}"
        if format == 3:
            return f"{base}/{user}/{password}/{stream_id}?utc={start}&lutc={end}"

        start_formatted = datetime.fromtimestamp(start, tz).strftime('%Y-%m-%d:%H-%M')
        return (
            f"{base}/streaming/timeshift.php?username={user}&password={password}"
            f"&stream={stream_id}&start={start_formatted}&duration={duration}"
        )
