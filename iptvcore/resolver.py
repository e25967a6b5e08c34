#!/usr/bin/env python3
"""
Tiered TMDb metadata resolution for noisy catalog titles

Tier order (first hit wins, each tier is one retrying TMDb call):
1.  by_tmdb_id           provider already knows the TMDb id: fetch details
2.  by_external_id       /find by IMDb id
3.  search_movie_year    only with a year hint
4.  search_movie
5.  search_tv_year       only with a year hint
6.  search_tv
7.  search_multi         skipped for TV-only requests; a person as the top
                         result ends the chain with no match
8.  search_movie_short  ┐ restart on the shortened title (parenthetical
9.  search_tv_short     │ asides and trailing " - ..." removed, no year),
10. search_multi_short  ┘ only when it differs from the title; runs once
→  not found

Movie tiers are skipped when the caller asks for 'tv' (a series item)
outside the shortened-title restart.

After a hit the full details are fetched in the primary language. When
they lack an overview, the fallback language is fetched and only its
overview is spliced in; identifiers always come from the primary response.

A failing search call is logged and treated as an empty result for that
tier. The resolver caches nothing between calls.
"""

import re
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from iptvcore.constants import MAX_CAST_MEMBERS, TMDB_POSTER_BASE, TMDB_PROFILE_BASE
from iptvcore.errors import CatalogError, NoMatchFound
from iptvcore.normalizer import TitleNormalizer
from iptvcore.tmdb import TMDbClient

logger = logging.getLogger(__name__)

# Fields that must survive the fallback-language overview splice untouched
IDENTIFIER_FIELDS = ('id', 'imdb_id', 'external_ids', 'title', 'name',
                     'original_title', 'original_name')

PARENTHETICAL_RE = re.compile(r'\s*\([^)]*\)\s*')
DASH_SUFFIX_RE = re.compile(r'\s+-\s.*$')


@dataclass(frozen=True)
class Tier:
    """One step of the resolution chain"""
    name: str
    lookup: str              # 'tmdb_id' | 'external_id' | 'movie' | 'tv' | 'multi'
    with_year: bool = False
    shortened: bool = False  # runs on the shortened title, after the first pass


RESOLUTION_TIERS: Tuple[Tier, ...] = (
    Tier('by_tmdb_id', 'tmdb_id'),
    Tier('by_external_id', 'external_id'),
    Tier('search_movie_year', 'movie', with_year=True),
    Tier('search_movie', 'movie'),
    Tier('search_tv_year', 'tv', with_year=True),
    Tier('search_tv', 'tv'),
    Tier('search_multi', 'multi'),
    Tier('search_movie_short', 'movie', shortened=True),
    Tier('search_tv_short', 'tv', shortened=True),
    Tier('search_multi_short', 'multi', shortened=True),
)


@dataclass
class Person:
    id: Optional[int]
    name: str
    character: Optional[str] = None
    photo: Optional[str] = None


@dataclass
class ResolvedMetadata:
    """Display-ready TMDb record for one catalog item"""
    source: str                       # 'movie' | 'tv'
    id: int
    title: str
    year: Optional[int]
    overview: str
    genres: List[str] = field(default_factory=list)
    cast: List[Person] = field(default_factory=list)
    director: Optional[Person] = None  # movies
    creator: Optional[Person] = None   # tv
    external_ids: Dict[str, Any] = field(default_factory=dict)
    poster: Optional[str] = None
    backdrop: Optional[str] = None
    runtime: Optional[int] = None
    vote_average: Optional[float] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class Resolution:
    """Result of one resolve() call: a record, or the not-found terminal"""
    query: str
    metadata: Optional[ResolvedMetadata]
    tiers_tried: List[str]
    matched_tier: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.metadata is not None

    def unwrap(self) -> ResolvedMetadata:
        if self.metadata is None:
            raise NoMatchFound(self.query, self.tiers_tried)
        return self.metadata


@dataclass(frozen=True)
class _Query:
    title: str
    year: Optional[int]
    short_title: Optional[str]
    media_type: str
    external_id: Optional[str]
    tmdb_id: Optional[int]
    skip_multi: bool


def shorten_title(title: str) -> str:
    """
    Drop parenthetical asides and any trailing " - ..." suffix.

    Examples:
        >>> shorten_title('Le Parrain (Version restaurée) - Partie 1')
        'Le Parrain'
    """
    short = PARENTHETICAL_RE.sub(' ', title or '')
    short = DASH_SUFFIX_RE.sub('', short)
    return ' '.join(short.split())


def _year_of(date: Optional[str]) -> Optional[int]:
    if not date:
        return None
    try:
        return int(date[:4])
    except ValueError:
        return None


def _image(base: str, path: Optional[str]) -> Optional[str]:
    return f"{base}{path}" if path else None


def format_runtime(minutes: Optional[int]) -> str:
    """105 → '1h 45min', 45 → '45 min', None/0 → ''"""
    if not minutes:
        return ''
    hours, rest = divmod(int(minutes), 60)
    if hours > 0:
        return f"{hours}h {rest}min"
    return f"{rest} min"


class MetadataResolver:
    """Walk RESOLUTION_TIERS until one yields a TMDb record"""

    def __init__(self, client: TMDbClient, normalizer: Optional[TitleNormalizer] = None,
                 tiers: Tuple[Tier, ...] = RESOLUTION_TIERS):
        self.client = client
        self.normalizer = normalizer or TitleNormalizer()
        self.tiers = tiers

    # ── entry points ────────────────────────────────────────────────────────

    def resolve_title(self, raw_title: str, media_type: str = 'movie',
                      external_id: Optional[str] = None, tmdb_id: Optional[int] = None,
                      skip_multi: bool = False) -> Resolution:
        """Normalize a raw provider title, then resolve it with its year hint"""
        normalized = self.normalizer.normalize(raw_title)
        return self.resolve(
            normalized.canonical_title, normalized.year, media_type=media_type,
            external_id=external_id, tmdb_id=tmdb_id, skip_multi=skip_multi,
        )

    def resolve(self, title: str, year: Optional[int] = None, media_type: str = 'movie',
                external_id: Optional[str] = None, tmdb_id: Optional[int] = None,
                skip_multi: bool = False) -> Resolution:
        """
        Run the tier chain for one title.

        Args:
            title: cleaned search title
            year: release/first-air year hint
            media_type: 'movie' or 'tv' (series items start at the TV tiers)
            external_id: IMDb id if the provider supplies one
            tmdb_id: TMDb id if the provider supplies one
            skip_multi: TV-only request, never fall through to multi search

        Returns:
            Resolution carrying the record, or metadata=None when every tier missed
        """
        if not self.client.is_enabled():
            logger.debug(f"TMDb disabled, not resolving '{title}'")
            return Resolution(query=title, metadata=None, tiers_tried=[])

        short = shorten_title(title)
        query = _Query(
            title=title,
            year=year,
            short_title=short if short and short != title else None,
            media_type=media_type,
            external_id=external_id,
            tmdb_id=tmdb_id,
            skip_multi=skip_multi,
        )

        tried: List[str] = []
        for tier in self.tiers:
            if not self._applies(tier, query):
                continue
            tried.append(tier.name)
            search_title = query.short_title if tier.shortened else query.title
            logger.info(f"TMDb {tier.name} '{search_title}'" + (f" year={year}" if tier.with_year else ''))

            try:
                metadata = self._run_tier(tier, query, search_title)
            except NoMatchFound:
                logger.info(f"TMDb: '{title}' names a person via {tier.name}, stopping")
                return Resolution(query=title, metadata=None, tiers_tried=tried)
            if metadata is not None:
                logger.info(
                    f"TMDb: '{title}' ({year}) → '{metadata.title}' ({metadata.year}) "
                    f"{metadata.source} id={metadata.id} via {tier.name}"
                )
                return Resolution(query=title, metadata=metadata, tiers_tried=tried,
                                  matched_tier=tier.name)

        logger.info(f"TMDb: no match for '{title}' ({year}) after {len(tried)} tiers")
        return Resolution(query=title, metadata=None, tiers_tried=tried)

    def get_person_details(self, person_id) -> Dict:
        return self.client.get_person_details(person_id)

    # ── state machine ───────────────────────────────────────────────────────

    @staticmethod
    def _applies(tier: Tier, query: _Query) -> bool:
        if tier.lookup == 'tmdb_id':
            return query.tmdb_id is not None
        if tier.lookup == 'external_id':
            return bool(query.external_id)
        if tier.with_year and not query.year:
            return False
        if tier.shortened:
            return query.short_title is not None and not query.skip_multi
        if tier.lookup == 'movie':
            return query.media_type != 'tv'
        if tier.lookup == 'multi':
            return not query.skip_multi
        return True

    def _run_tier(self, tier: Tier, query: _Query, title: str) -> Optional[ResolvedMetadata]:
        if tier.lookup == 'tmdb_id':
            kind = 'tv' if query.media_type == 'tv' else 'movie'
            return self._details(kind, query.tmdb_id)

        hit = self._search(tier, query, title)
        if hit is None:
            return None
        kind, media_id = hit
        if kind == 'person':
            raise NoMatchFound(title, [tier.name])
        return self._details(kind, media_id)

    def _search(self, tier: Tier, query: _Query, title: str) -> Optional[Tuple[str, int]]:
        """Return (media kind, TMDb id) of the top result, or None; kind may be 'person'"""
        year = query.year if tier.with_year else None
        try:
            if tier.lookup == 'external_id':
                found = self.client.find_by_external_id(query.external_id)
                if found['movie_results']:
                    return 'movie', found['movie_results'][0]['id']
                if found['tv_results']:
                    return 'tv', found['tv_results'][0]['id']
                return None
            if tier.lookup == 'movie':
                results = self.client.search_movie(title, year)
                return ('movie', results[0]['id']) if results else None
            if tier.lookup == 'tv':
                results = self.client.search_tv(title, year)
                return ('tv', results[0]['id']) if results else None
            if tier.lookup == 'multi':
                for result in self.client.search_multi(title)[:1]:
                    if result.get('media_type') in ('movie', 'tv', 'person'):
                        return result['media_type'], result['id']
                    logger.debug(
                        f"TMDb {tier.name}: top result is a {result.get('media_type')}, not usable"
                    )
                return None
        except CatalogError as e:
            logger.warning(f"TMDb {tier.name} failed for '{title}': {e}")
            return None
        raise ValueError(f"Unknown tier lookup: {tier.lookup}")

    # ── detail enrichment ───────────────────────────────────────────────────

    def _details(self, kind: str, media_id) -> Optional[ResolvedMetadata]:
        try:
            data = self.client.get_details(kind, media_id)
        except CatalogError as e:
            logger.warning(f"TMDb {kind} details failed for id={media_id}: {e}")
            return None
        if not isinstance(data, dict) or not data.get('id'):
            return None

        if not data.get('overview'):
            data = self._splice_fallback_overview(kind, media_id, data)
        return self._to_metadata(kind, data)

    def _splice_fallback_overview(self, kind: str, media_id, primary: Dict) -> Dict:
        """Copy only the overview from the fallback-language details"""
        identifiers = {k: primary[k] for k in IDENTIFIER_FIELDS if k in primary}
        try:
            fallback = self.client.get_details(
                kind, media_id, language=self.client.fallback_language, append='credits'
            )
        except CatalogError as e:
            logger.warning(f"TMDb fallback-language details failed for {kind} id={media_id}: {e}")
            return primary

        merged = dict(primary)
        if isinstance(fallback, dict) and fallback.get('overview'):
            merged['overview'] = fallback['overview']
            logger.debug(f"TMDb {kind} id={media_id}: overview taken from {self.client.fallback_language}")
        merged.update(identifiers)
        return merged

    @staticmethod
    def _person(entry: Dict, with_character: bool = False) -> Person:
        return Person(
            id=entry.get('id'),
            name=entry.get('name', ''),
            character=entry.get('character') if with_character else None,
            photo=_image(TMDB_PROFILE_BASE, entry.get('profile_path')),
        )

    def _to_metadata(self, kind: str, data: Dict) -> ResolvedMetadata:
        credits = data.get('credits') or {}
        cast = [
            self._person(member, with_character=True)
            for member in (credits.get('cast') or [])[:MAX_CAST_MEMBERS]
        ]

        director = None
        creator = None
        if kind == 'movie':
            for crew_member in credits.get('crew') or []:
                if crew_member.get('job') == 'Director':
                    director = self._person(crew_member)
                    break
        else:
            created_by = data.get('created_by') or []
            if created_by:
                creator = self._person(created_by[0])

        runtime = data.get('runtime')
        if runtime is None and data.get('episode_run_time'):
            runtime = data['episode_run_time'][0]

        return ResolvedMetadata(
            source=kind,
            id=data['id'],
            title=data.get('title') or data.get('name') or '',
            year=_year_of(data.get('release_date') or data.get('first_air_date')),
            overview=(data.get('overview') or '').strip(),
            genres=[g.get('name') for g in data.get('genres') or [] if g.get('name')],
            cast=cast,
            director=director,
            creator=creator,
            external_ids=data.get('external_ids') or {},
            poster=_image(TMDB_POSTER_BASE, data.get('poster_path')),
            backdrop=_image(TMDB_POSTER_BASE, data.get('backdrop_path')),
            runtime=runtime,
            vote_average=data.get('vote_average'),
            raw=data,
        )
