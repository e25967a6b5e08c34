#!/usr/bin/env python3
"""
iptvcore/normalizer.py: stream/series title normalization

Pure PRECISION title cleaning. No API calls, no classification.

Output feeds iptvcore/resolver.py: the canonical title is the search query,
year/season/part are structured hints.

Stages are applied in strict order, each on the output of the previous one:
  1. Strip the leading "<CODE> | " provider routing prefix
  2. Extract and remove the year: "(2021)" or a trailing "-2021" / " 2021"
  3. Strip season/part markers ("Saison 2", "Part 1", "S01E02"), keeping the
     first number found for each
  4. Strip language/version tags and quality/source tags
  5. Collapse whitespace, trim separator characters (dashes, pipes)

A stage never re-scans its own output. If stripping leaves nothing, the raw
title (whitespace collapsed) is returned instead: the canonical title is
never empty unless the input was.
"""

import re
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from iptvcore.constants import PRESERVE_CASE_WORDS, QUALITY_TAGS
from iptvcore.patterns import PatternRegistry
from iptvcore.settings import default_registry

logger = logging.getLogger(__name__)

# "FR| ", "VOSTFR | ", "EN-HD| " are provider routing metadata, never part of the title
CATEGORY_PREFIX_RE = re.compile(r'^([A-Za-z0-9]{2,10})(?:-[A-Za-z0-9]+)?\s*\|\s*')

YEAR_IN_PARENS_RE = re.compile(r'\s*\(((?:19|20)\d{2})\)\s*')
YEAR_AT_END_RE = re.compile(r'[-\s]+((?:19|20)\d{2})\s*$')

SEASON_EPISODE_RE = re.compile(r'\s*\bS(\d{1,3})\s*E(\d{1,4})\b\s*', re.IGNORECASE)

QUALITY_TAGS_RE = re.compile(
    r'\b' + PatternRegistry.alternation(QUALITY_TAGS) + r'(?![\w-])',
    re.IGNORECASE
)

SEPARATOR_EDGES_RE = re.compile(r'^[\s\-–|]+|[\s\-–|]+$')
WHITESPACE_RE = re.compile(r'\s+')
TITLE_CASE_RE = re.compile(r'(?:^|[\s\-])\S')
NON_ALPHANUMERIC_RE = re.compile(r'[^a-z0-9]')


@dataclass(frozen=True)
class NormalizedTitle:
    """Output of a single title normalization pass."""
    canonical_title: str
    year: Optional[int] = None
    season: Optional[int] = None
    part: Optional[int] = None
    episode: Optional[int] = None
    prefix: Optional[str] = None   # routing code from "<CODE> | ", e.g. 'FR'


def collapse_whitespace(text: str) -> str:
    return WHITESPACE_RE.sub(' ', text or '').strip()


def strip_category_prefix(title: Optional[str]) -> str:
    """Remove a leading "<CODE> | " routing prefix"""
    if not title:
        return ''
    return CATEGORY_PREFIX_RE.sub('', title, count=1)


def category_prefix(title: Optional[str]) -> Optional[str]:
    """Return the routing code of a "<CODE> | " prefix, or None"""
    match = CATEGORY_PREFIX_RE.match(title or '')
    return match.group(1) if match else None


def extract_year(title: Optional[str]) -> Optional[int]:
    """Year from "(YYYY)" first, then from a trailing -YYYY / space-YYYY token"""
    match = YEAR_IN_PARENS_RE.search(title or '') or YEAR_AT_END_RE.search(title or '')
    return int(match.group(1)) if match else None


def format_display_title(title: Optional[str]) -> str:
    """
    Title Case a name, restoring the case of known acronyms.

    Examples:
        >>> format_display_title('LIGUE 1 UFC FIGHT NIGHT')
        'Ligue 1 UFC Fight Night'
    """
    if not title:
        return ''
    formatted = TITLE_CASE_RE.sub(lambda m: m.group(0).upper(), title.lower())
    for word in PRESERVE_CASE_WORDS:
        formatted = re.sub(r'\b' + re.escape(word) + r'\b', word, formatted, flags=re.IGNORECASE)
    return formatted


def title_similarity(a: Optional[str], b: Optional[str]) -> int:
    """
    Rough 0-100 similarity between two titles.

    Exact match (ignoring case and punctuation) is 100; if one contains the
    other the score is the length ratio; otherwise the share of the shorter
    title's characters found anywhere in the longer one.
    """
    a = NON_ALPHANUMERIC_RE.sub('', (a or '').lower())
    b = NON_ALPHANUMERIC_RE.sub('', (b or '').lower())
    if a == b:
        return 100
    if not a or not b:
        return 0
    longer, shorter = (a, b) if len(a) > len(b) else (b, a)
    if shorter in longer:
        return round(len(shorter) / len(longer) * 100)
    matches = sum(1 for ch in shorter if ch in longer)
    return round(matches / len(longer) * 100)


class TitleNormalizer:
    """
    Strip locale-specific noise from stream/series titles.

    All matchers come from the PatternRegistry and are merged across
    locales, so a French season word is stripped from an English-routed
    title just the same.
    """

    def __init__(self, registry: Optional[PatternRegistry] = None):
        self.registry = registry or default_registry()
        self._season_re = self._marker_pattern('season')
        self._part_re = self._marker_pattern('part')
        self._lang_tags = self.registry.cleanup_matcher('langTags')

    def _marker_pattern(self, key: str) -> Optional[re.Pattern]:
        """'<Word> <number>' with an optional leading dash, e.g. ' - Saison 2'"""
        words = self.registry.cleanup_keywords(key)
        if not words:
            return None
        return re.compile(
            r'\s*-?\s*\b' + PatternRegistry.alternation(words) + r'\s*(\d+)\b\s*',
            re.IGNORECASE
        )

    def normalize(self, raw_title: Optional[str]) -> NormalizedTitle:
        """
        Apply all normalization stages to a title.

        Args:
            raw_title: Stream or series name as served by the provider

        Returns:
            NormalizedTitle with canonical title and extracted hints
        """
        raw_title = raw_title or ''
        if not raw_title.strip():
            return NormalizedTitle(canonical_title='')

        work, prefix = self._strip_prefix(raw_title)
        work, year = self._strip_year(work)
        work, season, part, episode = self._strip_markers(work)
        work = self._strip_tags(work)
        work = SEPARATOR_EDGES_RE.sub('', collapse_whitespace(work))

        if not work:
            work = collapse_whitespace(raw_title)
            logger.debug(f"normalize '{raw_title}': everything stripped, keeping raw title")

        result = NormalizedTitle(
            canonical_title=work,
            year=year,
            season=season,
            part=part,
            episode=episode,
            prefix=prefix,
        )
        if work != raw_title:
            logger.debug(f"normalize '{raw_title}' → '{work}' year={year} season={season} part={part}")
        return result

    # ── stages ──────────────────────────────────────────────────────────────

    @staticmethod
    def _strip_prefix(work: str) -> Tuple[str, Optional[str]]:
        match = CATEGORY_PREFIX_RE.match(work)
        if not match:
            return work, None
        return work[match.end():], match.group(1)

    @staticmethod
    def _strip_year(work: str) -> Tuple[str, Optional[int]]:
        # Only the token that supplied the year is removed, so a title like
        # "Blade Runner 2049 (2017)" keeps its "2049".
        match = YEAR_IN_PARENS_RE.search(work) or YEAR_AT_END_RE.search(work)
        if not match:
            return work, None
        return work[:match.start()] + ' ' + work[match.end():], int(match.group(1))

    def _strip_markers(self, work: str) -> Tuple[str, Optional[int], Optional[int], Optional[int]]:
        season = part = episode = None

        if self._season_re is not None:
            match = self._season_re.search(work)
            if match:
                season = int(match.group(1))
                work = self._season_re.sub(' ', work)

        match = SEASON_EPISODE_RE.search(work)
        if match:
            if season is None:
                season = int(match.group(1))
            episode = int(match.group(2))
            work = SEASON_EPISODE_RE.sub(' ', work)

        if self._part_re is not None:
            match = self._part_re.search(work)
            if match:
                part = int(match.group(1))
                work = self._part_re.sub(' ', work)

        return work, season, part, episode

    def _strip_tags(self, work: str) -> str:
        if self._lang_tags is not None:
            work = self._lang_tags.sub(' ', work)
        return QUALITY_TAGS_RE.sub(' ', work)

    # ── inspection ──────────────────────────────────────────────────────────

    def find_noise(self, text: Optional[str]) -> List[str]:
        """Noise tokens still present in text (language, quality, season/part markers)"""
        text = text or ''
        found: List[str] = []
        for pattern in (self._season_re, self._part_re, SEASON_EPISODE_RE, QUALITY_TAGS_RE):
            if pattern is not None:
                found.extend(m.group(0).strip() for m in pattern.finditer(text))
        if self._lang_tags is not None:
            found.extend(m.group(0) for m in self._lang_tags.pattern.finditer(text))
        return found
