#!/usr/bin/env python3
"""
Category taxonomy classification for provider category names

Priority order (first match wins, no scoring):
1. sport
2. manga
3. entertainment:concerts
4. entertainment:theatre
5. entertainment:spectacles
6. entertainment:blindtest
7. entertainment:karaoke
8. custom:<id>  - user-defined categories, in configured order
9. unclassified

Matchers are merged across every locale at build time. The locale passed
to classify() is accepted for interface symmetry but does not select a
different matcher: provider category names mix vocabularies from several
countries, so one merged matcher per key is used for every item.
"""

import re
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from iptvcore.constants import (
    ENTERTAINMENT, MANGA, SPORT, UNCLASSIFIED, TAXONOMY_PRIORITY,
    ENTERTAINMENT_SORT_FIRST, ENTERTAINMENT_SORT_LAST, LANGUAGE_ALIASES,
)
from iptvcore.normalizer import (
    category_prefix, collapse_whitespace, format_display_title, strip_category_prefix,
)
from iptvcore.patterns import CompiledMatcher, PatternRegistry
from iptvcore.settings import CustomCategory, default_registry

logger = logging.getLogger(__name__)

LANG_CODE_RE = re.compile(r'^[A-Za-z]{2,6}$')
VOSTFR_RE = re.compile(r'VOSTFR|VO-?STFR|VOST\b', re.IGNORECASE)
VFQ_RE = re.compile(r'\bVFQ\b', re.IGNORECASE)

CUSTOM_PREFIX = 'custom:'

# Catalog sections that list only categories matching no special pattern
PLAIN_SECTIONS = ('vod', 'series')


def label_for(key: str) -> str:
    """'entertainment.concerts' → 'entertainment:concerts'; other keys unchanged"""
    return key.replace('.', ':', 1)


def label_root(label: str) -> str:
    """'entertainment:concerts' → 'entertainment'"""
    return label.split(':', 1)[0]


@dataclass(frozen=True)
class CategoryName:
    """Display information derived from a raw provider category name"""
    display_name: str
    sort_name: str
    lang_code: str
    is_vostfr: bool


class CategoryClassifier:
    """Bucket provider category names into the taxonomy"""

    def __init__(self, registry: Optional[PatternRegistry] = None,
                 custom_categories: Iterable[CustomCategory] = (),
                 hidden: Iterable[str] = ()):
        """
        Args:
            registry: compiled keyword matchers (defaults to the built-in tables)
            custom_categories: user-defined categories checked after the taxonomy
            hidden: taxonomy roots ('sport', 'manga', 'entertainment') that must
                    never be produced as labels
        """
        self.registry = registry or default_registry()
        self.hidden = frozenset(hidden)

        self._ordered: List[Tuple[str, CompiledMatcher]] = []
        for key in TAXONOMY_PRIORITY:
            if label_root(label_for(key)) in self.hidden:
                continue
            matcher = self.registry.category_matcher(key)
            if matcher is None:
                logger.debug(f"No keywords for taxonomy key '{key}', never matches")
                continue
            self._ordered.append((label_for(key), matcher))

        self._custom: List[Tuple[str, CompiledMatcher]] = []
        for category in custom_categories:
            if not category.keywords:
                continue
            pattern = re.compile(
                PatternRegistry.alternation(category.keywords, flexible_whitespace=True),
                re.IGNORECASE
            )
            matcher = CompiledMatcher(
                key=category.id, keywords=category.keywords, pattern=pattern, whole_word=False
            )
            self._custom.append((f'{CUSTOM_PREFIX}{category.id}', matcher))

    def classify(self, category_name: Optional[str], locale: Optional[str] = None) -> str:
        """
        Return the first taxonomy label whose matcher hits anywhere in the name.

        Never raises: empty or missing names are 'unclassified'.
        """
        if not category_name:
            return UNCLASSIFIED
        for label, matcher in self._ordered:
            if matcher.matches(category_name):
                return label
        for label, matcher in self._custom:
            if matcher.matches(category_name):
                return label
        return UNCLASSIFIED

    def is_special(self, category_name: Optional[str]) -> bool:
        """True when any built-in or custom pattern matches (excluded from the plain VOD section)"""
        return self.classify(category_name) != UNCLASSIFIED

    def filter_section(self, categories: Iterable[Dict], section: str) -> List[Dict]:
        """
        Select raw category records (with a 'category_name' field) for a section.

        'vod' and 'series' keep categories matching no special pattern; 'sport',
        'manga', 'entertainment' keep categories labelled with that root,
        entertainment ordered for display; 'custom:<id>' keeps that custom
        label. The records themselves are never modified.

        Raises:
            ValueError: unknown section name
        """
        if not (section in PLAIN_SECTIONS or section in (SPORT, MANGA, ENTERTAINMENT)
                or section.startswith(CUSTOM_PREFIX)):
            raise ValueError(f"Unknown section: {section}")

        selected = []
        for category in categories:
            label = self.classify(category.get('category_name') or '')
            if section in PLAIN_SECTIONS:
                keep = label == UNCLASSIFIED
            elif section.startswith(CUSTOM_PREFIX):
                keep = label == section
            else:
                keep = label_root(label) == section
            if keep:
                selected.append(category)

        if section == ENTERTAINMENT:
            selected.sort(key=lambda c: self.entertainment_sort_key(c.get('category_name') or ''))
        return selected

    def entertainment_sort_key(self, category_name: str) -> Tuple[int, str]:
        """
        Spectacles, theatre, concerts first (in that order), blind test and
        karaoke last, everything else in between; ties sorted by name.
        """
        sort_name = category_name.lower()
        for subtype in ENTERTAINMENT_SORT_LAST:
            matcher = self.registry.category_matcher(f'{ENTERTAINMENT}.{subtype}')
            if matcher is not None and matcher.matches(category_name):
                return 100, sort_name
        for rank, subtype in enumerate(ENTERTAINMENT_SORT_FIRST):
            matcher = self.registry.category_matcher(f'{ENTERTAINMENT}.{subtype}')
            if matcher is not None and matcher.matches(category_name):
                return rank, sort_name
        return 50, sort_name

    def parse_category_name(self, category_name: Optional[str]) -> CategoryName:
        """
        Turn "FR| SERIES NETFLIX VOSTFR" style names into display information.

        The routing prefix is read as a language code (with provider aliases),
        series words and VFQ are stripped, the rest is title cased.
        """
        name = category_name or ''
        upper = name.upper()
        is_canadian = upper.startswith('CA|')
        is_sd = upper.startswith('SD|')
        is_vostfr = bool(VOSTFR_RE.search(upper))

        lang_code = ''
        prefix = category_prefix(name)
        if prefix and LANG_CODE_RE.match(prefix):
            code = prefix.upper()
            lang_code = LANGUAGE_ALIASES.get(code, code)

        name = strip_category_prefix(name)
        series = self.registry.cleanup_matcher('series')
        if series is not None:
            name = series.sub('', name)
        name = collapse_whitespace(VFQ_RE.sub('', name))
        name = format_display_title(name)

        if is_canadian:
            name += ' (Canadien)'
        if is_sd:
            name += ' (SD)'
        if is_vostfr and not VOSTFR_RE.search(name):
            name += ' (VOSTFR)'
        if is_vostfr:
            lang_code = 'FR'

        return CategoryName(
            display_name=name,
            sort_name=name.lower(),
            lang_code=lang_code,
            is_vostfr=is_vostfr,
        )


def detect_languages(categories: Sequence[Dict]) -> List[str]:
    """Language codes present as routing prefixes, 'FR' first when present"""
    detected: List[str] = []
    for category in categories:
        prefix = category_prefix(category.get('category_name') or '')
        if not prefix:
            continue
        code = prefix.upper()
        lang = LANGUAGE_ALIASES.get(code, code)
        if lang not in detected:
            detected.append(lang)
    if 'FR' in detected:
        detected.remove('FR')
        detected.insert(0, 'FR')
    return detected
