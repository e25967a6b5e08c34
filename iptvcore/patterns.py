#!/usr/bin/env python3
"""
Multilingual keyword tables and the matchers compiled from them

A LocaleKeywordSet is a frozen locale -> key -> keywords table. The
PatternRegistry flattens every locale's list for a key into one
de-duplicated alphabet and compiles a single case-insensitive matcher per
key, so matching never depends on the locale of the item being inspected.

Two matcher shapes are built:
  - whole-word  \\b(?:kw1|kw2)\\b   (cleanup vocabularies: langTags, season, part, series)
  - substring   (?:kw1|kw2)         (category taxonomy: "moto gp" must hit
                                     inside "FR| MOTO GP 2024")
"""

import re
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from iptvcore.constants import LOCALE_ORDER, WHOLE_WORD_KEYS

logger = logging.getLogger(__name__)


def _flatten_keys(keys: Mapping, prefix: str = '') -> Dict[str, Tuple[str, ...]]:
    """Turn {'entertainment': {'concerts': [...]}} into {'entertainment.concerts': (...)}"""
    flat: Dict[str, Tuple[str, ...]] = {}
    for name, value in keys.items():
        dotted = f'{prefix}.{name}' if prefix else name
        if isinstance(value, Mapping):
            flat.update(_flatten_keys(value, dotted))
        else:
            flat[dotted] = tuple(str(word) for word in value if str(word).strip())
    return flat


class LocaleKeywordSet:
    """Immutable locale -> key -> ordered keywords table"""

    def __init__(self, table: Mapping[str, Mapping], locale_order: Iterable[str] = LOCALE_ORDER):
        frozen = {
            locale: MappingProxyType(_flatten_keys(keys or {}))
            for locale, keys in table.items()
        }
        self._table = MappingProxyType(frozen)

        known = [locale for locale in locale_order if locale in frozen]
        extra = sorted(locale for locale in frozen if locale not in known)
        self.locales: Tuple[str, ...] = tuple(known + extra)

    @classmethod
    def from_key_first(cls, table: Mapping[str, Mapping[str, Iterable[str]]],
                       locale_order: Iterable[str] = LOCALE_ORDER) -> 'LocaleKeywordSet':
        """Build from a key -> locale -> keywords table (cleanup vocabulary shape)"""
        inverted: Dict[str, Dict[str, Iterable[str]]] = {}
        for key, per_locale in table.items():
            for locale, words in per_locale.items():
                inverted.setdefault(locale, {})[key] = words
        return cls(inverted, locale_order)

    def keywords(self, locale: str, key: str) -> Tuple[str, ...]:
        return self._table.get(locale, {}).get(key, ())

    def keys(self) -> List[str]:
        """All keys, in first-seen order across the locale order"""
        seen: List[str] = []
        for locale in self.locales:
            for key in self._table[locale]:
                if key not in seen:
                    seen.append(key)
        return seen

    def merged(self, overrides: Optional[Mapping[str, Mapping]]) -> 'LocaleKeywordSet':
        """
        Return a new set where each (locale, key) present in overrides
        replaces the default list. Keys absent from overrides keep defaults.
        """
        if not overrides:
            return self
        combined: Dict[str, Dict[str, Tuple[str, ...]]] = {
            locale: dict(keys) for locale, keys in self._table.items()
        }
        for locale, keys in overrides.items():
            combined.setdefault(locale, {}).update(_flatten_keys(keys or {}))
        return LocaleKeywordSet(
            {locale: _unflatten(keys) for locale, keys in combined.items()},
            self.locales,
        )

    def __contains__(self, locale: str) -> bool:
        return locale in self._table

    def __repr__(self) -> str:
        return f'LocaleKeywordSet(locales={list(self.locales)}, keys={self.keys()})'


def _unflatten(flat: Mapping[str, Iterable[str]]) -> Dict:
    nested: Dict = {}
    for dotted, words in flat.items():
        node = nested
        parts = dotted.split('.')
        for part in parts[:-1]:
            node = node.setdefault(part, {})
        node[parts[-1]] = list(words)
    return nested


@dataclass(frozen=True)
class CompiledMatcher:
    """Case-insensitive matcher compiled from one key's keyword alphabet"""
    key: str
    keywords: Tuple[str, ...]
    pattern: re.Pattern
    whole_word: bool

    def search(self, text: str) -> Optional[re.Match]:
        return self.pattern.search(text or '')

    def matches(self, text: str) -> bool:
        return self.search(text) is not None

    def sub(self, repl: str, text: str) -> str:
        return self.pattern.sub(repl, text or '')


class PatternRegistry:
    """
    Compile keyword tables into reusable matchers.

    Matchers for every taxonomy key and every cleanup key are compiled once,
    at construction, and never rebuilt. A key with no keywords in any
    locale has no matcher: category_matcher()/cleanup_matcher() return None
    and callers treat that as "no match possible".
    """

    def __init__(self, category_table: LocaleKeywordSet, cleanup_table: LocaleKeywordSet):
        self.category_table = category_table
        self.cleanup_table = cleanup_table

        # Taxonomy keywords are substrings, never anchored
        self._category: Dict[str, CompiledMatcher] = self.build_all(category_table, whole_word=False)
        self._cleanup: Dict[str, CompiledMatcher] = self.build_all(cleanup_table)

        logger.debug(
            f"PatternRegistry: {len(self._category)} taxonomy matchers, "
            f"{len(self._cleanup)} cleanup matchers over {len(category_table.locales)} locales"
        )

    @staticmethod
    def flatten_unique(table: LocaleKeywordSet, key: str) -> List[str]:
        """
        Concatenate every locale's keywords for key in locale order and drop
        exact duplicates, keeping the first occurrence.

        De-duplication is by exact string equality, not case-insensitive:
        'Serie' and 'serie' both survive. Matching itself ignores case.
        """
        unique: List[str] = []
        for locale in table.locales:
            for word in table.keywords(locale, key):
                if word not in unique:
                    unique.append(word)
        return unique

    @staticmethod
    def escape_keyword(keyword: str, flexible_whitespace: bool = False) -> str:
        """Escape a keyword for literal use; optionally let inner spaces match zero or more"""
        escaped = re.escape(keyword.strip())
        if flexible_whitespace:
            # re.escape turns ' ' into '\ '
            escaped = re.sub(r'(?:\\\s|\s)+', r'\\s*', escaped)
        return escaped

    @classmethod
    def alternation(cls, keywords: Iterable[str], flexible_whitespace: bool = False) -> str:
        """Non-capturing alternation group over escaped keywords"""
        escaped = [cls.escape_keyword(kw, flexible_whitespace) for kw in keywords]
        return '(?:' + '|'.join(escaped) + ')'

    @classmethod
    def build(cls, table: LocaleKeywordSet, key: str,
              whole_word: Optional[bool] = None) -> Optional[CompiledMatcher]:
        """
        Compile the matcher for key, or None when no locale defines keywords for it.

        whole_word defaults to True for the cleanup keys listed in
        WHOLE_WORD_KEYS and False otherwise.
        """
        keywords = cls.flatten_unique(table, key)
        if not keywords:
            return None

        if whole_word is None:
            whole_word = key.split('.')[-1] in WHOLE_WORD_KEYS

        if whole_word:
            source = r'\b' + cls.alternation(keywords) + r'\b'
        else:
            source = cls.alternation(keywords, flexible_whitespace=True)

        return CompiledMatcher(
            key=key,
            keywords=tuple(keywords),
            pattern=re.compile(source, re.IGNORECASE),
            whole_word=whole_word,
        )

    @classmethod
    def build_all(cls, table: LocaleKeywordSet,
                  whole_word: Optional[bool] = None) -> Dict[str, CompiledMatcher]:
        matchers: Dict[str, CompiledMatcher] = {}
        for key in table.keys():
            matcher = cls.build(table, key, whole_word)
            if matcher is not None:
                matchers[key] = matcher
        return matchers

    def category_matcher(self, key: str) -> Optional[CompiledMatcher]:
        return self._category.get(key)

    def cleanup_matcher(self, key: str) -> Optional[CompiledMatcher]:
        return self._cleanup.get(key)

    def cleanup_keywords(self, key: str) -> List[str]:
        return self.flatten_unique(self.cleanup_table, key)

    @property
    def taxonomy_keys(self) -> List[str]:
        return list(self._category)
