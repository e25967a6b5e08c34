#!/usr/bin/env python3
"""
Test suite for iptvcore/classifier.py: category taxonomy labels
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from iptvcore.classifier import CategoryClassifier, detect_languages, label_for
from iptvcore.constants import DEFAULT_CATEGORY_PATTERNS
from iptvcore.patterns import LocaleKeywordSet
from iptvcore.settings import CustomCategory


@pytest.fixture(scope='module')
def classifier():
    return CategoryClassifier()


def _all_keywords():
    table = LocaleKeywordSet(DEFAULT_CATEGORY_PATTERNS)
    for locale in table.locales:
        for key in table.keys():
            for keyword in table.keywords(locale, key):
                yield locale, key, keyword


class TestEveryKeyword:
    """Every keyword of every locale classifies into its own key on its own"""

    @pytest.mark.parametrize('locale,key,keyword', list(_all_keywords()))
    def test_keyword_alone_hits_its_key(self, classifier, locale, key, keyword):
        assert classifier.classify(keyword, locale) == label_for(key)

    @pytest.mark.parametrize('locale,key,keyword', list(_all_keywords()))
    def test_keyword_uppercase_inside_name(self, classifier, locale, key, keyword):
        assert classifier.classify(f'FR| {keyword.upper()} HD') == label_for(key)


class TestPriority:
    """First match wins in fixed order"""

    def test_sport_beats_manga(self, classifier):
        assert classifier.classify('Sport Anime') == 'sport'
        assert classifier.classify('MANGA SPORT') == 'sport'

    def test_manga_beats_entertainment(self, classifier):
        assert classifier.classify('Anime Concert') == 'manga'

    def test_concerts_beat_karaoke(self, classifier):
        assert classifier.classify('Karaoke Concert') == 'entertainment:concerts'

    def test_locale_does_not_change_result(self, classifier):
        """Matchers are merged across locales: a German word hits under 'fr'"""
        assert classifier.classify('DE| Kampfsport', 'fr') == 'sport'
        assert classifier.classify('DE| Kampfsport', 'de') == 'sport'
        assert classifier.classify('DE| Kampfsport') == 'sport'


class TestDegradation:
    """Classification never raises"""

    def test_no_match(self, classifier):
        assert classifier.classify('FR| FILMS ACTION') == 'unclassified'

    def test_empty_and_none(self, classifier):
        assert classifier.classify('') == 'unclassified'
        assert classifier.classify(None) == 'unclassified'

    def test_stateless(self, classifier):
        first = classifier.classify('FR| NBA')
        second = classifier.classify('FR| NBA')
        assert first == second == 'sport'


class TestCustomAndHidden:
    """User-defined categories and hidden taxonomy roots"""

    def test_custom_category_after_taxonomy(self):
        classifier = CategoryClassifier(custom_categories=[
            CustomCategory(id='kids', keywords=('enfants', 'jeunesse')),
        ])
        assert classifier.classify('FR| JEUNESSE') == 'custom:kids'
        # Taxonomy is still checked first
        assert classifier.classify('FR| MANGA ENFANTS') == 'manga'

    def test_custom_keyword_flexible_whitespace(self):
        classifier = CategoryClassifier(custom_categories=[
            CustomCategory(id='docs', keywords=('docu mentaire',)),
        ])
        assert classifier.classify('FR| DOCUMENTAIRE') == 'custom:docs'

    def test_custom_without_keywords_never_matches(self):
        classifier = CategoryClassifier(custom_categories=[CustomCategory(id='empty', keywords=())])
        assert classifier.classify('anything') == 'unclassified'

    def test_hidden_root_is_never_produced(self):
        classifier = CategoryClassifier(hidden=['sport'])
        assert classifier.classify('FR| NBA') == 'unclassified'
        assert classifier.classify('Sport Anime') == 'manga'

    def test_hidden_entertainment_hides_all_subtypes(self):
        classifier = CategoryClassifier(hidden=['entertainment'])
        assert classifier.classify('Concert Live') == 'unclassified'
        assert classifier.classify('Karaoke') == 'unclassified'


class TestFilterSection:
    """Section selection over raw category records"""

    @pytest.fixture
    def categories(self):
        return [
            {'category_id': '1', 'category_name': 'FR| FILMS ACTION'},
            {'category_id': '2', 'category_name': 'FR| NBA'},
            {'category_id': '3', 'category_name': 'FR| KARAOKE'},
            {'category_id': '4', 'category_name': 'FR| CONCERTS'},
            {'category_id': '5', 'category_name': 'FR| SPECTACLES'},
            {'category_id': '6', 'category_name': 'FR| MANGA VOSTFR'},
            {'category_id': '7', 'category_name': 'FR| THEATRE'},
        ]

    def test_vod_excludes_special(self, classifier, categories):
        ids = [c['category_id'] for c in classifier.filter_section(categories, 'vod')]
        assert ids == ['1']

    def test_series_matches_vod(self, classifier, categories):
        ids = [c['category_id'] for c in classifier.filter_section(categories, 'series')]
        assert ids == ['1']

    def test_unknown_section(self, classifier, categories):
        with pytest.raises(ValueError):
            classifier.filter_section(categories, 'radio')

    def test_sport_section(self, classifier, categories):
        ids = [c['category_id'] for c in classifier.filter_section(categories, 'sport')]
        assert ids == ['2']

    def test_entertainment_display_order(self, classifier, categories):
        """Spectacles, theatre, concerts first, karaoke last"""
        ids = [c['category_id'] for c in classifier.filter_section(categories, 'entertainment')]
        assert ids == ['5', '7', '4', '3']

    def test_records_are_not_modified(self, classifier, categories):
        before = [dict(c) for c in categories]
        classifier.filter_section(categories, 'entertainment')
        assert categories == before

    def test_custom_section(self, categories):
        classifier = CategoryClassifier(custom_categories=[
            CustomCategory(id='action', keywords=('action',)),
        ])
        ids = [c['category_id'] for c in classifier.filter_section(categories, 'custom:action')]
        assert ids == ['1']


class TestParseCategoryName:
    """Display names from raw provider category names"""

    def test_series_words_and_prefix_stripped(self, classifier):
        parsed = classifier.parse_category_name('FR| SERIES NETFLIX VOSTFR')
        assert parsed.display_name == 'Netflix VOSTFR'
        assert parsed.lang_code == 'FR'
        assert parsed.is_vostfr

    def test_alias_prefix(self, classifier):
        parsed = classifier.parse_category_name('CA| FILMS QUEBEC')
        assert parsed.lang_code == 'FR'
        assert parsed.display_name == 'Films Quebec (Canadien)'

    def test_sd_suffix(self, classifier):
        parsed = classifier.parse_category_name('SD| CINEMA')
        assert parsed.display_name == 'Cinema (SD)'

    def test_no_prefix(self, classifier):
        parsed = classifier.parse_category_name('Documentaires')
        assert parsed.lang_code == ''
        assert parsed.display_name == 'Documentaires'
        assert parsed.sort_name == 'documentaires'

    def test_acronyms_keep_case(self, classifier):
        parsed = classifier.parse_category_name('EN| UFC FIGHT NIGHT')
        assert parsed.display_name == 'UFC Fight Night'
        assert parsed.lang_code == 'EN'

    def test_empty(self, classifier):
        parsed = classifier.parse_category_name(None)
        assert parsed.display_name == ''


class TestDetectLanguages:
    """Language codes from routing prefixes"""

    def test_french_first_and_aliases(self):
        categories = [
            {'category_name': 'EN| MOVIES'},
            {'category_name': 'CA| FILMS'},
            {'category_name': 'DE| FILME'},
            {'category_name': 'FR| FILMS'},
            {'category_name': 'No prefix'},
        ]
        assert detect_languages(categories) == ['FR', 'EN', 'DE']

    def test_empty(self):
        assert detect_languages([]) == []
