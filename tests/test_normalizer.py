#!/usr/bin/env python3
"""
Test suite for iptvcore/normalizer.py: title normalization stages
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from iptvcore.normalizer import (
    NormalizedTitle, TitleNormalizer, category_prefix, extract_year,
    format_display_title, strip_category_prefix, title_similarity,
)


@pytest.fixture(scope='module')
def normalizer():
    return TitleNormalizer()


class TestYear:
    """Stage 2: year extraction"""

    def test_parenthesized_year(self, normalizer):
        result = normalizer.normalize('Action Movie (2021)')
        assert result.canonical_title == 'Action Movie'
        assert result.year == 2021

    def test_trailing_dash_year(self, normalizer):
        result = normalizer.normalize('Heat-1995')
        assert result.canonical_title == 'Heat'
        assert result.year == 1995

    def test_trailing_space_year(self, normalizer):
        result = normalizer.normalize('Le Samourai 1967')
        assert result.canonical_title == 'Le Samourai'
        assert result.year == 1967

    def test_out_of_range_year_is_title_text(self, normalizer):
        result = normalizer.normalize('Space 1800s (1850)')
        assert result.year is None

    def test_only_year_token_removed(self, normalizer):
        result = normalizer.normalize('Blade Runner 2049 (2017)')
        assert result.canonical_title == 'Blade Runner 2049'
        assert result.year == 2017


class TestMarkers:
    """Stage 3: season/part markers"""

    def test_french_season(self, normalizer):
        result = normalizer.normalize('Show - Saison 2')
        assert result.season == 2
        assert result.canonical_title == 'Show'

    def test_english_season_and_part(self, normalizer):
        result = normalizer.normalize('Chronicles Season 3 Part 1')
        assert result.season == 3
        assert result.part == 1
        assert result.canonical_title == 'Chronicles'

    def test_first_season_kept(self, normalizer):
        result = normalizer.normalize('Show Saison 2 Saison 5')
        assert result.season == 2
        assert result.canonical_title == 'Show'

    def test_season_episode_code(self, normalizer):
        result = normalizer.normalize('Lupin S01E04')
        assert result.season == 1
        assert result.episode == 4
        assert result.canonical_title == 'Lupin'

    def test_season_word_wins_over_code(self, normalizer):
        result = normalizer.normalize('Lupin Saison 2 S01E04')
        assert result.season == 2
        assert result.episode == 4

    def test_german_part(self, normalizer):
        result = normalizer.normalize('Das Boot Teil 2')
        assert result.part == 2
        assert result.canonical_title == 'Das Boot'


class TestTags:
    """Stage 1 and stage 4: prefix, language and quality tags"""

    def test_routing_prefix(self, normalizer):
        result = normalizer.normalize('FR| Le Grand Bleu')
        assert result.canonical_title == 'Le Grand Bleu'
        assert result.prefix == 'FR'

    def test_prefix_with_suffix(self, normalizer):
        result = normalizer.normalize('EN-HD | The Matrix')
        assert result.canonical_title == 'The Matrix'
        assert result.prefix == 'EN'

    def test_language_and_quality_tags(self, normalizer):
        result = normalizer.normalize('FR| Dune VOSTFR 1080p HEVC (2021)')
        assert result.canonical_title == 'Dune'
        assert result.year == 2021

    def test_web_dl(self, normalizer):
        result = normalizer.normalize('Oppenheimer MULTI WEB-DL 2160p')
        assert result.canonical_title == 'Oppenheimer'

    def test_tags_inside_words_survive(self, normalizer):
        """Whole-word only: 'VF' inside 'VFX' is not a tag"""
        result = normalizer.normalize('Making of VFX')
        assert result.canonical_title == 'Making of VFX'

    def test_separators_trimmed(self, normalizer):
        result = normalizer.normalize('| Titanic - VF -')
        assert result.canonical_title == 'Titanic'


class TestEdgeCases:
    """Degradation rules"""

    def test_empty(self, normalizer):
        assert normalizer.normalize('') == NormalizedTitle(canonical_title='')

    def test_none(self, normalizer):
        result = normalizer.normalize(None)
        assert result.canonical_title == ''
        assert result.year is None
        assert result.season is None
        assert result.part is None

    def test_all_noise_falls_back_to_raw(self, normalizer):
        result = normalizer.normalize('  VOSTFR   1080p ')
        assert result.canonical_title == 'VOSTFR 1080p'

    def test_whitespace_collapsed(self, normalizer):
        result = normalizer.normalize('The   Big    Lebowski')
        assert result.canonical_title == 'The Big Lebowski'


class TestIdempotence:
    """Re-scanning a normalized title finds no further noise"""

    @pytest.mark.parametrize('raw', [
        'FR| Dune VOSTFR 1080p HEVC (2021)',
        'Show - Saison 2',
        'Chronicles Season 3 Part 1 MULTI 4K',
        'DE| Das Boot Staffel 1 GERMAN',
        'Lupin S01E04 TRUEFRENCH WEBRip',
        'ES| La Casa de Papel Temporada 2 LATINO',
    ])
    def test_no_noise_left(self, normalizer, raw):
        result = normalizer.normalize(raw)
        assert normalizer.find_noise(result.canonical_title) == []

    @pytest.mark.parametrize('raw', [
        'FR| Dune VOSTFR 1080p HEVC (2021)',
        'Show - Saison 2',
        'Heat-1995',
    ])
    def test_normalizing_twice_is_stable(self, normalizer, raw):
        once = normalizer.normalize(raw).canonical_title
        assert normalizer.normalize(once).canonical_title == once

    def test_find_noise_reports_tokens(self, normalizer):
        noise = normalizer.find_noise('Dune VOSTFR 1080p')
        assert 'VOSTFR' in noise
        assert '1080p' in noise


class TestHelpers:
    """Module-level title helpers"""

    def test_strip_category_prefix(self):
        assert strip_category_prefix('FR| Movie') == 'Movie'
        assert strip_category_prefix('Movie') == 'Movie'
        assert strip_category_prefix(None) == ''

    def test_category_prefix(self):
        assert category_prefix('VOSTFR | Movie') == 'VOSTFR'
        assert category_prefix('Movie') is None

    def test_extract_year(self):
        assert extract_year('Movie (1999)') == 1999
        assert extract_year('Movie - 2004') == 2004
        assert extract_year('Movie') is None

    def test_format_display_title(self):
        assert format_display_title('LIGUE 1 UFC FIGHT NIGHT') == 'Ligue 1 UFC Fight Night'
        assert format_display_title('') == ''

    def test_title_similarity(self):
        assert title_similarity('The Matrix', 'the matrix!') == 100
        assert title_similarity('Matrix', '') == 0
        assert title_similarity('Matrix', 'The Matrix') == 67
