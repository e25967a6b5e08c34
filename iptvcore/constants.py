#!/usr/bin/env python3
"""
Shared constants for catalog classification and title cleanup

Single source of truth for the multilingual keyword tables, locale order,
quality tags and display-case words. DO NOT duplicate these lists in other
modules - import from here instead.

Tables are plain literals here; iptvcore.patterns.LocaleKeywordSet freezes
them before use, so nothing mutates them at runtime.
"""

# Fixed locale iteration order used when flattening keyword tables.
# Locales not listed here are appended afterwards in sorted order.
LOCALE_ORDER = ('en', 'fr', 'de', 'es', 'it', 'pt', 'nl', 'pl', 'ru', 'tr', 'ar')

# Taxonomy roots, in classification priority order
SPORT = 'sport'
MANGA = 'manga'
ENTERTAINMENT = 'entertainment'
UNCLASSIFIED = 'unclassified'

# Entertainment subtypes, in classification priority order
ENTERTAINMENT_SUBTYPES = ('concerts', 'theatre', 'spectacles', 'blindtest', 'karaoke')

# Taxonomy keys checked by the classifier, first match wins
TAXONOMY_PRIORITY = (SPORT, MANGA) + tuple(
    f'{ENTERTAINMENT}.{subtype}' for subtype in ENTERTAINMENT_SUBTYPES
)

# Entertainment display order: these subtypes first (in this order) ...
ENTERTAINMENT_SORT_FIRST = ('spectacles', 'theatre', 'concerts')
# ... and these always last
ENTERTAINMENT_SORT_LAST = ('blindtest', 'karaoke')

# Category taxonomy keywords, locale -> key -> keywords.
# Matched as substrings (not anchored) so "moto gp" hits inside longer names.
DEFAULT_CATEGORY_PATTERNS = {
    'en': {
        'sport': ['sport', 'sports', 'nba', 'nfl', 'nhl', 'mlb', 'moto gp', 'formula 1', 'f1',
                  'boxing', 'wrestling', 'ufc'],
        'manga': ['manga', 'anime', 'animation'],
        'entertainment': {
            'concerts': ['concert', 'live music'],
            'theatre': ['theatre', 'theater'],
            'spectacles': ['show', 'tv show', 'variety'],
            'blindtest': ['blind test', 'quiz'],
            'karaoke': ['karaoke'],
        },
    },
    'fr': {
        'sport': ['sport', 'nba', 'nfl', 'moto gp', 'formule 1', 'f1', 'combat'],
        'manga': ['manga', 'anime'],
        'entertainment': {
            'concerts': ['concert'],
            'theatre': ['theatre', 'théâtre'],
            'spectacles': ['spectacle', 'tv show'],
            'blindtest': ['blind test'],
            'karaoke': ['karaoke', 'karaoké'],
        },
    },
    'de': {
        'sport': ['sport', 'nba', 'nfl', 'moto gp', 'formel 1', 'f1', 'boxen', 'wrestling',
                  'kampfsport'],
        'manga': ['manga', 'anime', 'zeichentrick'],
        'entertainment': {
            'concerts': ['konzert', 'concert', 'live musik'],
            'theatre': ['theater', 'theatre'],
            'spectacles': ['show', 'unterhaltung', 'tv show'],
            'blindtest': ['blind test', 'quiz'],
            'karaoke': ['karaoke'],
        },
    },
    'es': {
        'sport': ['deporte', 'deportes', 'sport', 'nba', 'nfl', 'moto gp', 'formula 1', 'f1',
                  'boxeo', 'lucha', 'ufc'],
        'manga': ['manga', 'anime', 'animacion'],
        'entertainment': {
            'concerts': ['concierto', 'concert', 'musica en vivo'],
            'theatre': ['teatro', 'theatre'],
            'spectacles': ['espectaculo', 'show', 'tv show', 'variedad'],
            'blindtest': ['blind test', 'concurso'],
            'karaoke': ['karaoke'],
        },
    },
    'it': {
        'sport': ['sport', 'nba', 'nfl', 'moto gp', 'formula 1', 'f1', 'boxe', 'wrestling', 'ufc'],
        'manga': ['manga', 'anime', 'animazione'],
        'entertainment': {
            'concerts': ['concerto', 'concert', 'musica dal vivo'],
            'theatre': ['teatro', 'theatre'],
            'spectacles': ['spettacolo', 'show', 'tv show', 'varieta'],
            'blindtest': ['blind test', 'quiz'],
            'karaoke': ['karaoke'],
        },
    },
    'pt': {
        'sport': ['esporte', 'desporto', 'sport', 'nba', 'nfl', 'moto gp', 'formula 1', 'f1',
                  'boxe', 'luta', 'ufc'],
        'manga': ['manga', 'anime', 'animacao'],
        'entertainment': {
            'concerts': ['concerto', 'concert', 'musica ao vivo'],
            'theatre': ['teatro', 'theatre'],
            'spectacles': ['espetaculo', 'show', 'tv show', 'variedades'],
            'blindtest': ['blind test', 'quiz'],
            'karaoke': ['karaoke'],
        },
    },
    'nl': {
        'sport': ['sport', 'nba', 'nfl', 'moto gp', 'formule 1', 'f1', 'boksen', 'worstelen', 'ufc'],
        'manga': ['manga', 'anime', 'animatie'],
        'entertainment': {
            'concerts': ['concert', 'live muziek'],
            'theatre': ['theater', 'theatre'],
            'spectacles': ['show', 'tv show', 'variete'],
            'blindtest': ['blind test', 'quiz'],
            'karaoke': ['karaoke'],
        },
    },
    'pl': {
        'sport': ['sport', 'nba', 'nfl', 'moto gp', 'formula 1', 'f1', 'boks', 'wrestling', 'ufc',
                  'walki'],
        'manga': ['manga', 'anime', 'animacja'],
        'entertainment': {
            'concerts': ['koncert', 'concert', 'muzyka na zywo'],
            'theatre': ['teatr', 'theatre'],
            'spectacles': ['spektakl', 'show', 'tv show', 'rozrywka'],
            'blindtest': ['blind test', 'quiz'],
            'karaoke': ['karaoke'],
        },
    },
    'ru': {
        'sport': ['спорт', 'sport', 'nba', 'nfl', 'мото гп', 'формула 1', 'f1', 'бокс', 'борьба', 'ufc'],
        'manga': ['манга', 'manga', 'аниме', 'anime', 'мультфильм'],
        'entertainment': {
            'concerts': ['концерт', 'concert'],
            'theatre': ['театр', 'theatre'],
            'spectacles': ['шоу', 'show', 'tv show', 'развлечения'],
            'blindtest': ['blind test', 'викторина'],
            'karaoke': ['караоке', 'karaoke'],
        },
    },
    'tr': {
        'sport': ['spor', 'sport', 'nba', 'nfl', 'moto gp', 'formula 1', 'f1', 'boks', 'gures',
                  'ufc', 'dovus'],
        'manga': ['manga', 'anime', 'animasyon'],
        'entertainment': {
            'concerts': ['konser', 'concert'],
            'theatre': ['tiyatro', 'theatre'],
            'spectacles': ['gosteri', 'show', 'tv show', 'eglence'],
            'blindtest': ['blind test', 'bilgi yarismasi'],
            'karaoke': ['karaoke'],
        },
    },
    'ar': {
        'sport': ['رياضة', 'sport', 'nba', 'nfl', 'موتو جي بي', 'فورمولا 1', 'f1', 'ملاكمة', 'مصارعة', 'ufc'],
        'manga': ['مانجا', 'manga', 'انمي', 'anime', 'رسوم متحركة'],
        'entertainment': {
            'concerts': ['حفلة', 'حفل', 'concert'],
            'theatre': ['مسرح', 'theatre'],
            'spectacles': ['عرض', 'show', 'tv show', 'ترفيه'],
            'blindtest': ['blind test', 'مسابقة'],
            'karaoke': ['كاريوكي', 'karaoke'],
        },
    },
}

# Title cleanup vocabularies, key -> locale -> keywords.
# Matched as whole words, case-insensitive.
TITLE_CLEANUP_PATTERNS = {
    # Language/version tags removed from titles
    'langTags': {
        'en': ['DUBBED', 'SUBBED', 'ENGLISH', 'ENG'],
        'fr': ['VOSTFR', 'FRENCH', 'VF', 'VFQ', 'VO', 'MULTI', 'TRUEFRENCH', 'SUBFRENCH'],
        'de': ['GERMAN', 'DEUTSCH', 'GER'],
        'es': ['SPANISH', 'ESPANOL', 'ESP', 'CASTELLANO', 'LATINO'],
        'it': ['ITALIAN', 'ITALIANO', 'ITA'],
        'pt': ['PORTUGUESE', 'PORTUGUES', 'POR', 'DUBLADO', 'LEGENDADO'],
        'nl': ['DUTCH', 'NEDERLANDS', 'NL'],
        'pl': ['POLISH', 'POLSKI', 'PL', 'LEKTOR'],
        'ru': ['RUSSIAN', 'РУССКИЙ', 'RUS'],
        'tr': ['TURKISH', 'TURKCE', 'TR'],
        'ar': ['ARABIC', 'عربي', 'مدبلج', 'مترجم'],
    },
    # "Season" word
    'season': {
        'en': ['Season'],
        'fr': ['Saison'],
        'de': ['Staffel'],
        'es': ['Temporada'],
        'it': ['Stagione'],
        'pt': ['Temporada'],
        'nl': ['Seizoen'],
        'pl': ['Sezon'],
        'ru': ['Сезон'],
        'tr': ['Sezon'],
        'ar': ['موسم'],
    },
    # "Part" word
    'part': {
        'en': ['Part'],
        'fr': ['Partie'],
        'de': ['Teil'],
        'es': ['Parte'],
        'it': ['Parte'],
        'pt': ['Parte'],
        'nl': ['Deel'],
        'pl': ['Część'],
        'ru': ['Часть'],
        'tr': ['Bölüm'],
        'ar': ['جزء'],
    },
    # "Series" word (stripped from category display names)
    'series': {
        'en': ['Series', 'Serie'],
        'fr': ['Séries', 'Série', 'Series', 'Serie'],
        'de': ['Serien', 'Serie'],
        'es': ['Series', 'Serie'],
        'it': ['Serie'],
        'pt': ['Séries', 'Série', 'Series', 'Serie'],
        'nl': ['Series', 'Serie'],
        'pl': ['Seriale', 'Serial'],
        'ru': ['Сериалы', 'Сериал'],
        'tr': ['Diziler', 'Dizi'],
        'ar': ['مسلسلات', 'مسلسل'],
    },
}

# Cleanup keys matched as whole words
WHOLE_WORD_KEYS = frozenset({'langTags', 'season', 'part', 'series', 'manga'})

# Quality/resolution/source tags. These carry no structured value, only removed.
QUALITY_TAGS = [
    '720p', '1080p', '2160p', '4K', 'UHD', 'HDR', 'HDR10', 'HDTV', 'FHD',
    'WEB-DL', 'WEBDL', 'WEBRip', 'BluRay', 'BDRip', 'BRRip', 'DVDRip', 'HDRip',
    'x264', 'x265', 'HEVC', 'H264', 'H265', '3D',
]

# Provider routing-prefix language aliases ("SD|", "CA|" are French feeds)
LANGUAGE_ALIASES = {
    'SD': 'FR',
    'CA': 'FR',
    'VFSTFR': 'FR',
    'VO-VOSTFR': 'FR',
}

# Words whose case is preserved when title-casing display names
PRESERVE_CASE_WORDS = [
    'VO', 'VOSTFR', 'VF', 'VOST', 'UHD', '4K', '3D', 'HDR', 'HD', 'FHD', 'SD', 'TV', 'HEVC',
    'NBA', 'NFL', 'NHL', 'MLB', 'UFC', 'WWE', 'F1', 'GP', 'MotoGP', 'ATP', 'WTA',
    'USA', 'UK', 'ARTE', 'TF1', 'M6', 'TMC', 'NRJ', 'RTL', 'RMC', 'BFM', 'LCI',
    'RTS', 'SRF', 'ORF', 'ZDF', 'ARD', 'RAI', 'TVE', 'RTP', 'NOS', 'VTM', 'ProSieben',
    'PINK', 'NOVA',
]

# TMDb
TMDB_BASE_URL = 'https://api.themoviedb.org/3'
TMDB_PROFILE_BASE = 'https://image.tmdb.org/t/p/w185'
TMDB_POSTER_BASE = 'https://image.tmdb.org/t/p/w500'
TMDB_DEFAULT_LANGUAGE = 'fr-FR'
TMDB_FALLBACK_LANGUAGE = 'en-US'
MAX_CAST_MEMBERS = 8

# Category labels whose items have no TMDb entry; never looked up
TMDB_SKIP_LABELS = (SPORT, f'{ENTERTAINMENT}:blindtest', f'{ENTERTAINMENT}:karaoke')

# Preload steps: (label, resource kind), fetched in this order
PRELOAD_STEPS = (
    ('TV', 'live_streams'),
    ('VOD', 'vod_streams'),
    ('Series', 'series'),
)
