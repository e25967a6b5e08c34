#!/usr/bin/env python3
"""
enrich.py: catalog enrichment report

Authenticates against the provider, preloads the live/VOD/series catalogs,
classifies every category, normalizes every VOD and series title and
(optionally) resolves it against TMDb. Writes one CSV row per item.

Sport, blind test and karaoke items are never looked up on TMDb, nor are
custom categories configured with use_tmdb: false.

Read-only: never changes anything on the provider side.

Usage:
  python enrich.py --config config.yaml                  # full run
  python enrich.py --config config.yaml --no-tmdb        # offline: no TMDb lookups
  python enrich.py --config config.yaml --limit 50       # resolve only the first 50 titles
  python enrich.py --config config.yaml --output PATH    # custom report path
"""

import sys
import csv
import logging
import argparse
from collections import Counter
from pathlib import Path
from typing import Dict, Iterator, List, Optional

import yaml

from iptvcore.classifier import CUSTOM_PREFIX, CategoryClassifier
from iptvcore.constants import TMDB_SKIP_LABELS
from iptvcore.errors import CatalogError
from iptvcore.normalizer import TitleNormalizer
from iptvcore.provider import ProviderClient
from iptvcore.resolver import MetadataResolver
from iptvcore.settings import Settings, build_registry, describe
from iptvcore.tmdb import TMDbClient
from iptvcore.transport import RetryingTransport

logger = logging.getLogger(__name__)

FIELDNAMES = [
    'kind', 'stream_id', 'raw_title', 'title', 'year', 'season', 'part',
    'category', 'label', 'tmdb_id', 'tmdb_title', 'tiers',
]

# (row kind, category getter, item getter, id field, TMDb media type)
CATALOGS = (
    ('vod', 'get_vod_categories', 'get_vod_streams', 'stream_id', 'movie'),
    ('series', 'get_series_categories', 'get_series', 'series_id', 'tv'),
)


def load_config(config_path: Path) -> dict:
    """Load configuration from YAML file"""
    with open(config_path, 'r') as f:
        return yaml.safe_load(f) or {}


class CatalogEnricher:
    """Builds the per-item report rows from a preloaded provider cache"""

    def __init__(self, settings: Settings, no_tmdb: bool = False,
                 provider: Optional[ProviderClient] = None,
                 resolver: Optional[MetadataResolver] = None):
        self.settings = settings
        transport = RetryingTransport(
            max_attempts=settings.max_attempts,
            base_delay=settings.retry_base_delay,
            timeout=settings.request_timeout,
        )

        registry = build_registry(settings)
        self.normalizer = TitleNormalizer(registry)
        self.classifier = CategoryClassifier(
            registry,
            custom_categories=settings.custom_categories,
            hidden=settings.hidden_categories,
        )
        self.provider = provider or ProviderClient(
            settings.server, settings.username, settings.password, transport=transport
        )

        if resolver is not None:
            self.resolver = resolver
        else:
            tmdb = TMDbClient(
                None if no_tmdb else settings.tmdb_api_key,
                transport=transport,
                language=settings.tmdb_language,
                fallback_language=settings.tmdb_fallback_language,
            )
            self.resolver = MetadataResolver(tmdb, self.normalizer)

        self.no_lookup_labels = set(TMDB_SKIP_LABELS) | {
            f'{CUSTOM_PREFIX}{c.id}' for c in settings.custom_categories if not c.use_tmdb
        }

        self.stats = Counter()

    def category_names(self, getter: str) -> Dict[str, str]:
        categories = getattr(self.provider, getter)() or []
        return {str(c.get('category_id')): c.get('category_name', '') for c in categories}

    def iter_rows(self, limit: Optional[int] = None) -> Iterator[Dict]:
        """
        Yield one report row per VOD/series item.

        Args:
            limit: resolve at most this many titles against TMDb (None = all)
        """
        resolved = 0
        for kind, category_getter, item_getter, id_field, media_type in CATALOGS:
            names = self.category_names(category_getter)
            for item in getattr(self.provider, item_getter)() or []:
                raw_title = item.get('name') or ''
                category = names.get(str(item.get('category_id')), '')
                normalized = self.normalizer.normalize(raw_title)
                label = self.classifier.classify(category)

                row = {
                    'kind': kind,
                    'stream_id': item.get(id_field),
                    'raw_title': raw_title,
                    'title': normalized.canonical_title,
                    'year': normalized.year or '',
                    'season': normalized.season or '',
                    'part': normalized.part or '',
                    'category': category,
                    'label': label,
                    'tmdb_id': '',
                    'tmdb_title': '',
                    'tiers': '',
                }
                self.stats[f'{kind}_items'] += 1
                self.stats[f'label_{label}'] += 1

                if self.resolver.client.is_enabled() and (limit is None or resolved < limit):
                    if label in self.no_lookup_labels:
                        self.stats['tmdb_skipped'] += 1
                    else:
                        resolved += 1
                        self._resolve_into(row, normalized, media_type, item)
                yield row

    def _resolve_into(self, row: Dict, normalized, media_type: str, item: Dict):
        tmdb_id = item.get('tmdb_id') or item.get('tmdb') or None
        resolution = self.resolver.resolve(
            normalized.canonical_title, normalized.year, media_type=media_type,
            tmdb_id=tmdb_id,
        )
        row['tiers'] = ' > '.join(resolution.tiers_tried)
        if resolution.found:
            row['tmdb_id'] = resolution.metadata.id
            row['tmdb_title'] = resolution.metadata.title
            self.stats['tmdb_found'] += 1
        else:
            self.stats['tmdb_not_found'] += 1

    def write_report(self, output_path: Path, limit: Optional[int] = None) -> int:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        count = 0
        with open(output_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=FIELDNAMES, quoting=csv.QUOTE_ALL)
            writer.writeheader()
            for row in self.iter_rows(limit):
                writer.writerow(row)
                count += 1
        logger.info(f"Report written: {output_path} ({count} rows)")
        return count

    def print_stats(self):
        print("=" * 60)
        print("ENRICHMENT SUMMARY")
        print("=" * 60)
        print(f"VOD items:      {self.stats['vod_items']}")
        print(f"Series items:   {self.stats['series_items']}")
        if self.stats['tmdb_found'] or self.stats['tmdb_not_found']:
            print(f"TMDb found:     {self.stats['tmdb_found']}")
            print(f"TMDb not found: {self.stats['tmdb_not_found']}")
        if self.stats['tmdb_skipped']:
            print(f"TMDb skipped:   {self.stats['tmdb_skipped']}")
        labels: List[str] = sorted(k for k in self.stats if k.startswith('label_'))
        for key in labels:
            print(f"  {key[len('label_'):]:<28} {self.stats[key]}")
        cache = self.provider.get_cache_stats()
        print(f"Cache: {cache['hits']} hits / {cache['misses']} misses ({cache['hit_rate']:.1f}% hit rate)")
        print("=" * 60)


def main():
    parser = argparse.ArgumentParser(
        description='Classify, normalize and resolve an IPTV provider catalog',
        epilog="""
Read-only: only queries the provider and TMDb, and writes CSV.

Examples:
  python enrich.py --config config.yaml
  python enrich.py --config config.yaml --no-tmdb
  python enrich.py --config config.yaml --limit 20 --output output/sample.csv
        """
    )
    parser.add_argument('--config', type=Path, default=Path('config.yaml'),
                        help='Configuration file (default: config.yaml)')
    parser.add_argument('--output', '-o', type=Path,
                        default=Path('output/catalog_report.csv'),
                        help='Output CSV path (default: output/catalog_report.csv)')
    parser.add_argument('--limit', type=int, default=None,
                        help='Resolve at most N titles against TMDb')
    parser.add_argument('--no-tmdb', action='store_true',
                        help='Disable TMDb resolution (offline normalization/classification)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Debug logging (HTTP and cache lines)')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    if not args.config.exists():
        logger.error(f"Config file not found: {args.config}")
        return 1

    settings = Settings.from_config(load_config(args.config))
    logger.info(f"Settings: {describe(settings)}")
    enricher = CatalogEnricher(settings, no_tmdb=args.no_tmdb)

    try:
        enricher.provider.authenticate()
    except CatalogError as e:
        logger.error(f"Authentication failed: {e}")
        return 1

    def report(step, total, label):
        if label:
            logger.info(f"Preloading {label} ({step}/{total})")

    result = enricher.provider.preload_cache(report)
    if not result.ok:
        logger.error(f"Preload failed after {result.completed}/{result.total} steps: {result.error}")
        return 1

    enricher.write_report(args.output, limit=args.limit)
    enricher.print_stats()
    return 0


if __name__ == '__main__':
    sys.exit(main())
