"""
The two archival steps, wired from an ``ArchiverConfig``.

1. ``compile_index``: compendium HTML -> IndexRecords -> short ids -> database
2. ``compile_enriched``: database index -> comment pages -> enriched records
"""

import logging
from typing import List

from .config import ArchiverConfig
from .enricher import Enricher
from .extractor import extract_index
from .fetcher import load_raw_index
from .locator import LocatorCodec, normalize_references
from .models import EnrichmentSummary, IndexRecord
from .store import ArchiveStore

logger = logging.getLogger(__name__)


def compile_index(config: ArchiverConfig, fetcher, store: ArchiveStore) -> List[IndexRecord]:
    """
    Build and persist the index.

    The compendium is read from the cache file when present, otherwise
    fetched and cached. Running this against an existing archive raises
    ``SchemaExistsError`` and leaves it untouched. If saving the rows fails
    no archive tables are left behind, so the step can simply be rerun.

    Returns:
        The saved IndexRecords, with short reference ids
    """
    raw_html = load_raw_index(fetcher, config.index_url, config.output_dir, config.raw_index_name)
    records = extract_index(
        raw_html,
        config.start_marker,
        group_tag=config.group_tag,
        item_tag=config.item_tag,
        separator=config.separator,
    )
    normalize_references(records, LocatorCodec(config.locator_template))

    store.initialize(records)
    return records


def compile_enriched(
    config: ArchiverConfig, fetcher, store: ArchiveStore, show_progress: bool = True
) -> EnrichmentSummary:
    """Enrich every indexed reference that has not been archived yet."""
    enricher = Enricher(
        store,
        fetcher,
        LocatorCodec(config.locator_template),
        config,
        show_progress=show_progress,
    )
    return enricher.run()
