"""
AMA Archiver

Archives a Reddit AMA thread into a local SQLite database: the link
compendium gives the creator/fan index, and each indexed comment page
supplies the question and answer text.

Main components:
- extract_index: Rebuilds the creator/fan index from the compendium HTML
- LocatorCodec: Converts between comment ids and comment URLs
- ArchiveStore: SQLite persistence for index and enriched records
- Enricher: Resumable, bounded-retry enrichment loop
- export_tree: Writes the archive as a browsable directory tree

Usage:
    from ama_archiver import ArchiverConfig, ArchiveStore, PageFetcher
    from ama_archiver.pipeline import compile_index, compile_enriched

    config = ArchiverConfig()
    store = ArchiveStore(config.db_path)
    with PageFetcher() as fetcher:
        compile_index(config, fetcher, store)
        compile_enriched(config, fetcher, store)
"""

from .config import ArchiverConfig
from .enricher import Enricher
from .errors import (
    ArchiverError, DuplicateKeyError, FetchError, FetchIncompleteError,
    FormatViolation, NotFoundError, SchemaExistsError, StorageError,
)
from .exporter import export_tree
from .extractor import extract_body_texts, extract_index
from .fetcher import PageFetcher
from .locator import LocatorCodec, normalize_references
from .models import EnrichedRecord, EnrichmentSummary, IndexRecord
from .store import ArchiveStore

__all__ = [
    'ArchiverConfig',
    'ArchiveStore',
    'Enricher',
    'EnrichedRecord',
    'EnrichmentSummary',
    'IndexRecord',
    'LocatorCodec',
    'PageFetcher',
    'extract_body_texts',
    'extract_index',
    'export_tree',
    'normalize_references',
    'ArchiverError',
    'DuplicateKeyError',
    'FetchError',
    'FetchIncompleteError',
    'FormatViolation',
    'NotFoundError',
    'SchemaExistsError',
    'StorageError',
]

__version__ = '1.0.0'
