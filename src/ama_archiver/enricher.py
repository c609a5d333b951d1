"""
Incremental enrichment of the archive index.

For each indexed reference that has no enriched record yet, the comment page
is fetched and parsed until both the question and the answer are present,
then the record is saved. Already-enriched references are never fetched
again, so an interrupted run can simply be started over.

Per reference:

    Pending -> Fetching (up to max_attempts) -> Complete -> Persisted
                        \\-> Failed (attempts exhausted, run continues)
"""

import logging
import time
from typing import Callable, Optional

from tqdm import tqdm

from .config import ArchiverConfig
from .errors import FetchError, FetchIncompleteError, StorageError
from .extractor import extract_body_texts
from .locator import LocatorCodec
from .models import EnrichedRecord, EnrichmentSummary
from .store import ArchiveStore

logger = logging.getLogger(__name__)


class Enricher:
    """
    Drives the fetch-and-extract loop over the stored index.

    The fetcher is any object with a ``fetch(url) -> str`` method that raises
    ``FetchError`` on failure (normally a ``PageFetcher``).

    Usage:
        with PageFetcher() as fetcher:
            enricher = Enricher(store, fetcher, LocatorCodec(config.locator_template), config)
            summary = enricher.run()
    """

    def __init__(
        self,
        store: ArchiveStore,
        fetcher,
        codec: LocatorCodec,
        config: Optional[ArchiverConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
        show_progress: bool = True,
    ):
        self.store = store
        self.fetcher = fetcher
        self.codec = codec
        self.config = config or ArchiverConfig()
        self.sleep = sleep
        self.show_progress = show_progress
        if self.config.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def enrich_reference(self, reference_id: str) -> EnrichedRecord:
        """
        Fetch the comment page for ``reference_id`` until the answer appears.

        A failed request and a page missing the answer both count as one
        attempt. Between attempts the enricher sleeps with exponential backoff.

        Returns:
            A complete EnrichedRecord

        Raises:
            FetchIncompleteError: after ``max_attempts`` unsuccessful attempts
        """
        url = self.codec.to_locator(reference_id)
        record = EnrichedRecord(reference_id=reference_id)
        max_attempts = self.config.max_attempts

        for attempt in range(1, max_attempts + 1):
            logger.info("Fetching record %s... Attempt: %d/%d", reference_id, attempt, max_attempts)
            try:
                html = self.fetcher.fetch(url)
            except FetchError as e:
                logger.warning("%s", e)
            else:
                extract_body_texts(html, record, self.config.body_selector)
                if record.is_complete:
                    return record

            if attempt < max_attempts:
                delay = self.config.backoff_for(attempt)
                logger.debug("Retrying %s in %.1fs", reference_id, delay)
                self.sleep(delay)

        raise FetchIncompleteError(reference_id, max_attempts)

    def run(self) -> EnrichmentSummary:
        """
        Enrich every index record that is not archived yet.

        Fetch exhaustion and save failures are logged and collected in the
        summary; they do not stop the run.

        How it works:
            1. Load the index and the ids that already have an enriched record
            2. Skip every index row whose id is in that set
            3. Fetch the rest one by one until question and answer are present
            4. Save each completed record immediately and add its id to the set

        Why save per record instead of once at the end?
            - A run over the whole thread takes hours at polite request rates
            - Anything saved survives a crash, a Ctrl-C or a rate-limit ban
            - Restarting the command resumes where the last run stopped,
              because step 2 sees every record saved so far

        Returns:
            EnrichmentSummary with per-outcome counts and the failed ids
        """
        # -------------------------------------------------------
        # STEP 1: Work out what is left to do
        # -------------------------------------------------------
        index = self.store.load_index()
        done = self.store.load_enriched_ids()
        summary = EnrichmentSummary(total=len(index))

        logger.info("Index: %d records, %d already enriched", len(index), len(done))

        # -------------------------------------------------------
        # STEP 2: Fetch and save each pending record
        # -------------------------------------------------------
        # The index may list one id under several fans; once saved, the id
        # is in ``done`` and its later rows are skipped.
        for position, index_record in enumerate(
            tqdm(index, desc="Enriching records", disable=not self.show_progress), start=1
        ):
            reference_id = index_record.reference_id
            if reference_id in done:
                summary.skipped += 1
                continue

            logger.info("Scraping record %d/%d for reference id %s", position, len(index), reference_id)
            try:
                record = self.enrich_reference(reference_id)
            except FetchIncompleteError as e:
                logger.error("%s", e)
                summary.failed.append(reference_id)
                continue

            try:
                self.store.save_enriched(record)
            except StorageError as e:
                logger.error("Could not save %s: %s", reference_id, e)
                summary.save_errors.append(reference_id)
                continue

            done.add(reference_id)
            summary.enriched += 1

        logger.info(
            "Enrichment complete: %d enriched, %d skipped, %d failed, %d not saved (%d total)",
            summary.enriched, summary.skipped, len(summary.failed),
            len(summary.save_errors), summary.total,
        )
        return summary
