"""Tests for the incremental enrichment loop (fake fetcher, no network)."""

import pytest

from ama_archiver.config import ArchiverConfig, LOCATOR_TEMPLATE
from ama_archiver.enricher import Enricher
from ama_archiver.errors import FetchIncompleteError, StorageError
from ama_archiver.locator import LocatorCodec
from ama_archiver.models import EnrichedRecord, IndexRecord

CODEC = LocatorCodec(LOCATOR_TEMPLATE)


def url(reference_id):
    return CODEC.to_locator(reference_id)


def build(store, fetcher, sleeps=None, **config):
    sleeps = [] if sleeps is None else sleeps
    return Enricher(
        store,
        fetcher,
        CODEC,
        ArchiverConfig(**config),
        sleep=sleeps.append,
        show_progress=False,
    )


class TestEnrichReference:
    def test_first_attempt_succeeds(self, store, fetcher_factory, page):
        fetcher = fetcher_factory({url("abc"): [page("Q?", "A.")]})
        record = build(store, fetcher).enrich_reference("abc")
        assert record == EnrichedRecord("abc", "Q?", "A.")
        assert fetcher.calls == [url("abc")]

    def test_retries_until_answer_present(self, store, fetcher_factory, page, fetch_error):
        fetcher = fetcher_factory({
            url("abc"): [page("Q?", None), fetch_error(), page("Q?", "A.")],
        })
        sleeps = []
        record = build(store, fetcher, sleeps, initial_backoff=2.0, backoff_factor=2.0).enrich_reference("abc")
        assert record.is_complete
        assert len(fetcher.calls) == 3
        assert sleeps == [2.0, 4.0]

    def test_gives_up_after_max_attempts(self, store, fetcher_factory, page):
        fetcher = fetcher_factory({url("abc"): [page("Q?", None)]})
        sleeps = []
        enricher = build(store, fetcher, sleeps, max_attempts=3)
        with pytest.raises(FetchIncompleteError) as excinfo:
            enricher.enrich_reference("abc")
        assert excinfo.value.attempts == 3
        assert len(fetcher.calls) == 3
        assert len(sleeps) == 2

    def test_backoff_capped(self, store, fetcher_factory, fetch_error):
        fetcher = fetcher_factory({url("abc"): [fetch_error()]})
        sleeps = []
        enricher = build(
            store, fetcher, sleeps,
            max_attempts=5, initial_backoff=10.0, backoff_factor=3.0, max_backoff=40.0,
        )
        with pytest.raises(FetchIncompleteError):
            enricher.enrich_reference("abc")
        assert sleeps == [10.0, 30.0, 40.0, 40.0]

    def test_invalid_max_attempts(self, store, fetcher_factory):
        with pytest.raises(ValueError):
            build(store, fetcher_factory(), max_attempts=0)


class TestRun:
    def test_resumes_without_refetching(self, store, fetcher_factory):
        store.save_index([
            IndexRecord("cc", "fan_a", "a"),
            IndexRecord("cc", "fan_b", "b"),
            IndexRecord("cc", "fan_c", "c"),
        ])
        store.save_enriched(EnrichedRecord("a", "qa", "aa"))
        store.save_enriched(EnrichedRecord("b", "qb", "ab"))

        fetcher = fetcher_factory()
        summary = build(store, fetcher).run()

        assert fetcher.calls == [url("c")]
        assert summary.enriched == 1
        assert summary.skipped == 2
        assert store.load_enriched_ids() == {"a", "b", "c"}

    def test_existing_records_not_overwritten(self, store, fetcher_factory, page):
        store.save_index([IndexRecord("cc", "fan_a", "a")])
        store.save_enriched(EnrichedRecord("a", "old q", "old a"))
        fetcher = fetcher_factory({url("a"): [page("new q", "new a")]})
        build(store, fetcher).run()
        assert fetcher.calls == []
        assert store.load_enriched() == [EnrichedRecord("a", "old q", "old a")]

    def test_second_run_fetches_nothing(self, store, fetcher_factory):
        store.save_index([IndexRecord("cc", "fan", "x"), IndexRecord("cc", "fan2", "y")])
        build(store, fetcher_factory()).run()
        fetcher = fetcher_factory()
        summary = build(store, fetcher).run()
        assert fetcher.calls == []
        assert summary.skipped == 2

    def test_repeated_reference_fetched_once(self, store, fetcher_factory):
        store.save_index([
            IndexRecord("cc_name1", "fan_name1", "1"),
            IndexRecord("cc_name1", "fan_name2", "2"),
            IndexRecord("cc_name1", "fan_name3", "1"),
        ])
        fetcher = fetcher_factory()
        summary = build(store, fetcher).run()
        assert sorted(fetcher.calls) == sorted([url("1"), url("2")])
        assert summary.enriched == 2
        assert summary.skipped == 1
        assert summary.save_errors == []

    def test_failed_reference_does_not_stop_run(self, store, fetcher_factory, page):
        store.save_index([IndexRecord("cc", "fan_x", "x"), IndexRecord("cc", "fan_y", "y")])
        fetcher = fetcher_factory({url("x"): [page("Q?", None)]})
        summary = build(store, fetcher, max_attempts=2).run()
        assert summary.failed == ["x"]
        assert summary.enriched == 1
        assert store.load_enriched_ids() == {"y"}

    def test_save_error_recorded(self, store, fetcher_factory):
        store.save_index([IndexRecord("cc", "fan", "x")])

        def broken_save(record):
            raise StorageError("disk full")

        store.save_enriched = broken_save
        summary = build(store, fetcher_factory()).run()
        assert summary.save_errors == ["x"]
        assert summary.enriched == 0

    def test_empty_index(self, store, fetcher_factory):
        fetcher = fetcher_factory()
        summary = build(store, fetcher).run()
        assert summary.total == 0
        assert fetcher.calls == []
