"""Tests for the HTTP fetcher and raw index cache (mock transport, no network)."""

import httpx
import pytest

from ama_archiver.errors import FetchError
from ama_archiver.fetcher import PageFetcher, load_raw_index, save_raw_index


def mock_client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestPageFetcher:
    def test_returns_text(self):
        client = mock_client(lambda request: httpx.Response(200, text="<html>ok</html>"))
        with PageFetcher(client=client) as fetcher:
            assert fetcher.fetch("https://old.reddit.com/r/x/") == "<html>ok</html>"

    def test_http_error(self):
        client = mock_client(lambda request: httpx.Response(404))
        fetcher = PageFetcher(client=client)
        with pytest.raises(FetchError) as excinfo:
            fetcher.fetch("https://old.reddit.com/missing")
        assert "HTTP 404" in str(excinfo.value)
        assert excinfo.value.url == "https://old.reddit.com/missing"

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = PageFetcher(client=mock_client(handler))
        with pytest.raises(FetchError) as excinfo:
            fetcher.fetch("https://old.reddit.com/r/x/")
        assert "connection refused" in excinfo.value.reason

    def test_external_client_left_open(self):
        client = mock_client(lambda request: httpx.Response(200, text="ok"))
        with PageFetcher(client=client):
            pass
        assert not client.is_closed
        client.close()

    def test_own_client_closed(self):
        fetcher = PageFetcher()
        fetcher.close()
        assert fetcher.client.is_closed


class TestRawIndexCache:
    def test_save_creates_directory(self, tmp_path):
        path = save_raw_index("<p>raw</p>", tmp_path / "output", "link-compendium")
        assert path == tmp_path / "output" / "link-compendium.html"
        assert path.read_text(encoding="utf-8") == "<p>raw</p>"

    def test_save_into_existing_directory_overwrites(self, tmp_path, caplog):
        save_raw_index("first", tmp_path, "index")
        with caplog.at_level("INFO", logger="ama_archiver.fetcher"):
            path = save_raw_index("second", tmp_path, "index")
        assert path.read_text(encoding="utf-8") == "second"
        assert "already exists" in caplog.text

    def test_load_uses_cache(self, tmp_path, fetcher_factory):
        save_raw_index("<p>cached</p>", tmp_path, "index")
        fetcher = fetcher_factory()
        assert load_raw_index(fetcher, "https://example.com", tmp_path, "index") == "<p>cached</p>"
        assert fetcher.calls == []

    def test_load_fetches_when_missing(self, tmp_path, fetcher_factory):
        fetcher = fetcher_factory({"https://example.com": ["<p>fresh</p>"]})
        assert load_raw_index(fetcher, "https://example.com", tmp_path / "out", "index") == "<p>fresh</p>"
        assert (tmp_path / "out" / "index.html").exists()
        assert fetcher.calls == ["https://example.com"]
