"""Configure test paths and shared fixtures."""
import sys
from pathlib import Path

import pytest

# Add src/ to path so tests can import the package
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ama_archiver.errors import FetchError  # noqa: E402
from ama_archiver.store import ArchiveStore  # noqa: E402


SAMPLE_INDEX_HTML = """
<p><strong>cc_name1:</strong></p>

<p><a href="1">fan_name1</a></p>
<p><a href="2">fan_name2</a></p>
<p><a href="1">fan_name3</a></p>
<hr />
<p><strong>cc_name2:</strong></p>
<p><a href="3">fan_name4</a></p>
<p><a href="4">fan_name5</a></p>
"""


def make_page(question="question", answer="answer", extra=0):
    """Comment permalink page: opening post, question, answer, extra replies."""
    bodies = ["<p>Ask me anything!</p>"]
    if question is not None:
        bodies.append(f"<p>{question}</p>")
    if answer is not None:
        bodies.append(f"<p>{answer}</p>")
    bodies.extend(f"<p>reply {i}</p>" for i in range(extra))
    nodes = "".join(
        f'<div class="usertext-body"><div class="md">{body}</div></div>' for body in bodies
    )
    return f"<html><body>{nodes}</body></html>"


class FakeFetcher:
    """
    Stands in for PageFetcher.

    ``responses`` maps a URL to a list of page texts or exceptions, consumed
    one per call; the last entry repeats once the list is exhausted. URLs
    without an entry get a complete page.
    """

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []

    def fetch(self, url):
        self.calls.append(url)
        queue = self.responses.get(url)
        if not queue:
            return make_page()
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        pass


@pytest.fixture
def sample_index_html():
    return SAMPLE_INDEX_HTML


@pytest.fixture
def page():
    return make_page


@pytest.fixture
def fetcher_factory():
    return FakeFetcher


@pytest.fixture
def fetch_error():
    def build(url="https://example.com/x", reason="HTTP 503"):
        return FetchError(url, reason)
    return build


@pytest.fixture
def store(tmp_path):
    """Archive store with both tables created."""
    archive = ArchiveStore(tmp_path / "ama_archive.db")
    archive.create_schema()
    yield archive
    archive.close()


@pytest.fixture
def empty_store(tmp_path):
    """Archive store without any tables."""
    archive = ArchiveStore(tmp_path / "empty.db")
    yield archive
    archive.close()
