"""
HTTP fetching and the raw compendium cache.

Everything here is synchronous: the archiver makes one request at a time.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import httpx

from .config import REQUEST_TIMEOUT, USER_AGENT
from .errors import FetchError

logger = logging.getLogger(__name__)


class PageFetcher:
    """
    Thin wrapper around ``httpx.Client`` returning page text.

    Usage:
        with PageFetcher() as fetcher:
            html = fetcher.fetch("https://old.reddit.com/...")
    """

    def __init__(
        self,
        timeout: float = REQUEST_TIMEOUT,
        user_agent: str = USER_AGENT,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the fetcher.

        Args:
            timeout: Seconds before a request times out
            user_agent: User-Agent header sent with every request
            client: Optional httpx client. If None, one is created and
                    closed together with this fetcher.
        """
        self._own_client = client is None
        self.client = client or httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers={
                'User-Agent': user_agent,
                'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
                'Accept-Language': 'en-US,en;q=0.9',
            },
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        if self._own_client:
            self.client.close()

    def fetch(self, url: str) -> str:
        """
        Fetch ``url`` and return the response body as text.

        Raises:
            FetchError: on transport errors and non-2xx responses
        """
        try:
            response = self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(url, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise FetchError(url, str(e) or type(e).__name__) from e
        return response.text


def save_raw_index(raw_html: str, output_dir: Union[str, Path], name: str) -> Path:
    """
    Write the compendium HTML to ``{output_dir}/{name}.html``.

    An existing file is overwritten. An existing directory is reported
    and reused.

    Returns:
        Path of the written file
    """
    output_dir = Path(output_dir)
    try:
        output_dir.mkdir(parents=True)
        logger.info("'%s' directory created", output_dir)
    except FileExistsError:
        logger.info("'%s' directory already exists", output_dir)

    path = output_dir / f"{name}.html"
    path.write_text(raw_html, encoding="utf-8")
    logger.info("Raw index written to '%s'", path)
    return path


def load_raw_index(fetcher: PageFetcher, url: str, output_dir: Union[str, Path], name: str) -> str:
    """
    Return the cached compendium, fetching and caching it first if missing.
    """
    path = Path(output_dir) / f"{name}.html"
    if not path.exists():
        logger.info("No cached index at '%s', fetching %s", path, url)
        save_raw_index(fetcher.fetch(url), output_dir, name)
    return path.read_text(encoding="utf-8")
