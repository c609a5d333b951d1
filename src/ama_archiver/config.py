"""
Configuration for the AMA Archiver.

The module-level constants document the defaults for the Star vs. the Forces
of Evil AMA thread. Components never read them directly: they receive an
``ArchiverConfig`` at construction, and the CLI overrides fields from its
options.
"""

from dataclasses import dataclass, replace
from pathlib import Path


# -------------------------------------------------------
# CONSTANTS
# -------------------------------------------------------

# Output directory holding the raw index cache and the database
OUTPUT_DIR = Path("output")

# Cached copy of the link compendium, saved as {OUTPUT_DIR}/{RAW_INDEX_NAME}.html
RAW_INDEX_NAME = "link-compendium"

# SQLite archive file, saved as {OUTPUT_DIR}/{DB_NAME}
DB_NAME = "ama_archive.db"

# Directory the exporter writes the browsable tree into
EXPORT_DIR_NAME = "archive"

# Page listing every question, grouped by content creator
INDEX_URL = "https://old.reddit.com/r/StarVStheForcesofEvil/comments/clnrdv/link_compendium_of_questions_and_answers_from_the/"

# The second-to-last '/'-separated segment is replaced by the comment id
LOCATOR_TEMPLATE = "https://old.reddit.com/r/StarVStheForcesofEvil/comments/cll9u5/star_vs_the_forces_of_evil_ask_me_anything//?context=3"

# Text of the first creator heading in the compendium
START_MARKER = "Daron Nefcy:"

# Document shape: <p><strong>creator:</strong></p> followed by <p><a href=...>fan</a></p>
GROUP_TAG = "strong"
ITEM_TAG = "a"
SEPARATOR = ":"

# Comment bodies on the AMA page (0 = original post, 1 = question, 2 = answer)
BODY_SELECTOR = ".usertext-body"

# HTTP settings
REQUEST_TIMEOUT = 30.0
USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"

# Retry settings for enrichment (exponential backoff)
MAX_ATTEMPTS = 8
INITIAL_BACKOFF = 2.0
BACKOFF_FACTOR = 2.0
MAX_BACKOFF = 60.0


@dataclass(frozen=True)
class ArchiverConfig:
    """Settings shared by every component of one archival job."""
    output_dir: Path = OUTPUT_DIR
    raw_index_name: str = RAW_INDEX_NAME
    db_name: str = DB_NAME
    export_dir_name: str = EXPORT_DIR_NAME
    index_url: str = INDEX_URL
    locator_template: str = LOCATOR_TEMPLATE
    start_marker: str = START_MARKER
    group_tag: str = GROUP_TAG
    item_tag: str = ITEM_TAG
    separator: str = SEPARATOR
    body_selector: str = BODY_SELECTOR
    request_timeout: float = REQUEST_TIMEOUT
    user_agent: str = USER_AGENT
    max_attempts: int = MAX_ATTEMPTS
    initial_backoff: float = INITIAL_BACKOFF
    backoff_factor: float = BACKOFF_FACTOR
    max_backoff: float = MAX_BACKOFF

    @property
    def db_path(self) -> Path:
        return Path(self.output_dir) / self.db_name

    @property
    def raw_index_path(self) -> Path:
        return Path(self.output_dir) / f"{self.raw_index_name}.html"

    @property
    def export_dir(self) -> Path:
        return Path(self.output_dir) / self.export_dir_name

    def backoff_for(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        delay = self.initial_backoff * (self.backoff_factor ** (attempt - 1))
        return min(delay, self.max_backoff)

    def with_overrides(self, **overrides) -> "ArchiverConfig":
        """Return a copy with every non-None override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)
