"""
Utility functions for the AMA Archiver.

This module provides helper functions for file operations and path management.
"""

import re
from pathlib import Path
from typing import Union

import orjson


def safe_name(text: str, max_length: int = 50, fallback: str = "unnamed") -> str:
    """
    Generate a filesystem-safe name from a creator or fan name.

    Args:
        text: Display name to clean (e.g., "Daron Nefcy", "Star/Marco fan?")
        max_length: Maximum length of the result (default: 50 chars)
        fallback: Returned when nothing usable is left after cleaning

    Returns:
        A name safe on Windows, Linux and macOS with spaces as underscores
        Example: "Star_Marco_fan" for "Star/Marco fan?"

    Implementation details:
        - Removes characters illegal on common filesystems: / \\ : * ? " < > |
        - Collapses whitespace, then converts spaces to underscores
        - Strips leading dots so names never resolve to "." or ".."
        - Truncates to max_length
    """
    clean = re.sub(r'[/\\:*?"<>|]', ' ', text)
    clean = re.sub(r'\s+', ' ', clean).strip()
    slug = clean.replace(' ', '_').lstrip('.')

    if len(slug) > max_length:
        slug = slug[:max_length].rstrip('_')

    return slug or fallback


def write_json_atomic(path: Union[str, Path], data: dict) -> None:
    """Write ``data`` as indented JSON through a temp file and rename."""
    path = Path(path)
    tmp = path.with_suffix('.tmp')
    tmp.write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS))
    tmp.replace(path)
