"""
Conversion between short comment ids and full AMA comment URLs.

Both directions are plain positional string splits: the id lives in the
second-to-last separator-delimited segment of the template. A URL with a
different number of segments yields the wrong segment without any error.
"""

import logging
from typing import Iterable

from .models import IndexRecord

logger = logging.getLogger(__name__)


class LocatorCodec:
    """
    Maps reference ids to locators and back using a fixed template.

    Example:
        codec = LocatorCodec("https://host/comments/abc/title//?context=3")
        codec.to_locator("evw3fne")
        # Returns: "https://host/comments/abc/title/evw3fne/?context=3"
        codec.to_reference_id("https://host/comments/abc/title/evw3fne/?context=3")
        # Returns: "evw3fne"
    """

    def __init__(self, template: str, separator: str = "/"):
        self.template = template
        self.separator = separator

    def to_locator(self, reference_id: str) -> str:
        """Substitute ``reference_id`` into the template's placeholder segment."""
        parts = self.template.split(self.separator)
        parts[len(parts) - 2] = reference_id
        return self.separator.join(parts)

    def to_reference_id(self, locator: str) -> str:
        """Return the segment of ``locator`` at the template's placeholder position."""
        parts = locator.split(self.separator)
        return parts[len(parts) - 2]


def normalize_references(records: Iterable[IndexRecord], codec: LocatorCodec) -> None:
    """Rewrite each record's raw href into its short reference id, in place."""
    count = 0
    for record in records:
        record.reference_id = codec.to_reference_id(record.reference_id)
        count += 1
    logger.debug("Normalized %d reference ids", count)
