"""
Data models for the AMA Archiver.

This module defines typed data structures for the two record kinds kept in
the archive, plus the summary returned by an enrichment run.
Using dataclasses provides clear structure, type hints, and easy JSON serialization.
"""

from dataclasses import dataclass, field, asdict
from typing import List, Optional


@dataclass
class IndexRecord:
    """
    One fan-to-creator exchange discovered in the link compendium.

    Attributes:
        group_label: Name of the content creator heading the run of replies,
                     with the trailing separator (":") already stripped
        item_label: Display name of the fan who asked the question
        reference_id: Raw href right after extraction; replaced by the short
                      comment id once the index is normalized

    Example:
        record = IndexRecord(
            group_label="Daron Nefcy",
            item_label="VeronicaMewniFan",
            reference_id="evw3fne"
        )
    """
    group_label: str
    item_label: str
    reference_id: str

    def to_dict(self) -> dict:
        """Convert the record to a dictionary for JSON serialization."""
        return asdict(self)


@dataclass
class EnrichedRecord:
    """
    Question and answer text fetched for one reference id.

    Attributes:
        reference_id: Short comment id, unique within the archive
        primary_text: The fan's question (None until fetched)
        secondary_text: The creator's answer (None until fetched).
                        Its presence is what marks the record as complete.

    Example:
        record = EnrichedRecord(reference_id="evw3fne")
        record.primary_text = "What was your favourite episode?"
        record.secondary_text = "Probably the finale!"
        assert record.is_complete
    """
    reference_id: str
    primary_text: Optional[str] = None
    secondary_text: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        """True once the answer text has been populated."""
        return self.secondary_text is not None

    def to_dict(self) -> dict:
        """Convert the record to a dictionary for JSON serialization."""
        return asdict(self)


@dataclass
class EnrichmentSummary:
    """
    Outcome of one enrichment run.

    Attributes:
        total: Number of index records examined
        skipped: Records already present in the archive
        enriched: Records fetched and saved during this run
        failed: Reference ids whose fetch attempts were exhausted
        save_errors: Reference ids fetched successfully but not persisted
    """
    total: int = 0
    skipped: int = 0
    enriched: int = 0
    failed: List[str] = field(default_factory=list)
    save_errors: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)
