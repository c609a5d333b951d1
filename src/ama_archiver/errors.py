"""
Exception hierarchy for the AMA Archiver.

Library code raises these; only the command-line layer decides whether an
error ends the process. Underlying library exceptions (httpx, SQLAlchemy)
are chained with ``raise ... from`` so the original cause stays visible.
"""


class ArchiverError(Exception):
    """Base class for every error raised by this package."""


class FormatViolation(ArchiverError):
    """The source document no longer matches the expected shape."""


class NotFoundError(ArchiverError):
    """A required node (e.g. the start marker) is missing from the document."""


class FetchError(ArchiverError):
    """A page could not be retrieved (transport error or non-2xx status)."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class FetchIncompleteError(ArchiverError):
    """An enriched record is still missing its question or answer text."""

    def __init__(self, reference_id: str, attempts: int = 0):
        if attempts:
            message = f"Record {reference_id!r} still incomplete after {attempts} attempt(s)"
        else:
            message = f"Record {reference_id!r} is incomplete"
        super().__init__(message)
        self.reference_id = reference_id
        self.attempts = attempts


class StorageError(ArchiverError):
    """The archive database rejected an operation."""


class SchemaExistsError(StorageError):
    """``create_schema`` found one of its tables already present."""


class DuplicateKeyError(StorageError):
    """An enriched record with the same reference id is already stored."""

    def __init__(self, reference_id: str):
        super().__init__(f"Enriched record {reference_id!r} already exists")
        self.reference_id = reference_id
