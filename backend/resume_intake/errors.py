"""
Ingestion error taxonomy.

Extraction failures (ServiceError, SchemaParseError) are carried inside an
ExtractionFailure result and recovered by the fallback extractor. Everything
else is raised and ends the run in a terminal failure status.
"""

from __future__ import annotations


class IngestionError(Exception):
    """Base class for every failure the ingestion pipeline knows about."""


class UnsupportedFormat(IngestionError):
    """The declared file extension / MIME type is not PDF, DOCX, DOC or text."""


class InsufficientText(IngestionError):
    """Normalized text is too short to be worth an extraction call."""

    def __init__(self, length: int, minimum: int):
        super().__init__(
            f"Could not extract meaningful text ({length} chars, need at least {minimum}). "
            "The file may be image-based, scanned, or use compressed content streams."
        )
        self.length = length
        self.minimum = minimum


class InvalidTriggerRequest(IngestionError):
    """The trigger payload is malformed or points outside the owner's storage prefix."""


class UploadNotFound(IngestionError):
    """No UploadRecord exists for the given id (or it belongs to another user)."""


class CandidateAlreadyExists(IngestionError):
    """A CandidateRecord already exists for this upload; re-parsing is rejected."""


class StorageError(IngestionError):
    """Downloading or uploading file bytes failed."""


class PersistenceError(IngestionError):
    """A database read or write failed."""


# ── Extraction Errors ────────────────────────────────────────────────────────


class ExtractionError(IngestionError):
    """The structured-extraction service could not produce a conformant record."""


class ServiceError(ExtractionError):
    """Extraction service unreachable, timed out, or returned a non-success status."""

    def __init__(self, message: str, status: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status = status
        self.body = body

    def __str__(self) -> str:
        base = super().__str__()
        if self.status is not None:
            return f"{base} (status={self.status})"
        return base


class SchemaParseError(ExtractionError):
    """The service answered, but the content was not a schema-conformant JSON object."""
