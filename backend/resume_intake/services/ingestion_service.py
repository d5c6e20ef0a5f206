"""
Ingestion Service — one resume upload from stored bytes to a CandidateRecord.

Pipeline (strictly sequential, no retries):
  download → extract_text → normalize → LLM extraction → (fallback) → insert → status

Status machine on the UploadRecord:
  pending → processing → completed | failed | failed_no_text | failed_exception

"completed" means a CandidateRecord exists, even when the fallback extractor
produced it. Every other exit leaves a terminal failure status and re-raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from resume_intake.config import PipelineConfig
from resume_intake.errors import (
    CandidateAlreadyExists,
    InsufficientText,
    InvalidTriggerRequest,
    PersistenceError,
    StorageError,
    UnsupportedFormat,
    UploadNotFound,
)
from resume_intake.models.resume_models import CandidateRecord, ParsingStatus, UploadRecord
from resume_intake.services.extraction_client import (
    ExtractionFailure,
    ExtractionSuccess,
    StructuredExtractionClient,
)
from resume_intake.services.fallback_extractor import fallback_extract
from resume_intake.services.resume_store import ResumeStore
from resume_intake.services.text_extractor import detect_format, extract_text
from resume_intake.utils.text_cleanup import clean_lines, normalize, truncate_at_word

logger = logging.getLogger(__name__)

# Which terminal status each known failure lands in; anything else is failed_exception
_FAILURE_STATUS: dict[type[Exception], ParsingStatus] = {
    InsufficientText: ParsingStatus.FAILED_NO_TEXT,
    StorageError: ParsingStatus.FAILED,
    PersistenceError: ParsingStatus.FAILED,
    UnsupportedFormat: ParsingStatus.FAILED_EXCEPTION,
    InvalidTriggerRequest: ParsingStatus.FAILED_EXCEPTION,
}


@dataclass(frozen=True)
class IngestionOutcome:
    upload_id: str
    status: ParsingStatus
    candidate: CandidateRecord

    @property
    def used_fallback(self) -> bool:
        return self.candidate.used_fallback


class IngestionOrchestrator:
    """Coordinates extraction, normalization, LLM extraction, fallback and persistence."""

    def __init__(
        self,
        config: PipelineConfig,
        store: ResumeStore,
        client: StructuredExtractionClient | None = None,
    ):
        self.config = config
        self.store = store
        self.client = client or StructuredExtractionClient(config)

    async def run(self, upload_id: str, file_path: str) -> IngestionOutcome:
        """Process one upload. Raises the failure after recording its terminal status."""
        if await self.store.get_candidate(upload_id) is not None:
            raise CandidateAlreadyExists(f"Upload {upload_id} has already been parsed")

        if not await self.store.update_status(upload_id, ParsingStatus.PROCESSING):
            raise UploadNotFound(f"Upload {upload_id} not found")
        logger.info(f"[{upload_id}] pending → processing ({file_path})")

        try:
            candidate = await self._process(upload_id, file_path)
        except Exception as e:
            status = _status_for(e)
            logger.error(f"[{upload_id}] processing → {status.value}: {type(e).__name__}: {e}")
            await self._mark_failed(upload_id, status)
            raise

        try:
            await self._set_status(upload_id, ParsingStatus.COMPLETED)
        except PersistenceError:
            # Candidate row exists without a completed status; best effort to end terminal
            await self._mark_failed(upload_id, ParsingStatus.FAILED)
            raise

        logger.info(
            f"[{upload_id}] processing → completed"
            + (f" (fallback: {candidate.extraction_error})" if candidate.used_fallback else "")
        )
        return IngestionOutcome(upload_id=upload_id, status=ParsingStatus.COMPLETED, candidate=candidate)

    async def _process(self, upload_id: str, file_path: str) -> CandidateRecord:
        upload = await self.store.get_upload(upload_id)
        if upload is None:
            raise UploadNotFound(f"Upload {upload_id} disappeared during processing")
        _check_ownership(upload, file_path)

        if _has_extension(file_path):
            fmt = detect_format(file_path, upload.mime_type)
        else:
            fmt = detect_format(upload.file_name, upload.mime_type)

        data = await self.store.download(file_path)
        raw_text = extract_text(data, fmt)
        cleaned = normalize(raw_text, self.config.max_text_length, self.config.truncation_lookback)
        logger.info(
            f"[{upload_id}] {fmt.value}: {len(data)} bytes → {len(raw_text)} raw chars → {len(cleaned)} normalized"
        )

        if len(cleaned) < self.config.min_text_length:
            raise InsufficientText(len(cleaned), self.config.min_text_length)

        result = await self.client.extract(cleaned)
        if isinstance(result, ExtractionSuccess):
            fields, extraction_error = result.fields, None
        elif isinstance(result, ExtractionFailure):
            logger.warning(f"[{upload_id}] structured extraction failed, using fallback: {result.reason}")
            fields, extraction_error = fallback_extract(self._layout_text(raw_text)), result.reason
        else:
            raise TypeError(f"Unexpected extraction result: {result!r}")

        candidate = CandidateRecord.from_fields(
            fields,
            resume_id=upload.id,
            user_id=upload.user_id,
            raw_text=cleaned,
            extraction_error=extraction_error,
        )
        return await self.store.insert_candidate(candidate)

    def _layout_text(self, raw_text: str) -> str:
        """Cleaned text with line breaks kept, so the fallback can see section headings."""
        return truncate_at_word(clean_lines(raw_text), self.config.max_text_length, self.config.truncation_lookback)

    async def _set_status(self, upload_id: str, status: ParsingStatus) -> None:
        if not await self.store.update_status(upload_id, status):
            raise PersistenceError(f"Upload {upload_id} vanished before status {status.value} was written")

    async def _mark_failed(self, upload_id: str, status: ParsingStatus) -> None:
        try:
            await self._set_status(upload_id, status)
        except PersistenceError as e:
            logger.error(f"[{upload_id}] could not record status {status.value}: {e}")


def _status_for(error: Exception) -> ParsingStatus:
    for error_type, status in _FAILURE_STATUS.items():
        if isinstance(error, error_type):
            return status
    return ParsingStatus.FAILED_EXCEPTION


def _has_extension(path: str) -> bool:
    name = path.rsplit("/", 1)[-1]
    return "." in name.strip(".")


def _check_ownership(upload: UploadRecord, file_path: str) -> None:
    """Files live under "{user_id}/"; a trigger may not point at another user's objects."""
    if file_path != upload.file_path and not file_path.startswith(f"{upload.user_id}/"):
        raise InvalidTriggerRequest(f"File path {file_path!r} is outside the owner's storage prefix")
    if ".." in file_path.split("/"):
        raise InvalidTriggerRequest(f"File path {file_path!r} is not a plain storage path")
