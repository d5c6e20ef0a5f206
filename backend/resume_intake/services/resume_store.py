"""
Resume Store — the storage + database collaborator used by the pipeline.

`ResumeStore` is the interface; `InMemoryResumeStore` keeps everything in
dicts (local development and tests, lost on restart). The Supabase-backed
implementation lives in supabase_store.py.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from resume_intake.errors import PersistenceError, StorageError
from resume_intake.models.resume_models import CandidateRecord, ParsingStatus, UploadRecord

logger = logging.getLogger(__name__)


class ResumeStore(ABC):
    """Async storage/database operations, always keyed by record id and owner."""

    # ── Storage ──

    @abstractmethod
    async def upload_file(self, path: str, data: bytes, content_type: str | None = None) -> None: ...

    @abstractmethod
    async def download(self, path: str) -> bytes: ...

    @abstractmethod
    async def delete_file(self, path: str) -> None: ...

    # ── Uploads ──

    @abstractmethod
    async def insert_upload(self, record: UploadRecord) -> UploadRecord: ...

    @abstractmethod
    async def get_upload(self, upload_id: str, user_id: str | None = None) -> UploadRecord | None: ...

    @abstractmethod
    async def update_status(self, upload_id: str, status: ParsingStatus) -> bool:
        """Set parsing_status; returns False when no such upload exists."""

    # ── Candidates ──

    @abstractmethod
    async def get_candidate(self, upload_id: str, user_id: str | None = None) -> CandidateRecord | None: ...

    @abstractmethod
    async def insert_candidate(self, record: CandidateRecord) -> CandidateRecord: ...


class InMemoryResumeStore(ResumeStore):
    """Dict-backed store. Session-scoped, lost on restart."""

    def __init__(self):
        self.files: dict[str, bytes] = {}
        self.uploads: dict[str, UploadRecord] = {}
        self.candidates: dict[str, CandidateRecord] = {}
        self.status_history: dict[str, list[ParsingStatus]] = {}

    async def upload_file(self, path: str, data: bytes, content_type: str | None = None) -> None:
        if path in self.files:
            raise StorageError(f"Object already exists: {path}")
        self.files[path] = data

    async def download(self, path: str) -> bytes:
        try:
            return self.files[path]
        except KeyError:
            raise StorageError(f"Failed to download file: object not found: {path}") from None

    async def delete_file(self, path: str) -> None:
        self.files.pop(path, None)

    async def insert_upload(self, record: UploadRecord) -> UploadRecord:
        if record.id in self.uploads:
            raise PersistenceError(f"Duplicate upload id: {record.id}")
        self.uploads[record.id] = record
        self.status_history[record.id] = [record.parsing_status]
        return record

    async def get_upload(self, upload_id: str, user_id: str | None = None) -> UploadRecord | None:
        record = self.uploads.get(upload_id)
        if record is None or (user_id is not None and record.user_id != user_id):
            return None
        return record

    async def update_status(self, upload_id: str, status: ParsingStatus) -> bool:
        record = self.uploads.get(upload_id)
        if record is None:
            return False
        self.uploads[upload_id] = record.model_copy(update={"parsing_status": status})
        self.status_history[upload_id].append(status)
        return True

    async def get_candidate(self, upload_id: str, user_id: str | None = None) -> CandidateRecord | None:
        record = self.candidates.get(upload_id)
        if record is None or (user_id is not None and record.user_id != user_id):
            return None
        return record

    async def insert_candidate(self, record: CandidateRecord) -> CandidateRecord:
        if record.resume_id in self.candidates:
            raise PersistenceError(f"Candidate already stored for upload {record.resume_id}")
        self.candidates[record.resume_id] = record
        return record
