"""
Supabase Store — ResumeStore over Supabase Storage + Postgres tables.

Tables (created by the upload flow's migrations):
  • resumes:               id, user_id, file_name, file_path, file_size, mime_type, parsing_status, created_at
  • parsed_resume_details: resume_id, user_id, full_name, email, phone, location, summary,
                           skills_json, experience_json, education_json, raw_text_content, extraction_error

The supabase client is synchronous; every call runs in a worker thread.
No transaction spans the candidate insert and the status update.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from supabase import Client, create_client

from resume_intake.config import Settings
from resume_intake.errors import PersistenceError, StorageError
from resume_intake.models.resume_models import CandidateRecord, ParsingStatus, UploadRecord
from resume_intake.services.resume_store import ResumeStore

logger = logging.getLogger(__name__)


class SupabaseResumeStore(ResumeStore):
    def __init__(
        self,
        client: Client,
        bucket: str = "resumes",
        uploads_table: str = "resumes",
        candidates_table: str = "parsed_resume_details",
    ):
        self.client = client
        self.bucket = bucket
        self.uploads_table = uploads_table
        self.candidates_table = candidates_table

    @classmethod
    def from_settings(cls, s: Settings) -> "SupabaseResumeStore":
        if not (s.supabase_url and s.supabase_key):
            raise RuntimeError("Missing SUPABASE_URL / SUPABASE_KEY in env.")
        return cls(
            create_client(s.supabase_url, s.supabase_key),
            bucket=s.storage_bucket,
            uploads_table=s.uploads_table,
            candidates_table=s.candidates_table,
        )

    # ── Storage ──────────────────────────────────────────────────────────────

    async def upload_file(self, path: str, data: bytes, content_type: str | None = None) -> None:
        options = {"content-type": content_type or "application/octet-stream"}
        try:
            await asyncio.to_thread(self.client.storage.from_(self.bucket).upload, path, data, options)
        except Exception as e:
            raise StorageError(f"Failed to upload file: {e}") from e

    async def download(self, path: str) -> bytes:
        try:
            return await asyncio.to_thread(self.client.storage.from_(self.bucket).download, path)
        except Exception as e:
            raise StorageError(f"Failed to download file: {e}") from e

    async def delete_file(self, path: str) -> None:
        try:
            await asyncio.to_thread(self.client.storage.from_(self.bucket).remove, [path])
        except Exception as e:
            raise StorageError(f"Failed to delete file: {e}") from e

    # ── Uploads ──────────────────────────────────────────────────────────────

    async def insert_upload(self, record: UploadRecord) -> UploadRecord:
        row = record.model_dump(mode="json")
        data = await self._execute(
            lambda: self.client.table(self.uploads_table).insert(row).execute(),
            "store upload record",
        )
        return UploadRecord(**data[0]) if data else record

    async def get_upload(self, upload_id: str, user_id: str | None = None) -> UploadRecord | None:
        def query():
            q = self.client.table(self.uploads_table).select("*").eq("id", upload_id)
            if user_id is not None:
                q = q.eq("user_id", user_id)
            return q.limit(1).execute()

        data = await self._execute(query, "get resume data")
        return UploadRecord(**data[0]) if data else None

    async def update_status(self, upload_id: str, status: ParsingStatus) -> bool:
        data = await self._execute(
            lambda: self.client.table(self.uploads_table)
            .update({"parsing_status": status.value})
            .eq("id", upload_id)
            .execute(),
            "update parsing status",
        )
        return bool(data)

    # ── Candidates ───────────────────────────────────────────────────────────

    async def get_candidate(self, upload_id: str, user_id: str | None = None) -> CandidateRecord | None:
        def query():
            q = self.client.table(self.candidates_table).select("*").eq("resume_id", upload_id)
            if user_id is not None:
                q = q.eq("user_id", user_id)
            return q.limit(1).execute()

        data = await self._execute(query, "get parsed data")
        return CandidateRecord.from_row(data[0]) if data else None

    async def insert_candidate(self, record: CandidateRecord) -> CandidateRecord:
        await self._execute(
            lambda: self.client.table(self.candidates_table).insert(record.to_row()).execute(),
            "store parsed data",
        )
        return record

    # ── Helpers ──────────────────────────────────────────────────────────────

    async def _execute(self, call, action: str) -> list[dict[str, Any]]:
        try:
            response = await asyncio.to_thread(call)
        except Exception as e:
            logger.error(f"Supabase: failed to {action}: {e}")
            raise PersistenceError(f"Failed to {action}: {e}") from e
        return response.data or []
