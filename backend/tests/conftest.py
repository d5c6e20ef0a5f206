import os

# Use litellm's bundled model cost map instead of fetching it over the network at import.
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

import json

import pytest

from resume_intake.config import PipelineConfig
from resume_intake.models.resume_models import UploadRecord
from resume_intake.services.extraction_client import StructuredExtractionClient
from resume_intake.services.ingestion_service import IngestionOrchestrator
from resume_intake.services.resume_store import InMemoryResumeStore

SAMPLE_TEXT = "John Smith john@example.com 555-123-4567 New York, NY Skills: Python, SQL"

STRUCTURED_RESUME = """Jane Doe
jane.doe@example.com | (555) 987-6543
Austin, TX

Summary
Backend developer with 6 years of experience building APIs.

Skills
Python, Django, PostgreSQL, Docker

Experience
Senior Software Engineer at Acme Corp, Jan 2019 - Present

Education
Bachelor of Science in Computer Science, University of Texas, 2016
"""

LLM_REPLY = {
    "full_name": "John Smith",
    "email": "john@example.com",
    "phone": "555-123-4567",
    "location": "New York, NY",
    "summary": None,
    "skills": ["Python", "SQL"],
    "experience": [
        {"title": "Data Engineer", "company": "Acme", "duration": "2019 - 2023", "description": None}
    ],
    "education": [],
}


class FakeCompletion:
    """Stands in for llm_service.complete; records every call."""

    def __init__(self, reply: str | None = None, error: Exception | None = None):
        self.reply = reply if reply is not None else json.dumps(LLM_REPLY)
        self.error = error
        self.calls: list[dict] = []

    async def __call__(self, **kwargs) -> str:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def config():
    return PipelineConfig(api_key="test-key")


@pytest.fixture
def store():
    return InMemoryResumeStore()


@pytest.fixture
def fake_completion():
    return FakeCompletion()


@pytest.fixture
def orchestrator(config, store, fake_completion):
    client = StructuredExtractionClient(config, complete=fake_completion)
    return IngestionOrchestrator(config=config, store=store, client=client)


@pytest.fixture
def seed_upload(store):
    """Put file bytes and a pending UploadRecord into the store."""

    async def _seed(
        data: bytes,
        file_name: str = "resume.txt",
        upload_id: str = "upload-1",
        user_id: str = "user-1",
        mime_type: str | None = None,
        store_bytes: bool = True,
    ) -> UploadRecord:
        ext = file_name.rsplit(".", 1)[-1]
        record = UploadRecord(
            id=upload_id,
            user_id=user_id,
            file_name=file_name,
            file_path=f"{user_id}/1700000000000.{ext}",
            file_size=len(data),
            mime_type=mime_type,
        )
        if store_bytes:
            await store.upload_file(record.file_path, data, mime_type)
        return await store.insert_upload(record)

    return _seed
