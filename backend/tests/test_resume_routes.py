from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from conftest import SAMPLE_TEXT, FakeCompletion
from resume_intake.api import resume_routes
from resume_intake.errors import PersistenceError, ServiceError
from resume_intake.main import app
from resume_intake.services.extraction_client import StructuredExtractionClient
from resume_intake.services.ingestion_service import IngestionOrchestrator
from resume_intake.services.resume_store import InMemoryResumeStore
from resume_intake.utils.dependencies import get_orchestrator, get_store

HEADERS = {"X-User-Id": "user-1"}


@pytest.fixture
def client(config, store, fake_completion):
    orchestrator = IngestionOrchestrator(
        config, store, StructuredExtractionClient(config, complete=fake_completion)
    )
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    yield TestClient(app)
    app.dependency_overrides.clear()


def _upload(client, content: bytes, name: str = "resume.txt", parse: bool = True):
    return client.post(
        "/api/resumes/upload",
        params={"parse": str(parse).lower()},
        files={"file": (name, content, "text/plain")},
        headers=HEADERS,
    )


def test_health(client):
    assert client.get("/api/health").json()["status"] == "healthy"


def test_upload_stores_file_and_parses_in_background(client, store):
    response = _upload(client, SAMPLE_TEXT.encode())

    assert response.status_code == 200
    record = response.json()
    assert record["parsing_status"] == "pending"
    assert record["file_path"].startswith("user-1/")
    assert record["file_path"].endswith(".txt")
    assert store.files[record["file_path"]] == SAMPLE_TEXT.encode()

    status = client.get(f"/api/resumes/{record['id']}", headers=HEADERS).json()
    assert status["parsing_status"] == "completed"

    candidate = client.get(f"/api/resumes/{record['id']}/candidate", headers=HEADERS).json()
    assert candidate["full_name"] == "John Smith"
    assert candidate["extraction_error"] is None


def test_upload_requires_user_header(client):
    response = client.post("/api/resumes/upload", files={"file": ("resume.txt", b"x", "text/plain")})
    assert response.status_code == 401


@pytest.mark.parametrize(
    "name, content",
    [("photo.png", b"\x89PNG"), ("resume.txt", b"")],
)
def test_upload_rejects_bad_files(client, name, content):
    assert _upload(client, content, name=name).status_code == 400


def test_parse_trigger_returns_structured_result(client):
    record = _upload(client, SAMPLE_TEXT.encode(), parse=False).json()

    response = client.post(
        "/api/resumes/parse",
        json={"uploadId": record["id"], "filePath": record["file_path"]},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["status"] == "completed"
    assert body["usedFallback"] is False
    assert body["parsedData"]["email"] == "john@example.com"

    again = client.post("/api/resumes/parse", json={"upload_id": record["id"], "file_path": record["file_path"]})
    assert again.status_code == 409


def test_parse_trigger_reports_fallback(client, fake_completion):
    fake_completion.error = ServiceError("Extraction service call failed: APIConnectionError")
    record = _upload(client, SAMPLE_TEXT.encode(), parse=False).json()

    body = client.post("/api/resumes/parse", json={"uploadId": record["id"], "filePath": record["file_path"]}).json()

    assert body["status"] == "completed"
    assert body["usedFallback"] is True
    assert body["parsedData"]["full_name"] == "John Smith"


def test_parse_trigger_insufficient_text(client):
    record = _upload(client, b"hello", parse=False).json()

    response = client.post("/api/resumes/parse", json={"uploadId": record["id"], "filePath": record["file_path"]})

    assert response.status_code == 422
    status = client.get(f"/api/resumes/{record['id']}", headers=HEADERS).json()
    assert status["parsing_status"] == "failed_no_text"


def test_parse_trigger_unknown_upload(client):
    response = client.post("/api/resumes/parse", json={"uploadId": "nope", "filePath": "user-1/1.txt"})
    assert response.status_code == 404


def test_parse_trigger_requires_both_fields(client):
    assert client.post("/api/resumes/parse", json={"uploadId": "x"}).status_code == 422
    assert client.post("/api/resumes/parse", json={"uploadId": "", "filePath": "a"}).status_code == 422


def test_reads_are_scoped_to_the_owner(client):
    record = _upload(client, SAMPLE_TEXT.encode()).json()

    other = {"X-User-Id": "user-2"}
    assert client.get(f"/api/resumes/{record['id']}", headers=other).status_code == 404
    assert client.get(f"/api/resumes/{record['id']}/candidate", headers=other).status_code == 404


def test_candidate_missing_before_parse(client):
    record = _upload(client, SAMPLE_TEXT.encode(), parse=False).json()
    assert client.get(f"/api/resumes/{record['id']}/candidate", headers=HEADERS).status_code == 404


def test_uploads_in_the_same_millisecond_get_distinct_paths(client, monkeypatch):
    monkeypatch.setattr(resume_routes, "time", SimpleNamespace(time=lambda: 1700000000.0))

    first = _upload(client, SAMPLE_TEXT.encode(), parse=False)
    second = _upload(client, SAMPLE_TEXT.encode(), parse=False)

    assert first.status_code == second.status_code == 200
    assert first.json()["file_path"] != second.json()["file_path"]
    assert first.json()["file_path"].startswith("user-1/1700000000000-")


class _FailingInsertStore(InMemoryResumeStore):
    async def insert_upload(self, record):
        raise PersistenceError("Failed to store upload record: connection reset")


def test_failed_record_insert_removes_stored_file(client):
    store = _FailingInsertStore()
    app.dependency_overrides[get_store] = lambda: store

    response = _upload(client, SAMPLE_TEXT.encode())

    assert response.status_code == 500
    assert store.files == {}
    assert store.uploads == {}
