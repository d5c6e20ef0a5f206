from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, UploadFile
import logging
import time
import uuid

from resume_intake.config import settings
from resume_intake.errors import (
    CandidateAlreadyExists,
    IngestionError,
    InsufficientText,
    InvalidTriggerRequest,
    PersistenceError,
    StorageError,
    UnsupportedFormat,
    UploadNotFound,
)
from resume_intake.models.resume_models import (
    CandidateRecord,
    ParseResponse,
    ParseTriggerRequest,
    UploadRecord,
)
from resume_intake.services.ingestion_service import IngestionOrchestrator
from resume_intake.services.resume_store import ResumeStore
from resume_intake.services.text_extractor import SUPPORTED_EXTENSIONS
from resume_intake.utils.dependencies import get_orchestrator, get_store, get_user_id

logger = logging.getLogger(__name__)

router = APIRouter()

# Known ingestion failures → HTTP status; anything unlisted is a 500
_ERROR_STATUS = {
    InsufficientText: 422,
    UnsupportedFormat: 415,
    InvalidTriggerRequest: 400,
    UploadNotFound: 404,
    CandidateAlreadyExists: 409,
    StorageError: 502,
    PersistenceError: 500,
}


def _http_error(error: Exception) -> HTTPException:
    for error_type, status_code in _ERROR_STATUS.items():
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=500, detail=f"Resume parsing failed: {error}")


async def _parse_in_background(orchestrator: IngestionOrchestrator, upload_id: str, file_path: str) -> None:
    """Background trigger after upload; the outcome is visible through parsing_status."""
    try:
        await orchestrator.run(upload_id, file_path)
    except IngestionError as e:
        logger.warning(f"Background parse of {upload_id} ended with {type(e).__name__}: {e}")


async def _discard_file(store: ResumeStore, file_path: str) -> None:
    """Remove an object whose upload record could not be written."""
    try:
        await store.delete_file(file_path)
    except StorageError as e:
        logger.error(f"Orphaned storage object {file_path}: {e}")


@router.post("/upload", response_model=UploadRecord)
async def upload_resume(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    parse: bool = True,
    user_id: str = Depends(get_user_id),
    store: ResumeStore = Depends(get_store),
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
):
    """Accept one resume (PDF/DOC/DOCX/TXT), store it, and queue parsing."""
    if not file.filename:
        raise HTTPException(status_code=400, detail="No file provided")

    ext = file.filename.rsplit(".", 1)[-1].lower() if "." in file.filename else ""
    if ext not in SUPPORTED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: .{ext}. Please upload PDF, DOC, DOCX or TXT.",
        )

    file_bytes = await file.read()
    if not file_bytes:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    if len(file_bytes) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=400,
            detail=f"File too large (max {settings.max_upload_bytes // (1024 * 1024)} MB)",
        )

    record = UploadRecord(
        id=str(uuid.uuid4()),
        user_id=user_id,
        file_name=file.filename,
        file_path=f"{user_id}/{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}.{ext}",
        file_size=len(file_bytes),
        mime_type=file.content_type,
    )

    try:
        await store.upload_file(record.file_path, file_bytes, content_type=file.content_type)
    except IngestionError as e:
        raise _http_error(e)

    try:
        record = await store.insert_upload(record)
    except IngestionError as e:
        await _discard_file(store, record.file_path)
        raise _http_error(e)

    logger.info(f"Accepted upload {record.id} ({record.file_name}, {record.file_size} bytes) for user {user_id}")

    if parse:
        background_tasks.add_task(_parse_in_background, orchestrator, record.id, record.file_path)
    return record


@router.post("/parse", response_model=ParseResponse)
async def parse_resume(
    body: ParseTriggerRequest,
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
):
    """Run the ingestion pipeline once for an accepted upload."""
    try:
        outcome = await orchestrator.run(body.upload_id, body.file_path)
    except Exception as e:
        logger.error(f"Error parsing resume {body.upload_id}: {e}")
        raise _http_error(e)

    return ParseResponse(
        success=True,
        status=outcome.status,
        used_fallback=outcome.used_fallback,
        parsed_data=outcome.candidate.to_fields(),
    )


@router.get("/{upload_id}", response_model=UploadRecord)
async def get_upload(
    upload_id: str,
    user_id: str = Depends(get_user_id),
    store: ResumeStore = Depends(get_store),
):
    """Upload record with its current parsing_status."""
    try:
        record = await store.get_upload(upload_id, user_id=user_id)
    except PersistenceError as e:
        raise _http_error(e)
    if not record:
        raise HTTPException(status_code=404, detail=f"Resume '{upload_id}' not found")
    return record


@router.get("/{upload_id}/candidate", response_model=CandidateRecord)
async def get_candidate(
    upload_id: str,
    user_id: str = Depends(get_user_id),
    store: ResumeStore = Depends(get_store),
):
    """Parsed candidate details for an upload."""
    try:
        record = await store.get_candidate(upload_id, user_id=user_id)
    except PersistenceError as e:
        raise _http_error(e)
    if not record:
        raise HTTPException(status_code=404, detail=f"No parsed data for resume '{upload_id}'")
    return record
