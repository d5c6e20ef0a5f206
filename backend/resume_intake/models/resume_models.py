from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ── Status ──────────────────────────────────────────────────────────────────


class ParsingStatus(str, Enum):
    """Per-upload parsing status. Only the ingestion orchestrator moves it past PENDING."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    FAILED_NO_TEXT = "failed_no_text"
    FAILED_EXCEPTION = "failed_exception"

    @property
    def is_terminal(self) -> bool:
        return self not in (ParsingStatus.PENDING, ParsingStatus.PROCESSING)


# ── Extraction Schema ───────────────────────────────────────────────────────


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class ExperienceEntry(BaseModel):
    """A single work experience entry."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    title: Optional[str] = None
    company: Optional[str] = None
    duration: Optional[str] = None
    description: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _strip_blank(cls, value: Any) -> Any:
        return _blank_to_none(value)


class EducationEntry(BaseModel):
    """A single education entry."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    degree: Optional[str] = None
    institution: Optional[str] = None
    year: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _strip_blank(cls, value: Any) -> Any:
        return _blank_to_none(value)


class CandidateFields(BaseModel):
    """
    The fixed extraction contract shared by the LLM client and the fallback
    extractor. Missing values are None / [] and never an empty string.
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    summary: Optional[str] = None
    skills: list[str] = Field(default_factory=list)
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)

    @field_validator("full_name", "email", "phone", "location", "summary", mode="before")
    @classmethod
    def _strip_scalars(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("skills", mode="before")
    @classmethod
    def _split_skills(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [s.strip() for s in value.split(",") if s.strip()]
        if isinstance(value, list):
            return [s.strip() if isinstance(s, str) else s for s in value if s not in ("", None)]
        return value

    @field_validator("experience", "education", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value


# ── Records ─────────────────────────────────────────────────────────────────


class UploadRecord(BaseModel):
    """One submitted document (row in the `resumes` table)."""

    id: str
    user_id: str
    file_name: str
    file_path: str
    file_size: int = 0
    mime_type: Optional[str] = None
    parsing_status: ParsingStatus = ParsingStatus.PENDING
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CandidateRecord(CandidateFields):
    """Structured result for one UploadRecord (row in `parsed_resume_details`)."""

    resume_id: str
    user_id: str
    raw_text_content: str = ""
    extraction_error: Optional[str] = None  # set only when the fallback extractor produced the fields

    @property
    def used_fallback(self) -> bool:
        return self.extraction_error is not None

    @classmethod
    def from_fields(
        cls,
        fields: CandidateFields,
        *,
        resume_id: str,
        user_id: str,
        raw_text: str,
        extraction_error: str | None = None,
    ) -> "CandidateRecord":
        return cls(
            **fields.model_dump(),
            resume_id=resume_id,
            user_id=user_id,
            raw_text_content=raw_text,
            extraction_error=extraction_error,
        )

    def to_fields(self) -> CandidateFields:
        return CandidateFields(**self.model_dump(include=set(CandidateFields.model_fields)))

    def to_row(self) -> dict[str, Any]:
        """Column mapping used by the database collaborator."""
        return {
            "resume_id": self.resume_id,
            "user_id": self.user_id,
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "location": self.location,
            "summary": self.summary,
            "skills_json": self.skills,
            "experience_json": [e.model_dump() for e in self.experience],
            "education_json": [e.model_dump() for e in self.education],
            "raw_text_content": self.raw_text_content,
            "extraction_error": self.extraction_error,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "CandidateRecord":
        return cls(
            resume_id=str(row["resume_id"]),
            user_id=str(row["user_id"]),
            full_name=row.get("full_name"),
            email=row.get("email"),
            phone=row.get("phone"),
            location=row.get("location"),
            summary=row.get("summary"),
            skills=row.get("skills_json") or [],
            experience=row.get("experience_json") or [],
            education=row.get("education_json") or [],
            raw_text_content=row.get("raw_text_content") or "",
            extraction_error=row.get("extraction_error"),
        )


# ── API Models ──────────────────────────────────────────────────────────────


class ParseTriggerRequest(BaseModel):
    """Trigger payload: exactly the upload id and its storage path."""

    model_config = ConfigDict(populate_by_name=True)

    upload_id: str = Field(alias="uploadId", min_length=1)
    file_path: str = Field(alias="filePath", min_length=1)


class ParseResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    status: ParsingStatus
    used_fallback: bool = Field(alias="usedFallback")
    parsed_data: CandidateFields = Field(alias="parsedData")
