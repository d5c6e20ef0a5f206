from pydantic import BaseModel
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Resume Intake"
    debug: bool = False

    # CORS
    frontend_url: str = "http://localhost:5173"

    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Supabase (storage bucket + tables)
    store_backend: str = "supabase"  # "supabase" | "memory"
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    storage_bucket: str = "resumes"
    uploads_table: str = "resumes"
    candidates_table: str = "parsed_resume_details"

    # LLM
    llm_provider: str = "groq"
    llm_model_key: str = "llama-3.1-8b"
    llm_api_key: Optional[str] = None
    llm_timeout_seconds: float = 30.0
    llm_max_tokens: int = 2000

    # Ingestion limits
    max_text_length: int = 8000
    min_text_length: int = 50
    truncation_lookback: int = 100
    max_upload_bytes: int = 10 * 1024 * 1024

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()


# ── Model Registry ──────────────────────────────────────────────────────────

MODELS = {
    "groq": {
        "llama-3.1-8b": {
            "model_id": "groq/llama-3.1-8b-instant",
        },
        "llama-3.3-70b": {
            "model_id": "groq/llama-3.3-70b-versatile",
        },
    },
    "google": {
        "gemini-2.0-flash": {
            "model_id": "gemini/gemini-2.0-flash",
        },
    },
}

# ── Prompt Configuration ────────────────────────────────────────────────────

PROMPT_CONFIG = {
    "resume_extractor": {"temperature": 0.0, "max_tokens": 2000},
}


# ── Pipeline Configuration ──────────────────────────────────────────────────


class PipelineConfig(BaseModel):
    """Explicit knobs for one ingestion pipeline, built once and injected."""

    provider: str = "groq"
    model_key: str = "llama-3.1-8b"
    api_key: Optional[str] = None
    temperature: float = PROMPT_CONFIG["resume_extractor"]["temperature"]
    max_tokens: int = PROMPT_CONFIG["resume_extractor"]["max_tokens"]
    timeout_seconds: float = 30.0
    json_mode: bool = True

    max_text_length: int = 8000
    min_text_length: int = 50
    truncation_lookback: int = 100

    model_config = {"frozen": True}

    @classmethod
    def from_settings(cls, s: Settings) -> "PipelineConfig":
        return cls(
            provider=s.llm_provider,
            model_key=s.llm_model_key,
            api_key=s.llm_api_key,
            max_tokens=s.llm_max_tokens,
            timeout_seconds=s.llm_timeout_seconds,
            max_text_length=s.max_text_length,
            min_text_length=s.min_text_length,
            truncation_lookback=s.truncation_lookback,
        )
