"""
Request-scoped helpers — resolve the calling user, the store and the pipeline.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Header, HTTPException

from resume_intake.config import PipelineConfig, settings
from resume_intake.services.ingestion_service import IngestionOrchestrator
from resume_intake.services.resume_store import InMemoryResumeStore, ResumeStore


@lru_cache
def get_store() -> ResumeStore:
    """Process-wide store chosen by STORE_BACKEND ("supabase" | "memory")."""
    if settings.store_backend == "memory":
        return InMemoryResumeStore()
    from resume_intake.services.supabase_store import SupabaseResumeStore

    return SupabaseResumeStore.from_settings(settings)


@lru_cache
def get_pipeline_config() -> PipelineConfig:
    return PipelineConfig.from_settings(settings)


def get_orchestrator(
    store: ResumeStore = Depends(get_store),
    config: PipelineConfig = Depends(get_pipeline_config),
) -> IngestionOrchestrator:
    return IngestionOrchestrator(config=config, store=store)


async def get_user_id(x_user_id: str | None = Header(None, alias="X-User-Id")) -> str:
    """FastAPI dependency: the owning user for scoped reads and uploads."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()
