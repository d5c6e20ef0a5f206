import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from resume_intake.config import settings
from resume_intake.api import resume_routes, screening_routes

logging.basicConfig(level=settings.log_level.upper(), format=settings.log_format)

app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    description="Resume upload intake: text extraction, structured parsing and screening",
    debug=settings.debug,
)

# ── CORS ────────────────────────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ─────────────────────────────────────────────────────────────────

app.include_router(resume_routes.router, prefix="/api/resumes", tags=["Resumes"])
app.include_router(screening_routes.router, prefix="/api/screening", tags=["Screening"])

# ── Health Check ────────────────────────────────────────────────────────────


@app.get("/api/health")
async def health_check():
    return {"status": "healthy", "app": settings.app_name, "version": "0.1.0"}
