from resume_intake.api import (
    resume_routes,
    screening_routes,
)

__all__ = [
    "resume_routes",
    "screening_routes",
]
