from pydantic import BaseModel
from typing import Optional


class ScreeningExperience(BaseModel):
    """Only the title of an experience entry matters for question templating."""

    title: Optional[str] = None


class ScreeningCandidate(BaseModel):
    """Candidate profile as the dashboard sends it."""

    name: Optional[str] = None
    skills: list[str] = []
    experience: list[ScreeningExperience] = []


class ScreeningRequest(BaseModel):
    candidate: ScreeningCandidate


class ScreeningResponse(BaseModel):
    questions: list[str]
