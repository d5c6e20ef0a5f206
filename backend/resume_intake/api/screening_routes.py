from fastapi import APIRouter

from resume_intake.models.screening_models import ScreeningRequest, ScreeningResponse
from resume_intake.services.screening_service import generate_screening_questions

router = APIRouter()


@router.post("/questions", response_model=ScreeningResponse)
async def screening_questions(req: ScreeningRequest):
    """Templated screening questions for one candidate. No LLM call."""
    return ScreeningResponse(questions=generate_screening_questions(req.candidate))
