"""
Screening Service — templated first-round screening questions for a candidate.
"""

from __future__ import annotations

from resume_intake.models.screening_models import ScreeningCandidate

DEFAULT_SKILLS = "technical skills"
DEFAULT_ROLE = "your background"


def generate_screening_questions(candidate: ScreeningCandidate) -> list[str]:
    """Fill the question templates from the top three skills and the latest role."""
    top_skills = [s for s in candidate.skills if s and s.strip()][:3]
    skills = ", ".join(top_skills) or DEFAULT_SKILLS
    role = next((e.title for e in candidate.experience[:1] if e.title), DEFAULT_ROLE)

    return [
        f"What specific experience do you have with {skills}?",
        f"Can you describe a challenging project you worked on as a {role}?",
        f"How do you approach problem-solving when working with {skills}?",
        "What interests you most about this role and our company?",
        "How do you stay updated with the latest trends in your field?",
        "Can you walk me through your experience with team collaboration?",
        "What are your salary expectations for this position?",
        "When would you be available to start if selected?",
    ]
