"""
Structured Extraction Client — resume text in, CandidateFields (or a typed failure) out.

The client never raises for extraction problems. It returns either an
ExtractionSuccess or an ExtractionFailure carrying the ServiceError /
SchemaParseError, and the orchestrator decides whether to fall back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Union

from pydantic import ValidationError

from resume_intake.config import PipelineConfig
from resume_intake.errors import ExtractionError, SchemaParseError
from resume_intake.models.resume_models import CandidateFields
from resume_intake.prompts.resume_extractor import SYSTEM_PROMPT, USER_PROMPT_TEMPLATE
from resume_intake.services import llm_service

logger = logging.getLogger(__name__)

CompletionFn = Callable[..., Awaitable[str]]


@dataclass(frozen=True)
class ExtractionSuccess:
    fields: CandidateFields


@dataclass(frozen=True)
class ExtractionFailure:
    error: ExtractionError

    @property
    def reason(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"


ExtractionResult = Union[ExtractionSuccess, ExtractionFailure]


class StructuredExtractionClient:
    """Sends one deterministic completion per resume and validates the reply."""

    def __init__(
        self,
        config: PipelineConfig,
        complete: CompletionFn = llm_service.complete,
        system_prompt: str = SYSTEM_PROMPT,
    ):
        self.config = config
        self._complete = complete
        self._system_prompt = system_prompt

    def build_messages(self, cleaned_text: str) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self._system_prompt},
            {"role": "user", "content": USER_PROMPT_TEMPLATE.format(resume_text=cleaned_text)},
        ]

    async def extract(self, cleaned_text: str) -> ExtractionResult:
        try:
            raw = await self._complete(
                provider=self.config.provider,
                model_key=self.config.model_key,
                api_key=self.config.api_key,
                messages=self.build_messages(cleaned_text),
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
                timeout=self.config.timeout_seconds,
                json_mode=self.config.json_mode,
            )
        except ExtractionError as e:
            return ExtractionFailure(error=e)

        try:
            data = llm_service.parse_json_object(raw)
            fields = validate_fields(data)
        except SchemaParseError as e:
            logger.warning(f"Extraction response rejected: {e}")
            return ExtractionFailure(error=e)

        logger.info(
            f"Extracted fields: name={fields.full_name!r} skills={len(fields.skills)} "
            f"experience={len(fields.experience)} education={len(fields.education)}"
        )
        return ExtractionSuccess(fields=fields)


def validate_fields(data: dict[str, Any]) -> CandidateFields:
    """Type-check a parsed JSON object against the extraction schema."""
    known = set(CandidateFields.model_fields)
    if not known.intersection(data):
        raise SchemaParseError(f"Response has none of the expected fields (got {sorted(data)[:10]})")

    try:
        return CandidateFields.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()[:5]
        )
        raise SchemaParseError(f"Response does not match the extraction schema: {problems}") from e
