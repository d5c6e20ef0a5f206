"""
LLM Service — one chat completion per call via LiteLLM.

Responsibilities:
  • Resolve the provider/model registry key to a LiteLLM model id
  • Send a single completion (no retries) with an explicit timeout
  • Wrap every transport / status failure in ServiceError
  • Recover a JSON object from replies that wrap it in prose or code fences
"""

from __future__ import annotations

import json
import logging
from typing import Any

import litellm
from litellm import acompletion

from resume_intake.config import MODELS
from resume_intake.errors import SchemaParseError, ServiceError

logger = logging.getLogger(__name__)

# Silence verbose LiteLLM logs
litellm.suppress_debug_info = True
litellm.set_verbose = False


# ── Helpers ──────────────────────────────────────────────────────────────────


def resolve_model_id(provider: str, model_key: str) -> str:
    """Look up the LiteLLM model_id from our registry."""
    provider_models = MODELS.get(provider)
    if not provider_models:
        raise ValueError(f"Unknown provider: {provider}")
    model_entry = provider_models.get(model_key)
    if not model_entry:
        raise ValueError(f"Unknown model: {model_key} for provider {provider}")
    return model_entry["model_id"]


# ── Core Completion ──────────────────────────────────────────────────────────


async def complete(
    *,
    provider: str,
    model_key: str,
    api_key: str | None,
    messages: list[dict[str, str]],
    temperature: float = 0.0,
    max_tokens: int = 2000,
    timeout: float | None = None,
    json_mode: bool = False,
) -> str:
    """
    Send a chat completion request via LiteLLM.

    Args:
        provider:    "groq" | "google"
        model_key:   Key from MODELS registry (e.g. "llama-3.1-8b")
        api_key:     Provider API key (None lets LiteLLM read its own env var)
        messages:    OpenAI-format message list
        temperature: Sampling temperature (0 for deterministic extraction)
        max_tokens:  Completion token ceiling
        timeout:     Seconds before the call is abandoned
        json_mode:   If True, request a JSON object response

    Returns:
        The assistant's response text.

    Raises:
        ServiceError on any transport, timeout or non-success status.
    """
    model_id = resolve_model_id(provider, model_key)

    kwargs: dict[str, Any] = {
        "model": model_id,
        "messages": messages,
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    if api_key:
        kwargs["api_key"] = api_key
    if timeout is not None:
        kwargs["timeout"] = timeout
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}

    logger.info(f"LLM call: provider={provider} model={model_id} temp={temperature} tokens={max_tokens}")

    try:
        response = await acompletion(**kwargs)
    except Exception as e:
        status = getattr(e, "status_code", None)
        body = getattr(e, "message", None) or str(e)
        logger.error(f"LLM error ({provider}/{model_key}): status={status} {body[:300]}")
        raise ServiceError(f"Extraction service call failed: {type(e).__name__}", status=status, body=body) from e

    try:
        content = response.choices[0].message.content or ""
    except (AttributeError, IndexError, TypeError) as e:
        raise SchemaParseError(f"Malformed extraction response: {type(e).__name__}: {e}") from e
    logger.info(f"LLM response: {len(content)} chars, usage={getattr(response, 'usage', None)}")
    return content


# ── JSON Recovery ────────────────────────────────────────────────────────────


def parse_json_object(raw: str) -> dict[str, Any]:
    """
    Parse a JSON object out of an LLM reply.

    Tries the trimmed reply as-is, then the span from the first "{" to the
    last "}" (which also covers ```json fences and leading prose).
    """
    text = raw.strip()
    if not text:
        raise SchemaParseError("Extraction service returned empty content")

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        start = text.find("{")
        end = text.rfind("}")
        if start == -1 or end <= start:
            raise SchemaParseError(f"No JSON object in extraction response: {text[:200]}...")
        try:
            data = json.loads(text[start:end + 1])
        except json.JSONDecodeError as e:
            raise SchemaParseError(f"Could not parse extraction response as JSON: {e}") from e

    if not isinstance(data, dict):
        raise SchemaParseError(f"Expected a JSON object, got {type(data).__name__}")
    return data
