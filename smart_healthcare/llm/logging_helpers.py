"""Helper functions for logging LLM requests and responses."""

from __future__ import annotations

from loguru import logger
from pydantic import BaseModel

from smart_healthcare.recommendations.pipeline.types import Prompt

_PREVIEW_CHARS = 1000


def log_llm_request(
    context: str,
    prompt: Prompt,
    attempt: int | None = None,
) -> None:
    """Log the actual prompt submitted to LLM.

    Args:
        context: Context description (e.g., "Diet Recommendation")
        prompt: System and user messages sent to LLM
        attempt: Optional attempt number for retries
    """
    extra_data: dict[str, str | int] = {
        "system_prompt": prompt.system,
        "user_prompt": prompt.user,
    }
    if attempt is not None:
        extra_data["attempt"] = attempt

    logger.debug(
        f"LLM Request: {context} - PROMPT SUBMITTED",
        **extra_data,
    )


def log_llm_raw_response(
    context: str,
    content: str,
    completion_tokens: int | None = None,
    attempt: int | None = None,
) -> None:
    """Log the raw text returned by the LLM before extraction."""
    extra_data: dict[str, str | int] = {
        "raw_response": content,
        "raw_response_length": len(content),
    }
    if completion_tokens is not None:
        extra_data["completion_tokens"] = completion_tokens
    if attempt is not None:
        extra_data["attempt"] = attempt

    logger.debug(
        f"LLM Response: {context} - RAW OUTPUT",
        **extra_data,
    )


def log_llm_extracted_fields(
    context: str,
    parsed_output: BaseModel,
    attempt: int | None = None,
) -> None:
    """Log the top-level fields of a decoded result.

    Long values are summarized so per-day maps don't flood the log.
    """
    extra_data: dict[str, object] = {}
    if attempt is not None:
        extra_data["attempt"] = attempt

    for key, value in parsed_output.model_dump(by_alias=True).items():
        if isinstance(value, str) and len(value) > _PREVIEW_CHARS:
            extra_data[key] = value[:_PREVIEW_CHARS] + "... (truncated)"
        elif isinstance(value, dict):
            extra_data[key] = f"dict (keys: {sorted(value)})"
        elif isinstance(value, list) and len(str(value)) > _PREVIEW_CHARS:
            extra_data[key] = f"list (length: {len(value)})"
        else:
            extra_data[key] = value

    logger.debug(
        f"LLM Response: {context} - EXTRACTED FIELDS",
        **extra_data,
    )
