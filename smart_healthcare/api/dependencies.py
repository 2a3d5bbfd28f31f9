"""FastAPI dependencies for the recommendation endpoints."""

from __future__ import annotations

from functools import lru_cache

from fastapi import HTTPException, status
from loguru import logger

from smart_healthcare.llm.gateway import LLMGateway, OpenAIGateway
from smart_healthcare.recommendations.errors import GatewayError


@lru_cache(maxsize=1)
def _openai_gateway() -> OpenAIGateway:
    return OpenAIGateway()


def get_gateway() -> LLMGateway:
    """Shared OpenAI gateway; tests override this dependency with a fake.

    Raises:
        HTTPException: 503 if the gateway cannot be configured
    """
    try:
        return _openai_gateway()
    except GatewayError as e:
        logger.error(f"LLM gateway unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="AI service is not configured",
        ) from e
