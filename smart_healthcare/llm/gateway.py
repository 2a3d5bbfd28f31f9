"""Chat-completion gateway used by the recommendation pipeline.

The pipeline only needs the raw response as a plain dict in the provider's
chat-completions shape (``choices[0].message.content``, ``usage``, optional
``error``). Anything that can produce that dict can stand in for OpenAI.
"""

from __future__ import annotations

from typing import Any, Protocol

from loguru import logger
from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, Field

from smart_healthcare.config.settings import settings
from smart_healthcare.recommendations.errors import GatewayError

JSON_OBJECT_FORMAT: dict[str, str] = {"type": "json_object"}


class ChatCompletionRequest(BaseModel):
    model: str
    messages: list[dict[str, str]]
    temperature: float = Field(ge=0.0, le=2.0)
    max_tokens: int = Field(gt=0)
    response_format: dict[str, str] | None = None

    def to_kwargs(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class LLMGateway(Protocol):
    async def chat_completions(self, request: ChatCompletionRequest) -> dict[str, Any] | None:
        """Perform one chat completion.

        Raises:
            GatewayError: If the provider call fails
        """
        ...


class OpenAIGateway:
    """Gateway backed by the OpenAI chat completions API."""

    def __init__(self, client: AsyncOpenAI | None = None) -> None:
        if client is None:
            if not settings.openai_api_key:
                raise GatewayError(
                    "OPENAI_API_KEY not set. AI recommendations require an OpenAI API key. "
                    "Set OPENAI_API_KEY environment variable."
                )
            client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                base_url=settings.openai_base_url,
                # attempt deadlines are enforced by the orchestrator
                max_retries=0,
            )
            logger.info(f"Initialized OpenAIGateway with base_url={settings.openai_base_url}")
        self._client = client

    async def chat_completions(self, request: ChatCompletionRequest) -> dict[str, Any] | None:
        try:
            response = await self._client.chat.completions.create(**request.to_kwargs())
        except OpenAIError as e:
            logger.error(f"OpenAI chat completion failed: {type(e).__name__}: {e}")
            raise GatewayError(f"OpenAI chat completion failed: {e}") from e

        if response is None:
            return None
        return response.model_dump()
