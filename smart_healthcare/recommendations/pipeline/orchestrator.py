"""Retry loop driving gateway call, extraction, decoding and validation.

One run per request. Attempts are strictly sequential; each one is recorded as
an :class:`AttemptRecord` and the run stops at the first valid result. When all
attempts fail the policy's terminal behavior applies: hand back a labeled
fallback value, or raise :class:`RecommendationFailedError`.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from loguru import logger
from pydantic import BaseModel

from smart_healthcare.llm.gateway import JSON_OBJECT_FORMAT, ChatCompletionRequest, LLMGateway
from smart_healthcare.llm.logging_helpers import (
    log_llm_extracted_fields,
    log_llm_raw_response,
    log_llm_request,
)
from smart_healthcare.recommendations.errors import RecommendationFailedError
from smart_healthcare.recommendations.pipeline.decoding import SchemaDecoder
from smart_healthcare.recommendations.pipeline.escalation import EscalateFn, escalate_prompt
from smart_healthcare.recommendations.pipeline.extraction import extract_json_object
from smart_healthcare.recommendations.pipeline.types import (
    AttemptOutcome,
    AttemptRecord,
    DecodeFailure,
    Fallback,
    GatewayFailure,
    PipelineRun,
    Prompt,
    RawModelResponse,
    RetryPolicy,
    SelectionContext,
    ValidationReport,
)

ResultT = TypeVar("ResultT", bound=BaseModel)

Validator = Callable[[ResultT, SelectionContext], ValidationReport]

# Completions using this share of max_tokens were most likely cut off
TRUNCATION_WARNING_RATIO = 0.95


def calculate_backoff_delay(attempt: int, base_delay: float = 1.0, max_delay: float = 60.0) -> float:
    """Calculate exponential backoff delay.

    Args:
        attempt: Current attempt number (0-indexed)
        base_delay: Base delay in seconds
        max_delay: Maximum delay in seconds

    Returns:
        Delay in seconds
    """
    delay = base_delay * (2**attempt)
    return min(delay, max_delay)


def read_model_response(payload: dict[str, Any] | None, max_tokens: int | None = None) -> RawModelResponse | GatewayFailure:
    """Turn a chat-completions payload into the answer text, or a gateway failure.

    Args:
        payload: Raw gateway response
        max_tokens: Completion budget of the request, used for the truncation warning

    Returns:
        RawModelResponse with content and usage, or GatewayFailure when the
        payload is missing, carries an error, or has no usable content
    """
    if payload is None:
        return GatewayFailure("gateway returned no response")
    if not isinstance(payload, dict):
        return GatewayFailure("gateway response is malformed")

    error = payload.get("error")
    if error:
        return GatewayFailure(f"gateway reported an error: {error}")

    choices = payload.get("choices") or []
    if not isinstance(choices, list):
        return GatewayFailure("gateway response is malformed")
    if not choices:
        return GatewayFailure("gateway response has no choices")

    choice = choices[0]
    message = choice.get("message") if isinstance(choice, dict) else None
    if not isinstance(message, dict):
        return GatewayFailure("gateway response is malformed")
    content = message.get("content")
    if not isinstance(content, str) or not content.strip():
        return GatewayFailure("gateway response content is empty")

    usage = payload.get("usage")
    response = RawModelResponse(content=content, usage=dict(usage) if isinstance(usage, dict) else {})

    tokens = response.completion_tokens
    if max_tokens and tokens is not None and tokens >= max_tokens * TRUNCATION_WARNING_RATIO:
        logger.warning(
            "Completion used nearly all of max_tokens, answer may be truncated",
            completion_tokens=tokens,
            max_tokens=max_tokens,
        )
    return response


class RetryOrchestrator(Generic[ResultT]):
    """Generic attempt loop shared by every recommendation flow.

    Args:
        flow: Name used in logs and errors (e.g. "diet plan")
        gateway: LLM gateway
        decoder: Decoder for the flow's result shape
        validator: Invariant check against the selection context
        policy: Attempt budget and terminal behavior
        model: Model name sent with every request
        temperature: Sampling temperature
        max_tokens: Completion budget
        timeout_seconds: Deadline for each gateway call
        escalate: Builds the retry prompt from the last attempt
        response_format: Provider response format, JSON object mode by default
    """

    def __init__(
        self,
        *,
        flow: str,
        gateway: LLMGateway,
        decoder: SchemaDecoder[ResultT],
        validator: Validator,
        policy: RetryPolicy[ResultT],
        model: str,
        temperature: float,
        max_tokens: int,
        timeout_seconds: float,
        escalate: EscalateFn = escalate_prompt,
        response_format: dict[str, str] | None = JSON_OBJECT_FORMAT,
    ) -> None:
        self.flow = flow
        self.gateway = gateway
        self.decoder = decoder
        self.validator = validator
        self.policy = policy
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds
        self.escalate = escalate
        self.response_format = response_format

    async def run(self, prompt: Prompt, ctx: SelectionContext) -> PipelineRun[ResultT]:
        """Run attempts until one produces a valid result or the budget is spent.

        Raises:
            RecommendationFailedError: If every attempt failed and the policy is RaiseError
        """
        attempts: list[AttemptRecord] = []
        gateway_failures = 0

        for index in range(1, self.policy.max_attempts + 1):
            current = prompt
            if attempts:
                last = attempts[-1]
                if last.outcome is AttemptOutcome.GATEWAY_FAILURE and self.policy.backoff_base_seconds > 0:
                    delay = calculate_backoff_delay(gateway_failures - 1, self.policy.backoff_base_seconds)
                    logger.info(f"Waiting {delay:.1f}s before retrying {self.flow}", attempt=index)
                    await asyncio.sleep(delay)
                current = self.escalate(prompt, last, ctx)

            logger.info(f"Generating {self.flow} (attempt {index}/{self.policy.max_attempts})")
            record, value = await self._attempt(index, current, ctx)
            attempts.append(record)

            if record.succeeded and value is not None:
                logger.info(f"Generated valid {self.flow}", attempt=index)
                return PipelineRun(value=value, attempts=attempts)

            if record.outcome is AttemptOutcome.GATEWAY_FAILURE:
                gateway_failures += 1
            logger.warning(
                f"{self.flow} attempt {index}/{self.policy.max_attempts} failed",
                outcome=record.outcome.value,
                reason=record.reason,
            )

        return self._exhausted(attempts)

    async def _attempt(
        self,
        index: int,
        prompt: Prompt,
        ctx: SelectionContext,
    ) -> tuple[AttemptRecord, ResultT | None]:
        request = ChatCompletionRequest(
            model=self.model,
            messages=prompt.to_messages(),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            response_format=self.response_format,
        )
        log_llm_request(self.flow, prompt, attempt=index)

        response = await self._call_gateway(request)
        if isinstance(response, GatewayFailure):
            return AttemptRecord(index, AttemptOutcome.GATEWAY_FAILURE, reason=response.reason), None

        log_llm_raw_response(self.flow, response.content, response.completion_tokens, attempt=index)

        text = extract_json_object(response.content)
        if text is None:
            return AttemptRecord(index, AttemptOutcome.EXTRACTION_FAILURE, reason="no JSON object found in the answer"), None

        decoded = self.decoder.decode(text)
        if isinstance(decoded, DecodeFailure):
            return AttemptRecord(index, AttemptOutcome.DECODE_FAILURE, reason=decoded.reason), None

        log_llm_extracted_fields(self.flow, decoded, attempt=index)

        report = self.validator(decoded, ctx)
        if not report.is_valid:
            return (
                AttemptRecord(index, AttemptOutcome.VALIDATION_FAILURE, reason=report.describe(), report=report),
                None,
            )

        if report.extra_keys:
            logger.warning(
                f"{self.flow} contains unexpected keys",
                extra_keys=sorted(report.extra_keys),
                attempt=index,
            )
        return AttemptRecord(index, AttemptOutcome.SUCCESS, report=report), decoded

    async def _call_gateway(self, request: ChatCompletionRequest) -> RawModelResponse | GatewayFailure:
        try:
            payload = await asyncio.wait_for(
                self.gateway.chat_completions(request),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            return GatewayFailure(f"no response within {self.timeout_seconds:g}s", timed_out=True)
        except Exception as e:
            logger.exception(f"LLM call failed for {self.flow}")
            return GatewayFailure(f"{type(e).__name__}: {e}")

        return read_model_response(payload, self.max_tokens)

    def _exhausted(self, attempts: list[AttemptRecord]) -> PipelineRun[ResultT]:
        terminal = self.policy.terminal
        if isinstance(terminal, Fallback):
            logger.warning(
                f"{self.flow} failed after {len(attempts)} attempts, returning fallback",
                last_reason=attempts[-1].reason if attempts else None,
            )
            return PipelineRun(value=terminal.value, attempts=attempts, used_fallback=True)

        error = RecommendationFailedError(self.flow, attempts)
        logger.error(str(error))
        raise error
