"""Tests for the retry loop.

The gateway is mocked; these tests cover attempt accounting, prompt escalation
and the terminal policies, not the provider.
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from loguru import logger
from pydantic import BaseModel

from smart_healthcare.llm.gateway import ChatCompletionRequest
from smart_healthcare.recommendations.coercions import WORKOUT_PLAN_TABLE
from smart_healthcare.recommendations.errors import GatewayError, RecommendationFailedError
from smart_healthcare.recommendations.pipeline.decoding import SchemaDecoder, as_int
from smart_healthcare.recommendations.pipeline.orchestrator import (
    RetryOrchestrator,
    calculate_backoff_delay,
    read_model_response,
)
from smart_healthcare.recommendations.pipeline.types import (
    AttemptOutcome,
    Fallback,
    GatewayFailure,
    Prompt,
    RaiseError,
    RawModelResponse,
    RetryPolicy,
    SelectionContext,
    ValidationReport,
)
from smart_healthcare.recommendations.pipeline.validation import validate_workout_plan
from smart_healthcare.recommendations.schemas import WorkoutPlan

PROMPT = Prompt(system="You are a trainer.", user="Plan Monday, Wednesday and Friday.")
CTX = SelectionContext.of(["Monday", "Wednesday", "Friday"])


def _orchestrator(gateway, policy: RetryPolicy, timeout_seconds: float = 5.0) -> RetryOrchestrator[WorkoutPlan]:
    return RetryOrchestrator(
        flow="workout plan",
        gateway=gateway,
        decoder=SchemaDecoder(WorkoutPlan, WORKOUT_PLAN_TABLE),
        validator=validate_workout_plan,
        policy=policy,
        model="gpt-4o",
        temperature=0.5,
        max_tokens=8192,
        timeout_seconds=timeout_seconds,
    )


def _sent_user_prompt(gateway, call_index: int) -> str:
    request: ChatCompletionRequest = gateway.chat_completions.call_args_list[call_index].args[0]
    return request.messages[1]["content"]


@pytest.fixture
def valid_answer(make_completion, workout_payload, as_json) -> dict:
    return make_completion(as_json(workout_payload({"Monday": 3, "Wednesday": 3, "Friday": 3})))


@pytest.fixture
def invalid_answer(make_completion, workout_payload, as_json) -> dict:
    return make_completion(as_json(workout_payload({"Monday": 3, "Wednesday": 2})))


@pytest.mark.asyncio
async def test_stops_on_first_valid_attempt(gateway, valid_answer, invalid_answer):
    gateway.chat_completions.side_effect = [invalid_answer, valid_answer, valid_answer]

    run = await _orchestrator(gateway, RetryPolicy(max_attempts=3)).run(PROMPT, CTX)

    assert gateway.chat_completions.await_count == 2
    assert [a.outcome for a in run.attempts] == [AttemptOutcome.VALIDATION_FAILURE, AttemptOutcome.SUCCESS]
    assert run.attempts[0].report.missing_keys == {"Friday"}
    assert not run.used_fallback
    assert set(run.value.workouts) == {"Monday", "Wednesday", "Friday"}


@pytest.mark.asyncio
async def test_retry_prompt_carries_corrections(gateway, valid_answer, invalid_answer):
    gateway.chat_completions.side_effect = [invalid_answer, valid_answer]

    await _orchestrator(gateway, RetryPolicy(max_attempts=2)).run(PROMPT, CTX)

    assert _sent_user_prompt(gateway, 0) == PROMPT.user
    retry_prompt = _sent_user_prompt(gateway, 1)
    assert retry_prompt.startswith(PROMPT.user)
    assert "Friday" in retry_prompt
    assert "Wednesday had 2" in retry_prompt


@pytest.mark.asyncio
async def test_request_uses_json_object_mode(gateway, valid_answer):
    gateway.chat_completions.side_effect = [valid_answer]

    await _orchestrator(gateway, RetryPolicy(max_attempts=1)).run(PROMPT, CTX)

    request: ChatCompletionRequest = gateway.chat_completions.call_args.args[0]
    assert request.response_format == {"type": "json_object"}
    assert request.max_tokens == 8192
    assert request.messages[0] == {"role": "system", "content": PROMPT.system}


@pytest.mark.asyncio
async def test_never_exceeds_max_attempts_and_raises(gateway, invalid_answer):
    gateway.chat_completions.return_value = invalid_answer

    with pytest.raises(RecommendationFailedError) as exc_info:
        await _orchestrator(gateway, RetryPolicy(max_attempts=3, terminal=RaiseError())).run(PROMPT, CTX)

    assert gateway.chat_completions.await_count == 3
    error = exc_info.value
    assert error.attempt_count == 3
    assert "3 attempts" in str(error)
    assert "Friday" in error.last_reason
    assert all(a.outcome is AttemptOutcome.VALIDATION_FAILURE for a in error.attempts)


@pytest.mark.asyncio
async def test_fallback_policy_returns_default(gateway, invalid_answer):
    default = WorkoutPlan(program_name="fallback")
    gateway.chat_completions.return_value = invalid_answer

    run = await _orchestrator(gateway, RetryPolicy(max_attempts=2, terminal=Fallback(default))).run(PROMPT, CTX)

    assert run.used_fallback
    assert run.value is default
    assert run.attempt_count == 2


@pytest.mark.asyncio
async def test_gateway_failures_are_recorded_and_prompt_is_not_escalated(gateway, make_completion, valid_answer):
    gateway.chat_completions.side_effect = [
        None,
        {"error": {"message": "rate limited"}},
        {"choices": []},
        make_completion("   "),
        GatewayError("connection reset"),
        valid_answer,
    ]

    run = await _orchestrator(gateway, RetryPolicy(max_attempts=6)).run(PROMPT, CTX)

    outcomes = [a.outcome for a in run.attempts]
    assert outcomes == [AttemptOutcome.GATEWAY_FAILURE] * 5 + [AttemptOutcome.SUCCESS]
    assert "rate limited" in run.attempts[1].reason
    assert "connection reset" in run.attempts[4].reason
    assert all(_sent_user_prompt(gateway, i) == PROMPT.user for i in range(6))


@pytest.mark.asyncio
async def test_attempt_deadline_is_a_gateway_failure(gateway, valid_answer):
    async def stalled(_request):
        await asyncio.sleep(1)
        return valid_answer

    gateway.chat_completions.side_effect = stalled

    with pytest.raises(RecommendationFailedError) as exc_info:
        await _orchestrator(gateway, RetryPolicy(max_attempts=1), timeout_seconds=0.01).run(PROMPT, CTX)

    record = exc_info.value.attempts[0]
    assert record.outcome is AttemptOutcome.GATEWAY_FAILURE
    assert "no response within" in record.reason


@pytest.mark.asyncio
async def test_extraction_failure_escalates_to_json_only(gateway, make_completion, valid_answer):
    gateway.chat_completions.side_effect = [make_completion("Sorry, I cannot help with that."), valid_answer]

    run = await _orchestrator(gateway, RetryPolicy(max_attempts=2)).run(PROMPT, CTX)

    assert run.attempts[0].outcome is AttemptOutcome.EXTRACTION_FAILURE
    assert "Output ONLY one valid JSON object" in _sent_user_prompt(gateway, 1)


class _Counter(BaseModel):
    count: int


@pytest.mark.asyncio
async def test_decode_failure_is_recorded(gateway, make_completion):
    gateway.chat_completions.side_effect = [make_completion('{"count": "many"}'), make_completion('{"count": "4"}')]
    orchestrator = RetryOrchestrator(
        flow="counter",
        gateway=gateway,
        decoder=SchemaDecoder(_Counter, {"count": as_int}),
        validator=lambda result, ctx: ValidationReport(),
        policy=RetryPolicy(max_attempts=2),
        model="gpt-4o",
        temperature=0.5,
        max_tokens=100,
        timeout_seconds=5.0,
    )

    run = await orchestrator.run(PROMPT, SelectionContext())

    assert run.attempts[0].outcome is AttemptOutcome.DECODE_FAILURE
    assert "count" in run.attempts[0].reason
    assert "Output ONLY one valid JSON object" in _sent_user_prompt(gateway, 1)
    assert run.value.count == 4


@pytest.mark.asyncio
async def test_backoff_only_after_gateway_failures(gateway, valid_answer, invalid_answer):
    gateway.chat_completions.side_effect = [None, None, invalid_answer, valid_answer]
    policy = RetryPolicy(max_attempts=4, backoff_base_seconds=0.5)

    with patch(
        "smart_healthcare.recommendations.pipeline.orchestrator.asyncio.sleep",
        new_callable=AsyncMock,
    ) as mock_sleep:
        run = await _orchestrator(gateway, policy).run(PROMPT, CTX)

    assert run.attempts[-1].succeeded
    assert [c.args[0] for c in mock_sleep.await_args_list] == [0.5, 1.0]


def test_read_model_response_variants(make_completion):
    assert isinstance(read_model_response(None), GatewayFailure)
    assert isinstance(read_model_response({"error": "boom", "choices": []}), GatewayFailure)
    assert isinstance(read_model_response({"choices": [{"message": {}}]}), GatewayFailure)

    response = read_model_response(make_completion('{"a":1}', completion_tokens=42), max_tokens=8192)

    assert isinstance(response, RawModelResponse)
    assert response.content == '{"a":1}'
    assert response.completion_tokens == 42


@pytest.mark.parametrize(
    "payload",
    [
        {"choices": [None]},
        {"choices": [{"message": "text"}]},
        {"choices": "x"},
        ["not", "a", "dict"],
    ],
)
def test_read_model_response_malformed_payload(payload):
    result = read_model_response(payload)

    assert isinstance(result, GatewayFailure)
    assert result.reason == "gateway response is malformed"


def test_read_model_response_ignores_non_mapping_usage(make_completion):
    payload = make_completion('{"a":1}')
    payload["usage"] = "n/a"

    response = read_model_response(payload, max_tokens=8192)

    assert isinstance(response, RawModelResponse)
    assert response.usage == {}
    assert response.completion_tokens is None


def test_truncation_warning_near_token_limit(make_completion):
    messages: list[str] = []
    sink_id = logger.add(messages.append, level="WARNING", format="{message}")
    try:
        read_model_response(make_completion('{"a":1}', completion_tokens=7800), max_tokens=8192)
        read_model_response(make_completion('{"a":1}', completion_tokens=100), max_tokens=8192)
    finally:
        logger.remove(sink_id)

    assert len(messages) == 1
    assert "truncated" in messages[0]


def test_calculate_backoff_delay():
    assert calculate_backoff_delay(0) == 1.0
    assert calculate_backoff_delay(3, base_delay=0.5) == 4.0
    assert calculate_backoff_delay(10) == 60.0


def test_policy_requires_at_least_one_attempt():
    with pytest.raises(ValueError, match="max_attempts"):
        RetryPolicy(max_attempts=0)
