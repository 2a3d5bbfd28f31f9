"""Weekly workout recommendation for the days selected in the survey."""

from __future__ import annotations

from loguru import logger

from smart_healthcare.config.settings import settings
from smart_healthcare.llm.gateway import LLMGateway
from smart_healthcare.recommendations.coercions import WORKOUT_PLAN_TABLE
from smart_healthcare.recommendations.constants import DEFAULT_WORKOUT_DAYS, MIN_EXERCISES_PER_DAY, WEEKDAYS
from smart_healthcare.recommendations.pipeline.decoding import SchemaDecoder
from smart_healthcare.recommendations.pipeline.escalation import escalation
from smart_healthcare.recommendations.pipeline.orchestrator import RetryOrchestrator
from smart_healthcare.recommendations.pipeline.types import PipelineRun, RaiseError, RetryPolicy, SelectionContext
from smart_healthcare.recommendations.pipeline.validation import validate_workout_plan
from smart_healthcare.recommendations.prompts import PromptBuilder, build_workout_prompt
from smart_healthcare.recommendations.requests import InbodyData
from smart_healthcare.recommendations.schemas import WorkoutPlan

WORKOUT_REMINDERS: tuple[str, ...] = (
    f"Each selected day must have at least {MIN_EXERCISES_PER_DAY} exercises.",
    "Respect every per-category minimum stated in the survey answers (e.g. back, core, cardio).",
    "Do not leave any day with too few exercises.",
)


class WorkoutRecommendationService:
    flow = "workout plan"

    def __init__(
        self,
        gateway: LLMGateway,
        prompt_builder: PromptBuilder = build_workout_prompt,
        max_attempts: int | None = None,
        backoff_seconds: float | None = None,
    ) -> None:
        self.gateway = gateway
        self.prompt_builder = prompt_builder
        self.max_attempts = settings.workout_max_attempts if max_attempts is None else max_attempts
        self.backoff_seconds = settings.llm_retry_backoff_seconds if backoff_seconds is None else backoff_seconds

    @staticmethod
    def workout_days(data: InbodyData) -> list[str]:
        """Selected days in week order, Monday/Wednesday/Friday without a survey."""
        days = data.survey.workout_days() if data.survey else list(DEFAULT_WORKOUT_DAYS)
        return sorted(days, key=WEEKDAYS.index)

    async def run(self, data: InbodyData) -> PipelineRun[WorkoutPlan]:
        """Generate a workout plan.

        Raises:
            RecommendationFailedError: If every attempt failed
        """
        days = self.workout_days(data)
        ctx = SelectionContext.of(days)
        logger.info("Starting workout recommendation", days=days, user_id=data.user_id)

        orchestrator = RetryOrchestrator(
            flow=self.flow,
            gateway=self.gateway,
            decoder=SchemaDecoder(WorkoutPlan, WORKOUT_PLAN_TABLE),
            validator=validate_workout_plan,
            policy=RetryPolicy(
                max_attempts=self.max_attempts,
                terminal=RaiseError(),
                backoff_base_seconds=self.backoff_seconds,
            ),
            escalate=escalation(item_label="exercises", reminders=WORKOUT_REMINDERS),
            model=settings.openai_model,
            temperature=settings.openai_temperature,
            max_tokens=settings.openai_max_tokens,
            timeout_seconds=settings.llm_attempt_timeout_seconds,
        )
        return await orchestrator.run(self.prompt_builder(data, days, ()), ctx)

    async def recommend(self, data: InbodyData) -> WorkoutPlan:
        run = await self.run(data)
        return run.value
