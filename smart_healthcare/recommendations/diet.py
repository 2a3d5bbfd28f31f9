"""Weekly diet recommendation.

Plans always cover Monday to Friday; the meals per day come from the survey.
Failures surface to the caller as RecommendationFailedError.
"""

from __future__ import annotations

from loguru import logger

from smart_healthcare.config.settings import settings
from smart_healthcare.llm.gateway import LLMGateway
from smart_healthcare.recommendations.coercions import DIET_PLAN_TABLE
from smart_healthcare.recommendations.constants import DEFAULT_DIET_DAYS
from smart_healthcare.recommendations.errors import MissingSurveyError
from smart_healthcare.recommendations.pipeline.decoding import SchemaDecoder
from smart_healthcare.recommendations.pipeline.escalation import escalation
from smart_healthcare.recommendations.pipeline.orchestrator import RetryOrchestrator
from smart_healthcare.recommendations.pipeline.types import PipelineRun, RaiseError, RetryPolicy, SelectionContext
from smart_healthcare.recommendations.pipeline.validation import validate_diet_plan
from smart_healthcare.recommendations.prompts import PromptBuilder, build_diet_prompt
from smart_healthcare.recommendations.requests import InbodyData
from smart_healthcare.recommendations.schemas import DietPlan

DIET_REMINDERS: tuple[str, ...] = (
    "Every selected day must contain every selected meal, each with a full meal object.",
    "Use English day names (Monday...) and meal keys (breakfast, lunch, dinner, snack) exactly as listed.",
)


class DietRecommendationService:
    flow = "diet plan"

    def __init__(
        self,
        gateway: LLMGateway,
        prompt_builder: PromptBuilder = build_diet_prompt,
        max_attempts: int | None = None,
        backoff_seconds: float | None = None,
    ) -> None:
        self.gateway = gateway
        self.prompt_builder = prompt_builder
        self.max_attempts = settings.diet_max_attempts if max_attempts is None else max_attempts
        self.backoff_seconds = settings.llm_retry_backoff_seconds if backoff_seconds is None else backoff_seconds

    def selection(self, data: InbodyData) -> SelectionContext:
        """Days and meals the plan must cover.

        Raises:
            MissingSurveyError: If the request carries no survey answers
        """
        if data.survey is None:
            raise MissingSurveyError("Diet recommendations require survey answers")
        return SelectionContext.of(DEFAULT_DIET_DAYS, data.survey.diet_meals())

    async def run(self, data: InbodyData) -> PipelineRun[DietPlan]:
        """Generate a diet plan.

        Raises:
            MissingSurveyError: If the request carries no survey answers
            RecommendationFailedError: If every attempt failed
        """
        ctx = self.selection(data)
        days = sorted(ctx.selected_days, key=DEFAULT_DIET_DAYS.index)
        meals = data.survey.diet_meals()
        logger.info("Starting diet recommendation", days=days, meals=meals, user_id=data.user_id)

        orchestrator = RetryOrchestrator(
            flow=self.flow,
            gateway=self.gateway,
            decoder=SchemaDecoder(DietPlan, DIET_PLAN_TABLE),
            validator=validate_diet_plan,
            policy=RetryPolicy(
                max_attempts=self.max_attempts,
                terminal=RaiseError(),
                backoff_base_seconds=self.backoff_seconds,
            ),
            escalate=escalation(item_label="meals", reminders=DIET_REMINDERS),
            model=settings.openai_model,
            temperature=settings.openai_temperature,
            max_tokens=settings.openai_max_tokens,
            timeout_seconds=settings.llm_attempt_timeout_seconds,
        )
        return await orchestrator.run(self.prompt_builder(data, days, meals), ctx)

    async def recommend(self, data: InbodyData) -> DietPlan:
        run = await self.run(data)
        return run.value
