"""Body-type analysis from InBody measurements.

This flow never fails the user request because of the model: once all attempts
are spent it returns a clearly labeled "unclassifiable" result instead.
"""

from __future__ import annotations

from loguru import logger

from smart_healthcare.config.settings import settings
from smart_healthcare.llm.gateway import LLMGateway
from smart_healthcare.recommendations.coercions import BODY_ANALYSIS_TABLE
from smart_healthcare.recommendations.constants import FALLBACK_ANALYSIS_METHOD, MODEL_ANALYSIS_METHOD
from smart_healthcare.recommendations.pipeline.decoding import SchemaDecoder
from smart_healthcare.recommendations.pipeline.orchestrator import RetryOrchestrator
from smart_healthcare.recommendations.pipeline.types import Fallback, PipelineRun, RetryPolicy, SelectionContext
from smart_healthcare.recommendations.pipeline.validation import validate_body_analysis
from smart_healthcare.recommendations.prompts import PromptBuilder, build_body_analysis_prompt
from smart_healthcare.recommendations.requests import InbodyData
from smart_healthcare.recommendations.schemas import BodyAnalysisResult

UNCLASSIFIABLE_LABEL = "unclassifiable"


def unclassifiable_body_analysis() -> BodyAnalysisResult:
    """Result returned when no attempt produced a usable analysis."""
    return BodyAnalysisResult(
        label=UNCLASSIFIABLE_LABEL,
        summary="Failed to parse the analysis response",
        reasoning="Technical error",
        tips="Please try again in a moment.",
        health_risk="unknown",
        muscle_balance="analysis unavailable",
        metabolic_health="analysis unavailable",
        body_composition="analysis unavailable",
        analysis_method=FALLBACK_ANALYSIS_METHOD,
    )


class BodyAnalysisService:
    flow = "body analysis"

    def __init__(
        self,
        gateway: LLMGateway,
        prompt_builder: PromptBuilder = build_body_analysis_prompt,
        max_attempts: int | None = None,
        backoff_seconds: float | None = None,
    ) -> None:
        self.gateway = gateway
        self.prompt_builder = prompt_builder
        self.max_attempts = settings.body_analysis_max_attempts if max_attempts is None else max_attempts
        self.backoff_seconds = settings.llm_retry_backoff_seconds if backoff_seconds is None else backoff_seconds

    async def run(self, data: InbodyData) -> PipelineRun[BodyAnalysisResult]:
        logger.info(
            "Starting body analysis",
            gender=data.gender,
            age=data.age(),
            bmi=data.bmi,
        )
        orchestrator = RetryOrchestrator(
            flow=self.flow,
            gateway=self.gateway,
            decoder=SchemaDecoder(BodyAnalysisResult, BODY_ANALYSIS_TABLE),
            validator=validate_body_analysis,
            policy=RetryPolicy(
                max_attempts=self.max_attempts,
                terminal=Fallback(unclassifiable_body_analysis()),
                backoff_base_seconds=self.backoff_seconds,
            ),
            model=settings.openai_model,
            temperature=settings.body_analysis_temperature,
            max_tokens=settings.openai_max_tokens,
            timeout_seconds=settings.llm_attempt_timeout_seconds,
        )
        run = await orchestrator.run(self.prompt_builder(data, (), ()), SelectionContext())

        if not run.used_fallback:
            result = run.value
            # The measured score fills in when the model leaves it out
            if data.inbody_score is not None and result.inbody_score is None:
                result.inbody_score = data.inbody_score
            result.analysis_method = MODEL_ANALYSIS_METHOD
            logger.info(f"Body analysis complete: {result.label}")
        return run

    async def analyze(self, data: InbodyData) -> BodyAnalysisResult:
        run = await self.run(data)
        return run.value
