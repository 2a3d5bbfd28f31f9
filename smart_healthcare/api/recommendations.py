"""AI recommendation endpoints.

Persistence of results belongs to the caller; these routes return the decoded
result in its wire shape.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger

from smart_healthcare.api.dependencies import get_gateway
from smart_healthcare.llm.gateway import LLMGateway
from smart_healthcare.recommendations.body_analysis import BodyAnalysisService
from smart_healthcare.recommendations.diet import DietRecommendationService
from smart_healthcare.recommendations.errors import MissingSurveyError, RecommendationFailedError
from smart_healthcare.recommendations.requests import InbodyData
from smart_healthcare.recommendations.workout import WorkoutRecommendationService

router = APIRouter(prefix="/ai", tags=["ai"])


def _failed(e: RecommendationFailedError) -> HTTPException:
    logger.error(
        "Recommendation request failed",
        flow=e.flow,
        attempts=e.attempt_count,
        last_reason=e.last_reason,
    )
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.post("/body-analysis")
async def analyze_body(
    data: InbodyData,
    gateway: LLMGateway = Depends(get_gateway),
) -> dict[str, Any]:
    result = await BodyAnalysisService(gateway).analyze(data)
    return result.to_wire()


@router.post("/diet-recommendations")
async def recommend_diet(
    data: InbodyData,
    gateway: LLMGateway = Depends(get_gateway),
) -> dict[str, Any]:
    try:
        plan = await DietRecommendationService(gateway).recommend(data)
    except MissingSurveyError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except RecommendationFailedError as e:
        raise _failed(e) from e
    return plan.to_wire()


@router.post("/workout-recommendations")
async def recommend_workout(
    data: InbodyData,
    gateway: LLMGateway = Depends(get_gateway),
) -> dict[str, Any]:
    try:
        plan = await WorkoutRecommendationService(gateway).recommend(data)
    except RecommendationFailedError as e:
        raise _failed(e) from e
    return plan.to_wire()
