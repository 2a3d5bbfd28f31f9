"""Request bodies for the recommendation endpoints.

Clients send InBody measurements with the survey answers nested inside. Day and
meal selections may arrive as Korean labels ("월", "아침") or English names and
are normalized to the English vocabulary used by prompts and validators.
"""

from __future__ import annotations

from datetime import datetime, timezone

from loguru import logger
from pydantic import Field

from smart_healthcare.recommendations.constants import (
    DEFAULT_MEALS,
    DEFAULT_WORKOUT_DAYS,
    KOREAN_DAY_NAMES,
    KOREAN_MEAL_NAMES,
    MEAL_TYPES,
    WEEKDAYS,
)
from smart_healthcare.recommendations.schemas import WireModel


def _normalize(values: list[str] | None, korean: dict[str, str], english: tuple[str, ...]) -> list[str]:
    by_lower = {name.lower(): name for name in english}
    normalized: list[str] = []
    for value in values or []:
        token = value.strip()
        name = korean.get(token) or by_lower.get(token.lower())
        if name is None:
            logger.warning(f"Ignoring unknown selection value: {token!r}")
            continue
        if name not in normalized:
            normalized.append(name)
    return normalized


def normalize_days(values: list[str] | None) -> list[str]:
    return _normalize(values, KOREAN_DAY_NAMES, WEEKDAYS)


def normalize_meals(values: list[str] | None) -> list[str]:
    return _normalize(values, KOREAN_MEAL_NAMES, MEAL_TYPES)


class SurveyData(WireModel):
    text: str | None = Field(default=None, description="Free-text survey answers")
    workout_frequency: str | None = Field(default=None, description="e.g. '주 3회'")
    selected_days: list[str] | None = Field(default=None, description="Workout days, Korean labels")
    selected_days_en: list[str] | None = Field(default=None, description="Workout days, English names")
    preferred_days: str | None = None
    meals_per_day: str | None = None
    meal_labeling: str | None = Field(default=None, description="'generic' or 'byType'")
    selected_meals: list[str] | None = Field(default=None, description="Meal types, Korean labels")
    selected_meals_label: str | None = None
    meals_to_generate: list[str] | None = Field(default=None, description="Meal types to generate, English")

    def workout_days(self) -> list[str]:
        """English workout days; English selection wins, Monday/Wednesday/Friday by default."""
        days = normalize_days(self.selected_days_en) or normalize_days(self.selected_days)
        return days or list(DEFAULT_WORKOUT_DAYS)

    def diet_meals(self) -> list[str]:
        meals = normalize_meals(self.meals_to_generate) or normalize_meals(self.selected_meals)
        return meals or list(DEFAULT_MEALS)


class InbodyData(WireModel):
    """InBody measurement sheet plus optional survey answers."""

    user_id: int | None = None
    gender: str | None = Field(default=None, description="'MALE' or 'FEMALE'")
    birth_year: int | None = None
    weight: float | None = Field(default=None, description="kg")

    total_body_water: float | None = None
    protein: float | None = None
    mineral: float | None = None

    body_fat_mass: float | None = None
    muscle_mass: float | None = None
    fat_free_mass: float | None = None
    skeletal_muscle_mass: float | None = None
    bmi: float | None = None
    body_fat_percentage: float | None = None

    right_arm_muscle_mass: float | None = None
    left_arm_muscle_mass: float | None = None
    trunk_muscle_mass: float | None = None
    right_leg_muscle_mass: float | None = None
    left_leg_muscle_mass: float | None = None

    right_arm_fat_mass: float | None = None
    left_arm_fat_mass: float | None = None
    trunk_fat_mass: float | None = None
    right_leg_fat_mass: float | None = None
    left_leg_fat_mass: float | None = None

    inbody_score: int | None = Field(default=None, ge=0, le=100)
    ideal_weight: float | None = None
    weight_control: float | None = None
    fat_control: float | None = None
    muscle_control: float | None = None
    basal_metabolism: int | None = Field(default=None, description="kcal")
    abdominal_fat_percentage: float | None = None
    visceral_fat_level: float | None = None
    obesity_degree: float | None = None
    bone_mineral_content: float | None = None
    waist_circumference: float | None = Field(default=None, description="cm")

    survey: SurveyData | None = None

    def age(self, today: datetime | None = None) -> int | None:
        if self.birth_year is None:
            return None
        year = (today or datetime.now(timezone.utc)).year
        return year - self.birth_year

    def measurements(self) -> dict[str, object]:
        """Measured values only, keyed by wire name, for the prompt."""
        return self.model_dump(by_alias=True, exclude={"survey", "user_id"}, exclude_none=True)
