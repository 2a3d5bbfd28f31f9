"""Root conftest for all tests.

Shared fixtures build chat-completion payloads, plan payloads and a fake gateway
so no test ever reaches the real LLM provider.
"""

import json
from collections.abc import Callable
from unittest.mock import AsyncMock

import pytest

from smart_healthcare.recommendations.requests import InbodyData, SurveyData


def _exercise(day: str, index: int) -> dict:
    return {
        "name": f"{day} exercise {index}",
        "description": "Controlled tempo",
        "duration": 10,
        "intensity": "medium",
        "difficulty": "beginner",
        "calories": 80,
        "type": "strength",
        "exerciseCategory": "back",
        "reason": "Builds posterior chain",
        "part": "back",
        "targetMuscles": ["lats"],
        "sets": 3,
        "reps": 12,
        "restTime": "60s",
        "steps": ["Set up", "Pull"],
        "effects": ["posture"],
        "tips": "Keep the core braced",
        "caution": "Stop if the lower back hurts",
    }


def _meal(day: str, meal: str) -> dict:
    return {
        "name": f"{day} {meal}",
        "description": "Balanced plate",
        "calories": 550,
        "nutrients": {"carbs": 60, "protein": 35, "fat": 15},
        "reason": "Steady energy",
        "ingredients": ["rice", "chicken breast", "spinach"],
        "instructions": "Grill the chicken and serve over rice",
        "tips": "Prep the night before",
        "unsplashQuery": "chicken rice bowl",
    }


@pytest.fixture
def make_completion() -> Callable[..., dict]:
    """Factory for chat-completions response dicts."""

    def make(content: str | None, completion_tokens: int = 500) -> dict:
        return {
            "id": "chatcmpl-test",
            "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
            "usage": {"prompt_tokens": 800, "completion_tokens": completion_tokens},
        }

    return make


@pytest.fixture
def workout_payload() -> Callable[..., dict]:
    """Factory for workout plan payloads: ``{day: exercise_count}``."""

    def make(counts: dict[str, int]) -> dict:
        return {
            "programName": "Three-day strength base",
            "weeklySchedule": "Full body on alternating days",
            "caution": "Warm up properly",
            "warmup": "5 min light cardio",
            "mainSets": "Compound lifts",
            "cooldown": "Stretching",
            "equipment": "Dumbbells",
            "targetMuscles": "Back, legs",
            "expectedResults": "Better posture in 8 weeks",
            "workouts": {day: [_exercise(day, i) for i in range(count)] for day, count in counts.items()},
        }

    return make


@pytest.fixture
def diet_payload() -> Callable[..., dict]:
    """Factory for diet plan payloads covering ``days`` x ``meals``."""

    def make(days: list[str], meals: list[str]) -> dict:
        return {
            "mealStyle": "High protein",
            "dailyCalories": 1900,
            "macroSplit": {"carbs": 45, "protein": 30, "fat": 25},
            "sampleMenu": "Oats, chicken bowl, salmon",
            "shoppingList": ["oats", "chicken breast", "salmon"],
            "precautions": "Limit sodium",
            "mealTiming": "Every 4 hours",
            "hydration": "2L water",
            "supplements": "Vitamin D",
            "diets": {day: {meal: _meal(day, meal) for meal in meals} for day in days},
        }

    return make


@pytest.fixture
def body_analysis_payload() -> dict:
    return {
        "label": "muscular",
        "summary": "Well-developed upper body with slightly high body fat.",
        "reasoning": "BMI 25.1 with skeletal muscle mass above the standard range.",
        "tips": "Keep resistance training, add two cardio sessions.",
        "healthRisk": "low - visceral fat level 6",
        "muscleBalance": "Balanced left and right",
        "metabolicHealth": "Good",
        "bodyComposition": "Above-average fat-free mass",
        "bmiCategory": "overweight",
        "bodyFatCategory": "normal",
        "visceralFatCategory": "normal",
        "inbodyScore": 82,
    }


@pytest.fixture
def as_json() -> Callable[[dict], str]:
    def dump(payload: dict) -> str:
        return json.dumps(payload, ensure_ascii=False)

    return dump


@pytest.fixture
def gateway() -> AsyncMock:
    """Fake LLM gateway; set ``gateway.chat_completions.side_effect`` per test."""
    return AsyncMock()


@pytest.fixture
def survey() -> SurveyData:
    return SurveyData(
        text="I want to strengthen my back. At least 3 back exercises per day.",
        workout_frequency="주 3회",
        selected_days=["월", "수", "금"],
        meals_to_generate=["breakfast", "lunch", "dinner"],
    )


@pytest.fixture
def inbody(survey: SurveyData) -> InbodyData:
    return InbodyData(
        user_id=7,
        gender="MALE",
        birth_year=1995,
        weight=72.4,
        skeletal_muscle_mass=33.1,
        bmi=23.6,
        body_fat_percentage=18.2,
        inbody_score=82,
        visceral_fat_level=6,
        survey=survey,
    )
