"""Prompt construction for the recommendation flows.

Services accept any callable matching :class:`PromptBuilder`; the builders here
are the defaults. They state the expected JSON layout and the selected days and
meals explicitly, since the validators check exactly those keys.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Protocol

from smart_healthcare.recommendations.constants import MIN_EXERCISES_PER_DAY
from smart_healthcare.recommendations.pipeline.types import Prompt
from smart_healthcare.recommendations.requests import InbodyData

BODY_TYPE_LABELS: tuple[str, ...] = (
    "athletic",
    "muscular",
    "balanced",
    "slim",
    "lean muscular",
    "slightly underweight",
    "underweight",
    "overweight",
    "mildly obese",
    "obese",
    "skinny fat",
    "severely obese",
    "abdominal obesity",
    "muscular obese",
)

JSON_ONLY = "Respond with a single JSON object only. No markdown, no text before or after it."


class PromptBuilder(Protocol):
    def __call__(self, data: InbodyData, days: Sequence[str], meals: Sequence[str]) -> Prompt: ...


def _profile_block(data: InbodyData) -> str:
    lines = ["[User profile]"]
    age = data.age()
    if age is not None:
        lines.append(f"Age: {age}")
    lines.append("Measurements:")
    lines.append(json.dumps(data.measurements(), indent=2, ensure_ascii=False))
    if data.survey and data.survey.text:
        lines.extend(["", "[Survey answers]", data.survey.text])
    return "\n".join(lines)


def build_body_analysis_prompt(data: InbodyData, days: Sequence[str] = (), meals: Sequence[str] = ()) -> Prompt:
    system = "\n".join(
        [
            "You are a body composition analyst working from InBody measurements.",
            f"Classify the body type as exactly one of: {', '.join(BODY_TYPE_LABELS)}.",
            "Cite the measured values (BMI, body fat %, muscle mass, visceral fat level) in your reasoning.",
            "Fields: label, summary, reasoning, tips, healthRisk, muscleBalance, metabolicHealth, "
            "bodyComposition, bmiCategory, bodyFatCategory, visceralFatCategory, inbodyScore (number).",
            JSON_ONLY,
        ]
    )
    user = f"{_profile_block(data)}\n\nAnalyze this body composition."
    return Prompt(system=system, user=user)


def build_diet_prompt(data: InbodyData, days: Sequence[str], meals: Sequence[str]) -> Prompt:
    system = "\n".join(
        [
            "You are a registered dietitian planning a weekly menu.",
            "Fields: mealStyle, dailyCalories (number), macroSplit ({carbs, protein, fat} percentages), "
            "sampleMenu, shoppingList (array), precautions, mealTiming, hydration, supplements, diets.",
            "diets maps each day to an object keyed by meal type. Every meal has: name, description, "
            "calories (number), nutrients {carbs, protein, fat} in grams, reason, ingredients (array), "
            "instructions, tips, unsplashQuery.",
            JSON_ONLY,
        ]
    )
    user = "\n".join(
        [
            _profile_block(data),
            "",
            f"Days (use exactly these keys in diets): {', '.join(days)}",
            f"Meals for each day (use exactly these keys): {', '.join(meals)}",
        ]
    )
    return Prompt(system=system, user=user)


def build_workout_prompt(data: InbodyData, days: Sequence[str], meals: Sequence[str] = ()) -> Prompt:
    system = "\n".join(
        [
            "You are a certified personal trainer designing a weekly program.",
            "Fields: programName, weeklySchedule, caution, warmup, mainSets, cooldown, equipment, "
            "targetMuscles, expectedResults, workouts.",
            "workouts maps each day to an array of exercises. Every exercise has: name, description, "
            "duration (minutes), intensity, difficulty, calories (number), type, exerciseCategory, reason, "
            "part, targetMuscles (array), sets (number), reps (number), restTime, steps (array), "
            "effects (array), tips, caution, videoUrl, youtubeQuery, unsplashQuery.",
            JSON_ONLY,
        ]
    )
    user = "\n".join(
        [
            _profile_block(data),
            "",
            f"Workout days (use exactly these keys in workouts): {', '.join(days)}",
            f"Give every day at least {MIN_EXERCISES_PER_DAY} exercises and follow any per-category "
            "minimums stated in the survey answers.",
        ]
    )
    return Prompt(system=system, user=user)
