"""Coercion tables used by the permissive decode of each result shape.

Keys are wire (camelCase) field names. Anything not listed is dropped.
"""

from smart_healthcare.recommendations.pipeline.decoding import (
    CoercionTable,
    as_float,
    as_int,
    as_text,
    as_text_list,
    list_of,
    mapping_of,
    number_map_or_text,
    record,
    text_or_text_list,
)

BODY_ANALYSIS_TABLE: CoercionTable = {
    "label": as_text,
    "summary": as_text,
    "reasoning": as_text,
    "tips": as_text,
    "healthRisk": as_text,
    "muscleBalance": as_text,
    "metabolicHealth": as_text,
    "bodyComposition": as_text,
    "bmiCategory": as_text,
    "bodyFatCategory": as_text,
    "visceralFatCategory": as_text,
    "inbodyScore": as_int,
    "analysisMethod": as_text,
}

NUTRIENTS_TABLE: CoercionTable = {
    "carbs": as_float,
    "protein": as_float,
    "fat": as_float,
}

MEAL_TABLE: CoercionTable = {
    "name": as_text,
    "description": as_text,
    "calories": as_int,
    "nutrients": record(NUTRIENTS_TABLE),
    "reason": as_text,
    "ingredients": as_text_list,
    "instructions": as_text,
    "tips": as_text,
    "unsplashQuery": as_text,
}

DIET_PLAN_TABLE: CoercionTable = {
    "mealStyle": as_text,
    "dailyCalories": as_int,
    "macroSplit": number_map_or_text,
    "sampleMenu": as_text,
    "shoppingList": text_or_text_list,
    "precautions": as_text,
    "mealTiming": as_text,
    "hydration": as_text,
    "supplements": as_text,
    "diets": mapping_of(mapping_of(record(MEAL_TABLE, scalar_key="name"))),
}

EXERCISE_TABLE: CoercionTable = {
    "name": as_text,
    "description": as_text,
    "duration": as_int,
    "intensity": as_text,
    "difficulty": as_text,
    "calories": as_int,
    "type": as_text,
    "exerciseCategory": as_text,
    "reason": as_text,
    "part": as_text,
    "targetMuscles": as_text_list,
    "sets": as_int,
    "reps": as_int,
    "restTime": as_text,
    "steps": as_text_list,
    "effects": as_text_list,
    "tips": as_text,
    "caution": as_text,
    "videoUrl": as_text,
    "youtubeQuery": as_text,
    "unsplashQuery": as_text,
}

WORKOUT_PLAN_TABLE: CoercionTable = {
    "programName": as_text,
    "weeklySchedule": as_text,
    "caution": as_text,
    "warmup": as_text,
    "mainSets": as_text,
    "cooldown": as_text,
    "equipment": as_text,
    "targetMuscles": as_text,
    "expectedResults": as_text,
    "workouts": mapping_of(list_of(record(EXERCISE_TABLE, scalar_key="name"))),
}
