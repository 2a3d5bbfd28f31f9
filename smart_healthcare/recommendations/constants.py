"""Day and meal vocabularies shared by requests, prompts and validation."""

WEEKDAYS: tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

MEAL_TYPES: tuple[str, ...] = ("breakfast", "lunch", "dinner", "snack")

# Diet plans always cover the working week; meals come from the survey
DEFAULT_DIET_DAYS: tuple[str, ...] = WEEKDAYS[:5]
DEFAULT_MEALS: tuple[str, ...] = ("breakfast", "lunch", "dinner")
DEFAULT_WORKOUT_DAYS: tuple[str, ...] = ("Monday", "Wednesday", "Friday")

MIN_EXERCISES_PER_DAY = 3

# Survey answers arrive in Korean from the client
KOREAN_DAY_NAMES: dict[str, str] = {
    "월": "Monday",
    "월요일": "Monday",
    "화": "Tuesday",
    "화요일": "Tuesday",
    "수": "Wednesday",
    "수요일": "Wednesday",
    "목": "Thursday",
    "목요일": "Thursday",
    "금": "Friday",
    "금요일": "Friday",
    "토": "Saturday",
    "토요일": "Saturday",
    "일": "Sunday",
    "일요일": "Sunday",
}

KOREAN_MEAL_NAMES: dict[str, str] = {
    "아침": "breakfast",
    "점심": "lunch",
    "저녁": "dinner",
    "간식": "snack",
}

FALLBACK_ANALYSIS_METHOD = "AI_FAILED_FALLBACK"
MODEL_ANALYSIS_METHOD = "AI"
