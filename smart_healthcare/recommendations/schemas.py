"""Typed result shapes decoded from LLM answers.

Field names on the wire are camelCase (the contract persisted and returned to
clients); Python attributes are snake_case. Every field is optional so that a
partially-filled answer still decodes and the validators decide whether it is
usable.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from smart_healthcare.recommendations.constants import MODEL_ANALYSIS_METHOD


class WireModel(BaseModel):
    """Base for models exchanged with the LLM and with clients."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class BodyAnalysisResult(WireModel):
    """Body-type classification derived from InBody measurements."""

    label: str | None = Field(default=None, description="Body-type label, e.g. 'muscular'")
    summary: str | None = Field(default=None, description="One-sentence summary")
    reasoning: str | None = Field(default=None, description="Why the label was chosen")
    tips: str | None = Field(default=None, description="Lifestyle, training and diet tips")
    health_risk: str | None = Field(default=None, description="Risk level with its rationale")
    muscle_balance: str | None = None
    metabolic_health: str | None = None
    body_composition: str | None = None
    bmi_category: str | None = None
    body_fat_category: str | None = None
    visceral_fat_category: str | None = None
    inbody_score: int | None = None
    analysis_method: str = Field(
        default=MODEL_ANALYSIS_METHOD,
        description="'AI' for model answers, a fallback marker otherwise",
    )


class Nutrients(WireModel):
    carbs: float | None = None
    protein: float | None = None
    fat: float | None = None


class Meal(WireModel):
    name: str | None = None
    description: str | None = None
    calories: int | None = None
    nutrients: Nutrients = Field(default_factory=Nutrients)
    reason: str | None = None
    ingredients: list[str] = Field(default_factory=list)
    instructions: str | None = None
    tips: str | None = None
    unsplash_query: str | None = None


class DietPlan(WireModel):
    """Weekly diet recommendation; `diets` maps day -> meal type -> meal."""

    meal_style: str | None = None
    daily_calories: int | None = None
    macro_split: dict[str, float] | str | None = Field(
        default=None,
        description="Macro percentages as an object, or free text",
    )
    sample_menu: str | None = None
    shopping_list: list[str] | str | None = None
    precautions: str | None = None
    meal_timing: str | None = None
    hydration: str | None = None
    supplements: str | None = None
    diets: dict[str, dict[str, Meal]] = Field(default_factory=dict)


class Exercise(WireModel):
    name: str | None = None
    description: str | None = None
    duration: int | None = Field(default=None, description="Minutes")
    intensity: str | None = None
    difficulty: str | None = None
    calories: int | None = None
    exercise_type: str | None = Field(default=None, alias="type")
    exercise_category: str | None = None
    reason: str | None = None
    part: str | None = Field(default=None, description="Body part trained")
    target_muscles: list[str] = Field(default_factory=list)
    sets: int | None = None
    reps: int | None = None
    rest_time: str | None = None
    steps: list[str] = Field(default_factory=list)
    effects: list[str] = Field(default_factory=list)
    tips: str | None = None
    caution: str | None = None
    video_url: str | None = None
    youtube_query: str | None = None
    unsplash_query: str | None = None


class WorkoutPlan(WireModel):
    """Weekly workout recommendation; `workouts` maps day -> exercises."""

    program_name: str | None = None
    weekly_schedule: str | None = None
    caution: str | None = None
    warmup: str | None = None
    main_sets: str | None = None
    cooldown: str | None = None
    equipment: str | None = None
    target_muscles: str | None = None
    expected_results: str | None = None
    workouts: dict[str, list[Exercise]] = Field(default_factory=dict)
