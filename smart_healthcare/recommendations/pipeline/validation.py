"""Invariant checks of decoded results against what the user selected.

Only the coarse per-day minimum is enforced for workouts. Per-category quotas
written into free-text survey answers (e.g. "3 back exercises plus one core
exercise") are relayed to the model through the prompt and are not checked here.
"""

from __future__ import annotations

from smart_healthcare.recommendations.constants import MIN_EXERCISES_PER_DAY
from smart_healthcare.recommendations.pipeline.types import SelectionContext, ValidationReport
from smart_healthcare.recommendations.schemas import BodyAnalysisResult, DietPlan, WorkoutPlan


def validate_workout_plan(plan: WorkoutPlan, ctx: SelectionContext) -> ValidationReport:
    """Check day coverage and the minimum number of exercises per selected day.

    Args:
        plan: Decoded workout plan
        ctx: Days the user asked for

    Returns:
        Report with missing days, unexpected days and days under the minimum
    """
    report = ValidationReport()
    present = set(plan.workouts)

    report.missing_keys.update(ctx.selected_days - present)
    report.extra_keys.update(present - ctx.selected_days)

    for day in ctx.selected_days & present:
        count = len(plan.workouts[day])
        if count < MIN_EXERCISES_PER_DAY:
            report.under_count_days[day] = count

    return report


def validate_diet_plan(plan: DietPlan, ctx: SelectionContext) -> ValidationReport:
    """Check day coverage and, under each selected day, meal coverage.

    Missing or unexpected meals are reported as ``"Day.meal"``.
    """
    report = ValidationReport()
    present_days = set(plan.diets)

    report.missing_keys.update(ctx.selected_days - present_days)
    report.extra_keys.update(present_days - ctx.selected_days)

    for day in sorted(ctx.selected_days & present_days):
        meals = set(plan.diets[day])
        report.missing_keys.update(f"{day}.{meal}" for meal in ctx.selected_meals - meals)
        report.extra_keys.update(f"{day}.{meal}" for meal in meals - ctx.selected_meals)

    return report


def validate_body_analysis(result: BodyAnalysisResult, ctx: SelectionContext) -> ValidationReport:
    report = ValidationReport()
    if not (result.label or "").strip():
        report.missing_keys.add("label")
    if not (result.summary or "").strip():
        report.missing_keys.add("summary")
    return report
