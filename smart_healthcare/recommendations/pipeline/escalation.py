"""Corrective prompts for retries.

Each retry starts again from the original prompt and appends instructions
derived from the previous attempt, so corrections never pile up.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from smart_healthcare.recommendations.constants import MIN_EXERCISES_PER_DAY
from smart_healthcare.recommendations.pipeline.types import (
    AttemptOutcome,
    AttemptRecord,
    Prompt,
    SelectionContext,
)

EscalateFn = Callable[[Prompt, AttemptRecord, SelectionContext], Prompt]

JSON_ONLY_INSTRUCTION = (
    "Output ONLY one valid JSON object. Do NOT wrap it in markdown code blocks. "
    "Do NOT include any text before or after the JSON. It must start with { and end with }."
)


def corrective_instructions(
    record: AttemptRecord,
    ctx: SelectionContext,
    item_label: str = "items",
) -> list[str]:
    """Turn the last failed attempt into a list of instructions for the model."""
    if record.outcome in (AttemptOutcome.EXTRACTION_FAILURE, AttemptOutcome.DECODE_FAILURE):
        lines = [JSON_ONLY_INSTRUCTION]
        if record.reason:
            lines.append(f"The previous answer could not be used: {record.reason}")
        return lines

    if record.outcome is not AttemptOutcome.VALIDATION_FAILURE or record.report is None:
        return []

    report = record.report
    lines: list[str] = []
    if report.missing_keys:
        lines.append(f"The previous answer was missing: {', '.join(sorted(report.missing_keys))}. Include all of them.")
    if report.under_count_days:
        counts = ", ".join(f"{day} had {count}" for day, count in sorted(report.under_count_days.items()))
        lines.append(
            f"Every selected day needs at least {MIN_EXERCISES_PER_DAY} {item_label} ({counts}). "
            f"No day may have fewer than {MIN_EXERCISES_PER_DAY}."
        )
    if report.extra_keys and ctx.selected_days:
        lines.append(f"Only include these days: {', '.join(sorted(ctx.selected_days))}. Do not add any other day.")
    return lines


def escalate_prompt(
    prompt: Prompt,
    record: AttemptRecord,
    ctx: SelectionContext,
    *,
    item_label: str = "items",
    reminders: Sequence[str] = (),
) -> Prompt:
    """Build the prompt for the attempt following ``record``.

    Gateway failures say nothing about the answer, so the original prompt is
    sent again unchanged.
    """
    lines = corrective_instructions(record, ctx, item_label)
    if not lines:
        return prompt
    lines.extend(reminders)
    corrections = "\n".join(f"- {line}" for line in lines)
    return Prompt(
        system=prompt.system,
        user=f"{prompt.user}\n\nPREVIOUS ATTEMPT FAILED. FIX THE FOLLOWING:\n{corrections}",
    )


def escalation(item_label: str = "items", reminders: Sequence[str] = ()) -> EscalateFn:
    """Bind per-flow wording into an escalation function for the orchestrator."""

    def escalate(prompt: Prompt, record: AttemptRecord, ctx: SelectionContext) -> Prompt:
        return escalate_prompt(prompt, record, ctx, item_label=item_label, reminders=reminders)

    return escalate
