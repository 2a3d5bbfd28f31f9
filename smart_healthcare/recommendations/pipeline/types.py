"""Value types passed between the pipeline stages.

Everything here is created per request and never shared: a run builds its own
attempt log, reports and prompts, and discards them once the typed result (or
the terminal error) has been handed back to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class AttemptOutcome(str, Enum):
    SUCCESS = "success"
    GATEWAY_FAILURE = "gateway_failure"
    EXTRACTION_FAILURE = "extraction_failure"
    DECODE_FAILURE = "decode_failure"
    VALIDATION_FAILURE = "validation_failure"


@dataclass(frozen=True)
class Prompt:
    """System and user messages sent on one attempt."""

    system: str
    user: str

    def to_messages(self) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


@dataclass(frozen=True)
class RawModelResponse:
    """Textual answer of one gateway call plus provider usage metadata."""

    content: str
    usage: dict[str, Any] = field(default_factory=dict)

    @property
    def completion_tokens(self) -> int | None:
        tokens = self.usage.get("completion_tokens")
        return int(tokens) if isinstance(tokens, (int, float)) else None


@dataclass(frozen=True)
class GatewayFailure:
    reason: str
    timed_out: bool = False


@dataclass(frozen=True)
class DecodeFailure:
    reason: str


@dataclass(frozen=True)
class SelectionContext:
    """Days and meals the user actually asked for."""

    selected_days: frozenset[str] = frozenset()
    selected_meals: frozenset[str] = frozenset()

    @classmethod
    def of(cls, days: list[str] | tuple[str, ...] = (), meals: list[str] | tuple[str, ...] = ()) -> SelectionContext:
        return cls(selected_days=frozenset(days), selected_meals=frozenset(meals))


@dataclass
class ValidationReport:
    missing_keys: set[str] = field(default_factory=set)
    extra_keys: set[str] = field(default_factory=set)
    under_count_days: dict[str, int] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        # extra keys are kept for diagnostics only
        return not self.missing_keys and not self.under_count_days

    def describe(self) -> str:
        parts: list[str] = []
        if self.missing_keys:
            parts.append(f"missing: {', '.join(sorted(self.missing_keys))}")
        if self.under_count_days:
            counts = ", ".join(f"{day}={count}" for day, count in sorted(self.under_count_days.items()))
            parts.append(f"too few items: {counts}")
        if self.extra_keys:
            parts.append(f"unexpected: {', '.join(sorted(self.extra_keys))}")
        return "; ".join(parts) if parts else "valid"


@dataclass(frozen=True)
class AttemptRecord:
    index: int
    outcome: AttemptOutcome
    reason: str | None = None
    report: ValidationReport | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is AttemptOutcome.SUCCESS


@dataclass(frozen=True)
class Fallback(Generic[T]):
    """Terminal policy: hand back a labeled default value."""

    value: T


@dataclass(frozen=True)
class RaiseError:
    """Terminal policy: raise RecommendationFailedError."""


@dataclass(frozen=True)
class RetryPolicy(Generic[T]):
    max_attempts: int
    terminal: Fallback[T] | RaiseError = field(default_factory=RaiseError)
    backoff_base_seconds: float = 0.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")


@dataclass
class PipelineRun(Generic[T]):
    """Outcome of one orchestration run, including the full attempt log."""

    value: T
    attempts: list[AttemptRecord]
    used_fallback: bool = False

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)
