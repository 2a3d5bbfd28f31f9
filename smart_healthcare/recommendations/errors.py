"""Errors raised by the recommendation flows.

Pipeline stages report failures as values; exceptions are reserved for the
gateway boundary and for the terminal policy of flows that must not degrade
silently.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from smart_healthcare.recommendations.pipeline.types import AttemptRecord


class RecommendationError(Exception):
    """Base exception for all recommendation errors."""

    pass


class GatewayError(RecommendationError):
    """Raised by an LLM gateway when the provider call itself fails."""

    pass


class MissingSurveyError(RecommendationError):
    """Raised when a flow that needs survey answers receives none."""

    pass


class RecommendationFailedError(RecommendationError):
    """Raised when every attempt of a flow failed and its policy is to raise."""

    def __init__(self, flow: str, attempts: list[AttemptRecord]) -> None:
        self.flow = flow
        self.attempts = list(attempts)
        last = self.attempts[-1] if self.attempts else None
        self.last_reason = (last.reason if last and last.reason else "unknown error")
        super().__init__(
            f"{flow} generation failed after {len(self.attempts)} attempts: {self.last_reason}"
        )

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)
