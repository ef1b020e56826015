"""
Pure scoring functions for quality reports.

All constants live in ScoringWeights so callers can tune them without
touching the validator. Nothing here raises on empty input.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from bookrecon.models import QualityIssue, Severity


def _default_penalties() -> dict[Severity, float]:
    return {
        Severity.LOW: 0.02,
        Severity.MEDIUM: 0.05,
        Severity.HIGH: 0.1,
        Severity.CRITICAL: 0.2,
    }


@dataclass(frozen=True)
class ScoringWeights:
    """
    Weights, penalties and thresholds for the overall quality score.

    score = readability * w_r + structure * w_s + cleanliness * w_c
            - sum(penalty per issue severity), clamped to [0, 1]
    """

    readability: float = 0.3
    structure: float = 0.3
    cleanliness: float = 0.4
    penalties: dict[Severity, float] = field(default_factory=_default_penalties)
    pass_threshold: float = 0.7

    # Recommendation triggers
    min_enhancement_confidence: float = 0.7
    recurring_issue_count: int = 2  # Issue type must appear more often than this

    def __post_init__(self):
        """Validate configuration."""
        for name in ("readability", "structure", "cleanliness"):
            value = getattr(self, name)
            if value < 0.0:
                raise ValueError(f"{name} weight must be >= 0.0, got {value}")
        if not 0.0 <= self.pass_threshold <= 1.0:
            raise ValueError(
                f"pass_threshold must be between 0.0 and 1.0, got {self.pass_threshold}"
            )
        missing = set(Severity) - set(self.penalties)
        if missing:
            names = ", ".join(sorted(s.value for s in missing))
            raise ValueError(f"penalties missing severities: {names}")


DEFAULT_WEIGHTS = ScoringWeights()


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def issue_penalty(
    issues: Iterable[QualityIssue], weights: ScoringWeights = DEFAULT_WEIGHTS
) -> float:
    """Sum of severity penalties."""
    return sum(weights.penalties[issue.severity] for issue in issues)


def metrics_score(
    readability: float,
    structure: float,
    cleanliness: float,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> float:
    return (
        readability * weights.readability
        + structure * weights.structure
        + cleanliness * weights.cleanliness
    )


def overall_score(
    readability: float,
    structure: float,
    cleanliness: float,
    issues: Iterable[QualityIssue],
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> float:
    """Weighted metric score minus issue penalties, clamped to [0, 1]."""
    base = metrics_score(readability, structure, cleanliness, weights)
    return clamp(base - issue_penalty(issues, weights))


def is_valid(
    score: float,
    issues: Iterable[QualityIssue],
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> bool:
    """Pass when the score meets the threshold and no issue is critical."""
    if score < weights.pass_threshold:
        return False
    return not any(issue.severity is Severity.CRITICAL for issue in issues)
