"""
Quality gating for reconstructed documents.

Example:
    >>> from bookrecon.quality import QualityValidator
    >>> report = QualityValidator().validate("Zu kurz.")
    >>> report.is_valid
    False
"""

from bookrecon.quality.scoring import (
    DEFAULT_WEIGHTS,
    ScoringWeights,
    clamp,
    is_valid,
    issue_penalty,
    metrics_score,
    overall_score,
)
from bookrecon.quality.validator import QualityValidator

__all__ = [
    "QualityValidator",
    # Scoring
    "ScoringWeights",
    "DEFAULT_WEIGHTS",
    "clamp",
    "issue_penalty",
    "metrics_score",
    "overall_score",
    "is_valid",
]
