"""
Tests for the pure scoring functions.
"""

import pytest

from bookrecon.models import IssueType, QualityIssue, Severity
from bookrecon.quality import (
    DEFAULT_WEIGHTS,
    ScoringWeights,
    clamp,
    is_valid,
    issue_penalty,
    metrics_score,
    overall_score,
)


def issue(severity):
    return QualityIssue(IssueType.STRUCTURE, severity, "test")


class TestScoring:
    """Tests for score arithmetic."""

    def test_metrics_score_weights(self):
        assert metrics_score(1.0, 1.0, 1.0) == pytest.approx(1.0)
        assert metrics_score(1.0, 0.0, 0.0) == pytest.approx(0.3)
        assert metrics_score(0.0, 0.0, 1.0) == pytest.approx(0.4)

    def test_penalties_by_severity(self):
        issues = [issue(s) for s in Severity]
        assert issue_penalty(issues) == pytest.approx(0.02 + 0.05 + 0.1 + 0.2)

    def test_overall_score_clamped(self):
        """Heavy penalties never push the score below zero."""
        issues = [issue(Severity.CRITICAL)] * 10
        assert overall_score(0.5, 0.5, 0.5, issues) == 0.0
        assert overall_score(1.0, 1.0, 1.0, []) == pytest.approx(1.0)

    @pytest.mark.parametrize("severity", list(Severity))
    def test_added_issue_lowers_score(self, severity):
        """Any added issue strictly lowers an unclamped score."""
        base = overall_score(0.9, 0.9, 0.9, [issue(Severity.LOW)])
        worse = overall_score(0.9, 0.9, 0.9, [issue(Severity.LOW), issue(severity)])
        assert worse < base

    def test_clamp(self):
        assert clamp(-0.5) == 0.0
        assert clamp(1.5) == 1.0
        assert clamp(0.25) == 0.25


class TestIsValid:
    """Tests for the pass/fail gate."""

    def test_threshold(self):
        assert is_valid(0.7, [])
        assert not is_valid(0.69, [])

    def test_critical_issue_fails(self):
        """A critical issue fails regardless of score."""
        assert not is_valid(0.95, [issue(Severity.CRITICAL)])
        assert is_valid(0.95, [issue(Severity.HIGH)])

    def test_custom_threshold(self):
        weights = ScoringWeights(pass_threshold=0.5)
        assert is_valid(0.55, [], weights)
        assert not is_valid(0.55, [], DEFAULT_WEIGHTS)


class TestScoringWeights:
    """Tests for weight validation."""

    def test_negative_weight_rejected(self):
        with pytest.raises(ValueError, match="readability"):
            ScoringWeights(readability=-0.1)

    def test_threshold_range(self):
        with pytest.raises(ValueError, match="pass_threshold"):
            ScoringWeights(pass_threshold=1.5)

    def test_missing_penalty_rejected(self):
        with pytest.raises(ValueError, match="critical"):
            ScoringWeights(penalties={Severity.LOW: 0.1, Severity.MEDIUM: 0.1, Severity.HIGH: 0.1})
