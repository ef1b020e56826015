"""
Tests for the quality validator.
"""

import pytest

from bookrecon.models import (
    BookStructure,
    EnhancementSummary,
    IssueType,
    Severity,
    StructureHierarchy,
)
from bookrecon.quality import QualityValidator

GOOD_TEXT = (
    "Die Philosophie beginnt mit dem Staunen. Sie fragt nach dem Grund der Dinge.\n\n"
    "Kant unterscheidet Erscheinung und Ding an sich. Die Vernunft stößt an Grenzen.\n\n"
    "Hegel antwortet mit der Dialektik. Der Geist kommt zu sich selbst."
)


@pytest.fixture
def validator(de_rules) -> QualityValidator:
    return QualityValidator(de_rules)


class TestValidate:
    """Tests for the overall report."""

    def test_clean_text_passes(self, validator):
        """Well-formed text has no issues and passes."""
        report = validator.validate(GOOD_TEXT)
        assert report.issues == ()
        assert report.is_valid
        assert report.score == pytest.approx(0.79)
        assert report.threshold == 0.7

    def test_short_text_fails(self, validator):
        """50 characters without paragraph breaks: high structure issue, invalid."""
        text = "Wort " * 10
        assert len(text) == 50

        report = validator.validate(text)

        structure_issues = report.issues_of(IssueType.STRUCTURE)
        assert any(i.severity is Severity.HIGH for i in structure_issues)
        assert any("paragraph breaks" in i.description for i in structure_issues)
        assert not report.is_valid

    def test_empty_text_is_critical(self, validator):
        """Nothing to validate is a critical issue."""
        report = validator.validate("")

        assert report.has_critical_issues
        assert not report.is_valid
        assert report.confidence == 0.0
        assert report.metrics.cleanliness_score == 0.0
        assert report.recommendations[0] == (
            "Address all critical issues before proceeding to next pipeline phase"
        )

    def test_high_issue_lowers_score(self, validator):
        """One more high-severity issue strictly lowers the score."""
        baseline = validator.validate(GOOD_TEXT)
        worse = validator.validate(GOOD_TEXT, summary=EnhancementSummary(issues_remaining=5))

        assert len(worse.issues) == len(baseline.issues) + 1
        assert worse.issues[-1].severity is Severity.HIGH
        assert worse.score < baseline.score

    def test_confidence_from_word_count(self, validator):
        """Confidence grows with sample size up to 1.0."""
        report = validator.validate(GOOD_TEXT)
        assert report.confidence == pytest.approx(report.metrics.word_count / 100)

    def test_completeness_from_original(self, validator):
        """Lost words reduce completeness."""
        report = validator.validate(GOOD_TEXT, original_text=GOOD_TEXT)
        assert report.completeness == 1.0

        report = validator.validate("Die Philosophie beginnt.", original_text=GOOD_TEXT)
        assert report.completeness < 0.5

    def test_consistency_from_structure(self, validator):
        """Inconsistent structure numbering halves consistency."""
        structure = BookStructure(
            hierarchy=StructureHierarchy(has_consistent_numbering=False)
        )
        report = validator.validate(GOOD_TEXT, structure=structure)
        assert report.consistency == 0.5

    def test_to_dict(self, validator):
        data = validator.validate("").to_dict()
        assert data["is_valid"] is False
        assert data["issues"][0]["severity"] == "critical"
        assert data["issues"][0]["type"] == "structure"


class TestMetrics:
    """Tests for text metrics."""

    def test_abbreviations_do_not_end_sentences(self, validator):
        text = "Vgl. z. B. Kant, d. h. die Vernunft."
        assert len(validator.split_sentences(text)) == 1
        assert len(QualityValidator().split_sentences(text)) > 1

    def test_metrics(self, validator):
        metrics = validator.calculate_metrics(GOOD_TEXT)
        assert metrics.paragraph_count == 3
        assert metrics.sentence_count == 6
        assert metrics.readability_score == 1.0
        assert metrics.structure_score == pytest.approx(0.3)

    @pytest.mark.parametrize(
        "text,score",
        [
            ("", 0.0),
            ("Klarer Text.", 1.0),
            ("xxxxx", 0.8),
        ],
    )
    def test_cleanliness_score(self, text, score):
        assert QualityValidator.cleanliness_score(text) == pytest.approx(score)

    def test_word_loss_ratio_without_original(self):
        assert QualityValidator.word_loss_ratio("Text", None) == 0.0
        assert QualityValidator.word_loss_ratio("Text", "ab cd") == 0.0


class TestChecks:
    """Tests for individual check families."""

    def test_length_difference(self, validator):
        issues = validator.check_structure(GOOD_TEXT[:100] + "\n\nEnde", GOOD_TEXT)
        assert any("length difference" in i.description for i in issues)

    def test_long_sentences(self, validator):
        text = " ".join(["wort"] * 60) + "."
        issues = validator.check_readability(text)
        assert any("very long" in i.description for i in issues)

    def test_repetition(self, validator):
        """More than five frequent long words is repetition."""
        text = "alpha beta gamma delta epsilon zeta " * 3
        issues = validator.check_readability(text)
        assert [i.description for i in issues] == ["High repetition of certain words detected"]

    def test_artifacts_reported(self, validator):
        issues = validator.check_cleanliness("Text || mit ~~ Resten.", None)
        assert len(issues) == 2
        assert all(i.severity is Severity.MEDIUM for i in issues)

    def test_remaining_exceeds_fixed(self, validator):
        summary = EnhancementSummary(spelling_corrections=1, issues_remaining=2)
        issues = validator.check_cleanliness("Text", summary)
        assert [i.severity for i in issues] == [Severity.HIGH]

    def test_content_loss(self, validator):
        issues = validator.check_completeness("Die Philosophie beginnt.", GOOD_TEXT)
        severities = sorted(i.severity.value for i in issues)
        assert severities == ["high", "medium"]

    def test_mixed_line_endings(self, validator):
        issues = validator.check_formatting("eins\r\nzwei\ndrei")
        assert [i.description for i in issues] == ["Mixed line ending types detected"]

    def test_spacing(self, validator):
        issues = validator.check_formatting("a   b   c   d   e   f   g")
        assert [i.description for i in issues] == ["Inconsistent spacing detected"]


class TestRecommendations:
    """Tests for follow-up directives."""

    def test_recurring_issue_type(self, validator):
        report = validator.validate("")
        assert "Focus on structure issues - they appear most frequently" in (
            report.recommendations
        )

    def test_summary_nudges(self, validator):
        summary = EnhancementSummary(confidence=0.5)
        recommendations = validator.validate(GOOD_TEXT, summary=summary).recommendations
        assert recommendations == (
            "Consider adjusting enhancement settings for better results",
            "No OCR debris was removed - consider adjusting debris detection settings",
            "No spelling corrections were made - review spell-checking configuration",
        )

    def test_no_summary_no_nudges(self, validator):
        assert validator.validate(GOOD_TEXT).recommendations == ()
