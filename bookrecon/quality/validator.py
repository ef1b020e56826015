"""
Quality validation for reconstructed text.

The validator computes text metrics, runs five families of checks
(structure, readability, cleanliness, completeness, formatting) and folds
both into a QualityReport that gates downstream processing. Every ratio
is zero-guarded; validation never raises on odd input.
"""

from __future__ import annotations

import logging
import re
from collections import Counter

from bookrecon.models import (
    BookStructure,
    EnhancementSummary,
    IssueType,
    QualityIssue,
    QualityReport,
    Severity,
    ValidationMetrics,
)
from bookrecon.quality.scoring import ScoringWeights, clamp, is_valid, overall_score
from bookrecon.rules import RuleSet

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

MIN_TEXT_LENGTH = 100
MAX_LENGTH_DELTA = 0.3
LONG_SENTENCE_WORDS = 50
MAX_LONG_SENTENCE_SHARE = 0.2
REPEATED_WORD_SHARE = 0.05
MAX_REPEATED_WORDS = 5
MAX_WORD_LOSS = 0.1
MIN_LINE_RETENTION = 0.8
MAX_SPACE_RUNS = 5

# Latin, Latin Extended, punctuation, super/subscripts and currency
PROBLEMATIC_CHAR = re.compile(
    r"[^\t\n\r\x20-\x7e\u00a0-\u024f\u1e00-\u1eff\u2000-\u206f\u2070-\u209f\u20a0-\u20cf]"
)
REPEATED_RUN = re.compile(r"(\S)\1{3,}")
PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
SENTENCE_END = re.compile(r"[.!?]+")
SPACE_RUN = re.compile(r" {3,}")

ARTIFACT_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("pipe runs", re.compile(r"\|{2,}")),
    ("tilde runs", re.compile(r"~{2,}")),
    ("underscore runs", re.compile(r"_{4,}")),
    ("dot runs", re.compile(r"\.{5,}")),
    ("non-standard characters", PROBLEMATIC_CHAR),
)

_MASK = "\x00"


# =============================================================================
# QUALITY VALIDATOR
# =============================================================================


class QualityValidator:
    """
    Scores reconstructed text and reports typed issues.

    Example:
        >>> validator = QualityValidator(rules)
        >>> report = validator.validate(cleaned, original_text=raw, summary=summary)
        >>> report.is_valid, [i.type.value for i in report.issues]
        (True, [])
    """

    def __init__(
        self,
        rule_set: RuleSet | None = None,
        weights: ScoringWeights | None = None,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize validator.

        Args:
            rule_set: Supplies abbreviations that do not end sentences.
            weights: Scoring weights. Uses defaults if not provided.
            logger: Logger to use; defaults to the module logger.
        """
        self.weights = weights or ScoringWeights()
        self.logger = logger or logging.getLogger(__name__)

        abbreviations = sorted(rule_set.abbreviations, key=len, reverse=True) if rule_set else []
        if abbreviations:
            alternation = "|".join(re.escape(a) for a in abbreviations)
            self._abbreviation_pattern = re.compile(rf"(?<!\w)(?:{alternation})", re.IGNORECASE)
        else:
            self._abbreviation_pattern = None

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def validate(
        self,
        text: str,
        original_text: str | None = None,
        summary: EnhancementSummary | None = None,
        structure: BookStructure | None = None,
    ) -> QualityReport:
        """
        Validate text quality.

        Args:
            text: The reconstructed text.
            original_text: Text before enhancement, for length, word and line
                comparisons. Comparisons are skipped when omitted.
            summary: What upstream enhancement changed.
            structure: Extracted structure, used for consistency.

        Returns:
            QualityReport
        """
        metrics = self.calculate_metrics(text)

        issues: list[QualityIssue] = []
        issues.extend(self.check_structure(text, original_text))
        issues.extend(self.check_readability(text))
        issues.extend(self.check_cleanliness(text, summary))
        issues.extend(self.check_completeness(text, original_text))
        formatting = self.check_formatting(text)
        issues.extend(formatting)

        score = overall_score(
            metrics.readability_score,
            metrics.structure_score,
            metrics.cleanliness_score,
            issues,
            self.weights,
        )

        if structure is not None:
            consistency = 1.0 if structure.hierarchy.has_consistent_numbering else 0.5
        else:
            consistency = clamp(1.0 - 0.25 * len(formatting))

        report = QualityReport(
            is_valid=is_valid(score, issues, self.weights),
            score=score,
            confidence=min(1.0, metrics.word_count / 100),
            completeness=1.0 - self.word_loss_ratio(text, original_text),
            consistency=consistency,
            metrics=metrics,
            issues=tuple(issues),
            recommendations=tuple(self.recommendations(issues, summary)),
            threshold=self.weights.pass_threshold,
        )

        self.logger.info(
            "Quality validation completed: score=%.2f valid=%s issues=%d",
            report.score,
            report.is_valid,
            len(report.issues),
        )
        return report

    def split_sentences(self, text: str) -> list[str]:
        """Split on sentence punctuation, ignoring configured abbreviations."""
        if self._abbreviation_pattern is not None:
            text = self._abbreviation_pattern.sub(
                lambda m: m.group(0).replace(".", _MASK), text
            )
        return [s for s in SENTENCE_END.split(text) if s.strip()]

    def calculate_metrics(self, text: str) -> ValidationMetrics:
        word_count = len(text.split())
        sentence_count = len(self.split_sentences(text))
        paragraph_count = len([p for p in PARAGRAPH_BREAK.split(text) if p.strip()])

        words_per_sentence = word_count / max(sentence_count, 1)
        readability = clamp(1 - (words_per_sentence - 15) / 50)
        structure = min(1.0, paragraph_count / 10)

        return ValidationMetrics(
            text_length=len(text),
            word_count=word_count,
            sentence_count=sentence_count,
            paragraph_count=paragraph_count,
            readability_score=readability,
            structure_score=structure,
            cleanliness_score=self.cleanliness_score(text),
        )

    @staticmethod
    def cleanliness_score(text: str) -> float:
        """1 - (problematic characters + repeated runs) / length; 0 for empty text."""
        if not text:
            return 0.0
        problematic = len(PROBLEMATIC_CHAR.findall(text)) + len(REPEATED_RUN.findall(text))
        return clamp(1 - problematic / len(text))

    @staticmethod
    def word_loss_ratio(text: str, original_text: str | None) -> float:
        """Share of the original's distinct words (len > 3) missing from text."""
        if not original_text:
            return 0.0
        original_words = {w for w in original_text.lower().split() if len(w) > 3}
        if not original_words:
            return 0.0
        kept = {w for w in text.lower().split() if len(w) > 3}
        return len(original_words - kept) / len(original_words)

    # -------------------------------------------------------------------------
    # Checks
    # -------------------------------------------------------------------------

    def check_structure(self, text: str, original_text: str | None) -> list[QualityIssue]:
        issues = []

        if not text.strip():
            issues.append(
                QualityIssue(
                    IssueType.STRUCTURE,
                    Severity.CRITICAL,
                    "Text is empty",
                    "Check text extraction; nothing survived processing",
                )
            )

        if len(text) < MIN_TEXT_LENGTH:
            issues.append(
                QualityIssue(
                    IssueType.STRUCTURE,
                    Severity.HIGH,
                    "Text is extremely short, possibly incomplete",
                    "Review text extraction and enhancement process",
                )
            )

        if not PARAGRAPH_BREAK.search(text):
            issues.append(
                QualityIssue(
                    IssueType.STRUCTURE,
                    Severity.MEDIUM,
                    "No paragraph breaks detected",
                    "Consider adding paragraph structure based on content analysis",
                )
            )

        if original_text:
            ratio = abs(len(text) - len(original_text)) / len(original_text)
            if ratio > MAX_LENGTH_DELTA:
                issues.append(
                    QualityIssue(
                        IssueType.STRUCTURE,
                        Severity.MEDIUM,
                        f"Significant length difference from original ({ratio * 100:.1f}%)",
                        "Review enhancement process for potential over-processing",
                    )
                )

        return issues

    def check_readability(self, text: str) -> list[QualityIssue]:
        issues = []

        sentences = self.split_sentences(text)
        long_sentences = [s for s in sentences if len(s.split()) > LONG_SENTENCE_WORDS]
        if sentences and len(long_sentences) > len(sentences) * MAX_LONG_SENTENCE_SHARE:
            issues.append(
                QualityIssue(
                    IssueType.READABILITY,
                    Severity.LOW,
                    "Many sentences are very long, potentially affecting readability",
                    "Consider breaking down long sentences for better readability",
                )
            )

        words = text.lower().split()
        frequency = Counter(words)
        repeated = [
            word
            for word, count in frequency.items()
            if len(word) > 3 and count > len(words) * REPEATED_WORD_SHARE
        ]
        if len(repeated) > MAX_REPEATED_WORDS:
            issues.append(
                QualityIssue(
                    IssueType.READABILITY,
                    Severity.LOW,
                    "High repetition of certain words detected",
                    "Check for duplicated pages or running headers left in the text",
                )
            )

        return issues

    def check_cleanliness(
        self, text: str, summary: EnhancementSummary | None
    ) -> list[QualityIssue]:
        issues = []

        for name, pattern in ARTIFACT_PATTERNS:
            matches = pattern.findall(text)
            if matches:
                examples = ", ".join(repr(m) for m in matches[:3])
                issues.append(
                    QualityIssue(
                        IssueType.CLEANLINESS,
                        Severity.MEDIUM,
                        f"Potential OCR artifacts still present ({name}): {examples}",
                        "Run additional cleaning passes or manual review",
                    )
                )

        if summary is not None and summary.issues_remaining > summary.issues_fixed:
            issues.append(
                QualityIssue(
                    IssueType.CLEANLINESS,
                    Severity.HIGH,
                    "More issues remain unfixed than were fixed",
                    "Review enhancement settings and consider more aggressive cleaning",
                )
            )

        return issues

    def check_completeness(self, text: str, original_text: str | None) -> list[QualityIssue]:
        issues = []
        if not original_text:
            return issues

        loss = self.word_loss_ratio(text, original_text)
        if loss > MAX_WORD_LOSS:
            issues.append(
                QualityIssue(
                    IssueType.COMPLETENESS,
                    Severity.HIGH,
                    f"Significant content loss detected ({loss * 100:.1f}% of unique words)",
                    "Review enhancement process for over-aggressive cleaning",
                )
            )

        lines = [line for line in text.splitlines() if line.strip()]
        original_lines = [line for line in original_text.splitlines() if line.strip()]
        if len(lines) < len(original_lines) * MIN_LINE_RETENTION:
            issues.append(
                QualityIssue(
                    IssueType.COMPLETENESS,
                    Severity.MEDIUM,
                    "Potential missing sections detected",
                    "Compare line-by-line to identify missing content",
                )
            )

        return issues

    def check_formatting(self, text: str) -> list[QualityIssue]:
        issues = []

        if len(SPACE_RUN.findall(text)) > MAX_SPACE_RUNS:
            issues.append(
                QualityIssue(
                    IssueType.FORMATTING,
                    Severity.LOW,
                    "Inconsistent spacing detected",
                    "Standardize spacing throughout the text",
                )
            )

        crlf = text.count("\r\n")
        endings = (crlf, text.count("\n") - crlf, text.count("\r") - crlf)
        if sum(1 for count in endings if count) > 1:
            issues.append(
                QualityIssue(
                    IssueType.FORMATTING,
                    Severity.LOW,
                    "Mixed line ending types detected",
                    "Standardize line endings to one type",
                )
            )

        return issues

    # -------------------------------------------------------------------------
    # Recommendations
    # -------------------------------------------------------------------------

    def recommendations(
        self, issues: list[QualityIssue], summary: EnhancementSummary | None
    ) -> list[str]:
        recommendations = []

        if any(issue.severity is Severity.CRITICAL for issue in issues):
            recommendations.append(
                "Address all critical issues before proceeding to next pipeline phase"
            )

        if summary is not None and summary.confidence < self.weights.min_enhancement_confidence:
            recommendations.append("Consider adjusting enhancement settings for better results")

        if issues:
            issue_type, count = Counter(issue.type for issue in issues).most_common(1)[0]
            if count > self.weights.recurring_issue_count:
                recommendations.append(
                    f"Focus on {issue_type.value} issues - they appear most frequently"
                )

        if summary is not None:
            if summary.debris_removed == 0:
                recommendations.append(
                    "No OCR debris was removed - consider adjusting debris detection settings"
                )
            if summary.spelling_corrections == 0:
                recommendations.append(
                    "No spelling corrections were made - review spell-checking configuration"
                )

        return recommendations
