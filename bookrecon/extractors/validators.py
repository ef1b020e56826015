"""
Validation rules for extracted structure.

Three kinds of checks live here:

- ValidationRule subclasses check extracted headers (level skips, title
  quality). Issues are reported but never block extraction.
- assess_structure() scores a BookStructure 0-100 (missing headers,
  inconsistent numbering, orphaned footnotes).
- StructureEntryValidator checks manifest-style structure entries
  ("1.2 Title", "§12") supplied by an outer layer.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal

from bookrecon.models import BookStructure, Severity, StructureHeader

logger = logging.getLogger(__name__)


# =============================================================================
# HEADER VALIDATORS
# =============================================================================


@dataclass
class ValidationIssue:
    """A validation problem found in extracted headers."""

    type: str  # "level_skip", "short_title", etc.
    message: str
    severity: str  # "warning", "info"
    titles: list[str]  # Affected header titles


class ValidationRule(ABC):
    """Abstract base for header validation rules."""

    name: str = "base"

    @abstractmethod
    def check(self, headers: list[StructureHeader]) -> list[ValidationIssue]:
        """Check headers for issues.

        Returns list of issues found (empty if all good).
        """
        pass


class HierarchyValidator(ValidationRule):
    """Check that header levels are consistent.

    Levels shouldn't skip (e.g., chapter -> subsection without a section).
    """

    name = "hierarchy"

    def check(self, headers: list[StructureHeader]) -> list[ValidationIssue]:
        """Check for level hierarchy issues."""
        issues = []
        prev_level = 0

        for header in sorted(headers, key=lambda h: h.line_number):
            if header.level > prev_level + 1:
                issues.append(
                    ValidationIssue(
                        type="level_skip",
                        message=f"Header '{header.title}' (line {header.line_number}) "
                        f"skips levels ({prev_level} -> {header.level})",
                        severity="info",
                        titles=[header.title],
                    )
                )
            prev_level = header.level

        return issues


class TitleQualityValidator(ValidationRule):
    """Check header titles for quality issues.

    Detects likely false positives: fragments, swallowed paragraphs, bare
    numbers.
    """

    name = "title_quality"

    def __init__(self, min_title_length: int = 3, max_title_length: int = 200):
        """Initialize validator.

        Args:
            min_title_length: Minimum characters for valid title.
            max_title_length: Maximum characters for valid title.
        """
        self.min_title_length = min_title_length
        self.max_title_length = max_title_length

    def check(self, headers: list[StructureHeader]) -> list[ValidationIssue]:
        """Check header titles for quality."""
        issues = []

        for header in headers:
            title = header.title.strip()

            if len(title) < self.min_title_length:
                issues.append(
                    ValidationIssue(
                        type="short_title",
                        message=f"Header title '{title}' is too short",
                        severity="info",
                        titles=[title],
                    )
                )
            elif len(title) > self.max_title_length:
                issues.append(
                    ValidationIssue(
                        type="long_title",
                        message=f"Header title is too long ({len(title)} chars)",
                        severity="warning",
                        titles=[title[:50] + "..."],
                    )
                )
            elif title.isdigit():
                issues.append(
                    ValidationIssue(
                        type="numeric_title",
                        message=f"Header title '{title}' is just a number",
                        severity="info",
                        titles=[title],
                    )
                )

        return issues


DEFAULT_VALIDATORS: tuple[ValidationRule, ...] = (HierarchyValidator(), TitleQualityValidator())


def validate_headers(
    structure: BookStructure,
    validators: tuple[ValidationRule, ...] = DEFAULT_VALIDATORS,
) -> list[ValidationIssue]:
    """Run header validators over every header of a structure."""
    headers = list(structure.iter_headers())
    issues = []
    for validator in validators:
        found = validator.check(headers)
        if found:
            logger.debug("%s: %d issues", validator.name, len(found))
        issues.extend(found)
    return issues


# =============================================================================
# STRUCTURE QUALITY
# =============================================================================

SUPERSCRIPT_DIGITS = str.maketrans("0123456789", "⁰¹²³⁴⁵⁶⁷⁸⁹")


@dataclass(frozen=True)
class StructureIssue:
    """A structure-level problem with its score impact."""

    type: str  # "missing_headers", "inconsistent_numbering", "orphaned_footnotes"
    description: str
    severity: Severity


@dataclass(frozen=True)
class StructureQuality:
    """Structure quality on a 0-100 scale."""

    score: int
    confidence: float
    completeness: float
    consistency: float
    issues: tuple[StructureIssue, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "confidence": self.confidence,
            "completeness": self.completeness,
            "consistency": self.consistency,
            "issues": [
                {"type": i.type, "description": i.description, "severity": i.severity.value}
                for i in self.issues
            ],
        }


def _reference_forms(reference: str) -> set[str]:
    forms = {f"[{reference}]", f"({reference})"}
    if reference.isascii() and reference.isdigit():
        forms.add(reference.translate(SUPERSCRIPT_DIGITS))
    elif not (reference.isascii() and reference.isalnum()):
        forms.add(reference)  # Symbols and superscripts appear as-is
    return forms


def assess_structure(structure: BookStructure, text: str) -> StructureQuality:
    """
    Score a structure from 100 down.

    - No headers: high, -30
    - Inconsistent numbering: medium, -15
    - Each footnote never referenced outside its own line: low, -5

    Args:
        structure: Extracted structure.
        text: The text the structure was extracted from.
    """
    issues: list[StructureIssue] = []
    score = 100

    header_count = structure.header_count
    if header_count == 0:
        issues.append(
            StructureIssue("missing_headers", "No headers found in document", Severity.HIGH)
        )
        score -= 30

    if not structure.hierarchy.has_consistent_numbering:
        issues.append(
            StructureIssue(
                "inconsistent_numbering",
                "Inconsistent numbering scheme detected",
                Severity.MEDIUM,
            )
        )
        score -= 15

    footnote_lines = {f.line_number for f in structure.footnotes}
    body = " ".join(
        line
        for number, line in enumerate(text.splitlines(), start=1)
        if number not in footnote_lines
    )
    for footnote in structure.footnotes:
        if not any(form in body for form in _reference_forms(footnote.reference)):
            issues.append(
                StructureIssue(
                    "orphaned_footnotes",
                    f"Footnote {footnote.reference} has no reference in text",
                    Severity.LOW,
                )
            )
            score -= 5

    return StructureQuality(
        score=max(0, score),
        confidence=0.8,
        completeness=min(1.0, header_count / 10),
        consistency=1.0 if structure.hierarchy.has_consistent_numbering else 0.5,
        issues=tuple(issues),
    )


# =============================================================================
# STRUCTURE ENTRY VALIDATION
# =============================================================================

TOC_PATTERNS = (
    re.compile(r"^\d+\."),
    re.compile(r"^\d+\.\d+"),
    re.compile(r"^Chapter\s+\d+", re.IGNORECASE),
    re.compile(r"^Section\s+\d+", re.IGNORECASE),
    re.compile(r"^Part\s+\d+", re.IGNORECASE),
    re.compile(r"^Book\s+\d+", re.IGNORECASE),
    re.compile(r"^Kapitel\s+\d+", re.IGNORECASE),
)

PARAGRAPH_NUMBER_PATTERNS = (
    re.compile(r"^§\s?(\d+)"),
    re.compile(r"^¶\s?(\d+)"),
    re.compile(r"^P(\d+)"),
    re.compile(r"^Paragraph\s+(\d+)", re.IGNORECASE),
)

TOC_LEVEL_ONE = re.compile(r"^(?:Chapter|Part|Book|Kapitel)\s+\d+", re.IGNORECASE)
TOC_LEVEL_TWO = re.compile(r"^Section\s+\d+", re.IGNORECASE)
MAX_TOC_LEVEL = 5

EntryKind = Literal["toc", "paragraph", "unknown"]


@dataclass
class EntryResult:
    """Validation result for one structure entry."""

    index: int
    kind: EntryKind
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    level: int | None = None  # ToC entries
    paragraph_number: int | None = None  # Paragraph entries


@dataclass
class EntryValidationResult:
    """Validation result for a list of structure entries."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    entries: list[EntryResult] = field(default_factory=list)


class StructureEntryValidator:
    """
    Validates manifest-style structure entries.

    Entries are strings such as "1. Einleitung", "2.1 Methode",
    "Chapter 3" (ToC entries) or "§12", "¶3 ..." (paragraph entries).

    Example:
        >>> result = StructureEntryValidator().validate(["1. Intro", "3.1.1 Deep"])
        >>> result.warnings
        ['TOC hierarchy jump at index 1: level 1 to 3', ...]
    """

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def is_toc_entry(entry: str) -> bool:
        trimmed = entry.strip()
        return any(p.match(trimmed) for p in TOC_PATTERNS)

    @staticmethod
    def paragraph_number(entry: str) -> int | None:
        trimmed = entry.strip()
        for pattern in PARAGRAPH_NUMBER_PATTERNS:
            match = pattern.match(trimmed)
            if match:
                return int(match.group(1))
        return None

    @staticmethod
    def toc_level(entry: str) -> int:
        """Level from keyword, else dot count + 1 (capped)."""
        trimmed = entry.strip()
        if TOC_LEVEL_ONE.match(trimmed):
            return 1
        if TOC_LEVEL_TWO.match(trimmed):
            return 2
        numbering = trimmed.split()[0] if trimmed.split() else ""
        return min(numbering.rstrip(".").count(".") + 1, MAX_TOC_LEVEL)

    def validate_entry(self, entry: Any, index: int) -> EntryResult:
        if not isinstance(entry, str):
            return EntryResult(index, "unknown", False, errors=["Entry must be a string"])
        if not entry.strip():
            return EntryResult(index, "unknown", False, errors=["Entry cannot be empty"])

        if self.is_toc_entry(entry):
            result = EntryResult(index, "toc", True, level=self.toc_level(entry))
            if len(entry) > 200:
                result.warnings.append("TOC entry is very long (may be paragraph content)")
            if len(entry.strip()) < 3:
                result.warnings.append("TOC entry is very short")
            return result

        number = self.paragraph_number(entry)
        if number is not None:
            result = EntryResult(index, "paragraph", True, paragraph_number=number)
            if len(entry) > 1000:
                result.warnings.append("Paragraph entry is very long (may be full content)")
            if len(entry.strip()) < 10:
                result.warnings.append("Paragraph entry is very short")
            return result

        return EntryResult(
            index, "unknown", True, warnings=["Entry type could not be determined"]
        )

    def validate(self, entries: Any) -> EntryValidationResult:
        """
        Validate a list of structure entries.

        Malformed entries are reported as errors and left out of the
        consistency checks.
        """
        if not isinstance(entries, (list, tuple)):
            return EntryValidationResult(False, errors=["Book structure must be a list"])
        if not entries:
            return EntryValidationResult(True, warnings=["Book structure is empty"])

        result = EntryValidationResult(True)
        for index, entry in enumerate(entries):
            entry_result = self.validate_entry(entry, index)
            result.entries.append(entry_result)
            if entry_result.errors:
                self.logger.warning("Malformed structure entry %d: %s", index, entry_result.errors)
                result.errors.append(f"Entry {index}: {', '.join(entry_result.errors)}")
            if entry_result.warnings:
                result.warnings.append(f"Entry {index}: {', '.join(entry_result.warnings)}")

        valid = [
            (r, entries[r.index].strip()) for r in result.entries if not r.errors
        ]
        self._check_consistency(valid, result)
        self._check_completeness(valid, len(entries), result)

        result.is_valid = not result.errors
        self.logger.debug(
            "Structure entry validation: %d errors, %d warnings",
            len(result.errors),
            len(result.warnings),
        )
        return result

    def _check_consistency(
        self, valid: list[tuple[EntryResult, str]], result: EntryValidationResult
    ) -> None:
        seen: set[str] = set()
        for entry_result, text in valid:
            if text in seen:
                result.warnings.append(
                    f'Duplicate entry found at index {entry_result.index}: "{text}"'
                )
            seen.add(text)

        toc = [r for r, _text in valid if r.kind == "toc"]
        for previous, current in zip(toc, toc[1:]):
            if current.level > previous.level + 1:
                result.warnings.append(
                    f"TOC hierarchy jump at index {current.index}: "
                    f"level {previous.level} to {current.level}"
                )

        numbers = {r.paragraph_number for r, _text in valid if r.paragraph_number}
        if numbers:
            missing = [n for n in range(1, max(numbers) + 1) if n not in numbers]
            if missing:
                result.warnings.append(
                    f"Missing paragraph numbers: {', '.join(str(n) for n in missing)}"
                )

    def _check_completeness(
        self, valid: list[tuple[EntryResult, str]], total: int, result: EntryValidationResult
    ) -> None:
        toc_count = sum(1 for r, _text in valid if r.kind == "toc")
        paragraph_count = sum(1 for r, _text in valid if r.kind == "paragraph")

        if toc_count == 0:
            result.warnings.append("No TOC entries found - structure may be incomplete")
        if paragraph_count == 0:
            result.warnings.append("No paragraph entries found - structure may be incomplete")
        if toc_count > 0 and paragraph_count == 0:
            result.suggestions.append("Consider adding paragraph entries for better structure")
        if paragraph_count > 0 and toc_count == 0:
            result.suggestions.append("Consider adding TOC entries for better organization")
        if total < 5:
            result.warnings.append("Very few structure entries - may be incomplete")
        if total > 1000:
            result.warnings.append("Very many structure entries - may need consolidation")
