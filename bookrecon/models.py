"""
Data models for bookrecon.

These models represent the input recognizer data, the reconstructed
document structure and the quality report. Structure and report objects
are frozen: a document pass builds them fresh and they are never mutated
afterwards.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from bookrecon.exceptions import MalformedInputError

# =============================================================================
# ENUMS
# =============================================================================


class HeaderKind(Enum):
    """Kinds of structural headers, in detection priority order."""

    CHAPTER = "chapter"
    LECTURE = "lecture"
    SECTION = "section"
    SUBSECTION = "subsection"


class FootnoteKind(Enum):
    """How a footnote reference is written."""

    NUMERIC = "numeric"
    ALPHABETIC = "alphabetic"
    SYMBOL = "symbol"
    SUPERSCRIPT = "superscript"


class ParagraphKind(Enum):
    """Paragraph kinds derived from the first line's leading characters."""

    REGULAR = "regular"
    NUMBERED = "numbered"
    BULLETED = "bulleted"
    INDENTED = "indented"


class NumberingStyle(Enum):
    """Numbering style of header numbers across a document."""

    NUMERIC = "numeric"
    ROMAN = "roman"
    ALPHABETIC = "alphabetic"
    MIXED = "mixed"


class Severity(Enum):
    """Issue severity, ordered from least to most severe."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class IssueType(Enum):
    """Quality issue taxonomy."""

    STRUCTURE = "structure"
    READABILITY = "readability"
    CLEANLINESS = "cleanliness"
    COMPLETENESS = "completeness"
    FORMATTING = "formatting"


# Hierarchy depth per header kind
HEADER_LEVELS: dict[HeaderKind, int] = {
    HeaderKind.CHAPTER: 1,
    HeaderKind.LECTURE: 1,
    HeaderKind.SECTION: 2,
    HeaderKind.SUBSECTION: 3,
}


# =============================================================================
# RECOGNIZER INPUT
# =============================================================================


@dataclass(frozen=True)
class BoundingBox:
    """Pixel rectangle locating a recognized glyph, word or line."""

    x0: float
    y0: float
    x1: float
    y1: float

    def __post_init__(self) -> None:
        """Reject inverted boxes."""
        if self.x1 < self.x0 or self.y1 < self.y0:
            raise MalformedInputError(
                f"Inverted bounding box ({self.x0}, {self.y0}, {self.x1}, {self.y1})"
            )

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0


@dataclass(frozen=True)
class RecognizedSymbol:
    """
    A glyph, word or line as produced by the external OCR engine.

    Attributes:
        text: Recognized text.
        confidence: Recognizer confidence, 0.0-1.0.
        bbox: Position on the page in pixels.
        is_superscript: Recognizer superscript flag. Unreliable for subtle
            size differences; GeometricAnnotationDetector overrides it.
        is_subscript: Recognizer subscript flag.
    """

    text: str
    confidence: float
    bbox: BoundingBox
    is_superscript: bool = False
    is_subscript: bool = False

    def __post_init__(self) -> None:
        """Validate recognizer values."""
        if not isinstance(self.text, str) or not self.text.strip():
            raise MalformedInputError(f"Symbol text must be a non-empty string, got {self.text!r}")
        if not 0.0 <= self.confidence <= 1.0:
            raise MalformedInputError(
                f"Symbol confidence must be between 0.0 and 1.0, got {self.confidence}"
            )

    @property
    def height(self) -> float:
        return self.bbox.height

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RecognizedSymbol:
        """
        Build a symbol from a recognizer dict.

        Accepts ``bbox`` either as a mapping with x0/y0/x1/y1 keys or as a
        4-sequence. Confidences on a 0-100 scale (Tesseract) are rescaled.

        Raises:
            MalformedInputError: If required fields are missing or invalid.
        """
        if not isinstance(data, dict):
            raise MalformedInputError(f"Symbol entry must be a mapping, got {type(data).__name__}")
        try:
            raw_bbox = data["bbox"]
            if isinstance(raw_bbox, dict):
                bbox = BoundingBox(
                    float(raw_bbox["x0"]),
                    float(raw_bbox["y0"]),
                    float(raw_bbox["x1"]),
                    float(raw_bbox["y1"]),
                )
            else:
                x0, y0, x1, y1 = raw_bbox
                bbox = BoundingBox(float(x0), float(y0), float(x1), float(y1))
            confidence = float(data.get("confidence", 1.0))
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedInputError(f"Invalid symbol entry {data!r}: {e}") from e

        if 1.0 < confidence <= 100.0:
            confidence /= 100.0

        return cls(
            text=data.get("text"),  # type: ignore[arg-type]
            confidence=confidence,
            bbox=bbox,
            is_superscript=bool(data.get("is_superscript", False)),
            is_subscript=bool(data.get("is_subscript", False)),
        )


# =============================================================================
# DOCUMENT STRUCTURE
# =============================================================================


@dataclass(frozen=True)
class StructureHeader:
    """
    A detected header.

    ``children`` holds nested headers of strictly greater level, ordered by
    line number.
    """

    id: str
    kind: HeaderKind
    level: int
    title: str
    line_number: int
    confidence: float
    pattern_id: str
    number: str | None = None
    children: tuple[StructureHeader, ...] = ()

    @property
    def word_count(self) -> int:
        return len(self.title.split())

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "level": self.level,
            "title": self.title,
            "number": self.number,
            "line_number": self.line_number,
            "confidence": self.confidence,
            "pattern_id": self.pattern_id,
            "children": [child.to_dict() for child in self.children],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StructureHeader:
        return cls(
            id=data["id"],
            kind=HeaderKind(data["kind"]),
            level=int(data["level"]),
            title=data["title"],
            number=data.get("number"),
            line_number=int(data["line_number"]),
            confidence=float(data["confidence"]),
            pattern_id=data["pattern_id"],
            children=tuple(cls.from_dict(c) for c in data.get("children", [])),
        )


@dataclass(frozen=True)
class StructureFootnote:
    """A footnote body line: its reference marker and text."""

    id: str
    reference: str
    text: str
    kind: FootnoteKind
    confidence: float
    line_number: int
    pattern_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "reference": self.reference,
            "text": self.text,
            "kind": self.kind.value,
            "confidence": self.confidence,
            "line_number": self.line_number,
            "pattern_id": self.pattern_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StructureFootnote:
        return cls(
            id=data["id"],
            reference=data["reference"],
            text=data["text"],
            kind=FootnoteKind(data["kind"]),
            confidence=float(data["confidence"]),
            line_number=int(data["line_number"]),
            pattern_id=data.get("pattern_id", ""),
        )


@dataclass(frozen=True)
class StructureParagraph:
    """A paragraph: contiguous non-blank lines joined with single spaces."""

    id: str
    text: str
    kind: ParagraphKind
    level: int
    line_number: int
    markers: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.text.strip():
            raise MalformedInputError("Paragraph text cannot be empty")

    @property
    def word_count(self) -> int:
        return len(self.text.split())

    @property
    def has_special_formatting(self) -> bool:
        return bool(self.markers)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "kind": self.kind.value,
            "level": self.level,
            "line_number": self.line_number,
            "markers": list(self.markers),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StructureParagraph:
        return cls(
            id=data["id"],
            text=data["text"],
            kind=ParagraphKind(data["kind"]),
            level=int(data["level"]),
            line_number=int(data["line_number"]),
            markers=tuple(data.get("markers", [])),
        )


@dataclass(frozen=True)
class StructureDialogue:
    """A dialogue turn (``Speaker: text`` or ``Speaker (note): text``)."""

    id: str
    speaker: str
    text: str
    line_number: int
    confidence: float
    speaker_note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "speaker": self.speaker,
            "speaker_note": self.speaker_note,
            "text": self.text,
            "line_number": self.line_number,
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StructureDialogue:
        return cls(
            id=data["id"],
            speaker=data["speaker"],
            speaker_note=data.get("speaker_note"),
            text=data["text"],
            line_number=int(data["line_number"]),
            confidence=float(data["confidence"]),
        )


@dataclass(frozen=True)
class StructureHierarchy:
    """Aggregate view of the header hierarchy."""

    max_level: int = 0
    total_headers: int = 0
    chapter_count: int = 0
    lecture_count: int = 0
    section_count: int = 0
    subsection_count: int = 0
    numbering_style: NumberingStyle = NumberingStyle.NUMERIC
    has_consistent_numbering: bool = True

    @property
    def counts(self) -> dict[HeaderKind, int]:
        """Header count per kind."""
        return {
            HeaderKind.CHAPTER: self.chapter_count,
            HeaderKind.LECTURE: self.lecture_count,
            HeaderKind.SECTION: self.section_count,
            HeaderKind.SUBSECTION: self.subsection_count,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_level": self.max_level,
            "total_headers": self.total_headers,
            "chapter_count": self.chapter_count,
            "lecture_count": self.lecture_count,
            "section_count": self.section_count,
            "subsection_count": self.subsection_count,
            "numbering_style": self.numbering_style.value,
            "has_consistent_numbering": self.has_consistent_numbering,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StructureHierarchy:
        return cls(
            max_level=int(data.get("max_level", 0)),
            total_headers=int(data.get("total_headers", 0)),
            chapter_count=int(data.get("chapter_count", 0)),
            lecture_count=int(data.get("lecture_count", 0)),
            section_count=int(data.get("section_count", 0)),
            subsection_count=int(data.get("subsection_count", 0)),
            numbering_style=NumberingStyle(data.get("numbering_style", "numeric")),
            has_consistent_numbering=bool(data.get("has_consistent_numbering", True)),
        )


@dataclass(frozen=True)
class BookStructure:
    """
    The reconstructed document structure.

    ``headers`` holds the top-level headers; nested headers live in their
    parents' ``children``. Use ``iter_headers()`` for all headers in
    document order.

    Example:
        >>> structure = StructureExtractor(rule_set).extract(text)
        >>> payload = structure.to_json()
        >>> BookStructure.from_json(payload) == structure
        True
    """

    headers: tuple[StructureHeader, ...] = ()
    footnotes: tuple[StructureFootnote, ...] = ()
    paragraphs: tuple[StructureParagraph, ...] = ()
    dialogues: tuple[StructureDialogue, ...] = ()
    hierarchy: StructureHierarchy = field(default_factory=StructureHierarchy)

    def iter_headers(self):
        """Yield every header, parents before children, in line order."""
        stack = list(reversed(self.headers))
        while stack:
            header = stack.pop()
            yield header
            stack.extend(reversed(header.children))

    @property
    def header_count(self) -> int:
        return sum(1 for _ in self.iter_headers())

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary representation of the structure
        """
        return {
            "headers": [h.to_dict() for h in self.headers],
            "footnotes": [f.to_dict() for f in self.footnotes],
            "paragraphs": [p.to_dict() for p in self.paragraphs],
            "dialogues": [d.to_dict() for d in self.dialogues],
            "hierarchy": self.hierarchy.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BookStructure:
        return cls(
            headers=tuple(StructureHeader.from_dict(h) for h in data.get("headers", [])),
            footnotes=tuple(StructureFootnote.from_dict(f) for f in data.get("footnotes", [])),
            paragraphs=tuple(StructureParagraph.from_dict(p) for p in data.get("paragraphs", [])),
            dialogues=tuple(StructureDialogue.from_dict(d) for d in data.get("dialogues", [])),
            hierarchy=StructureHierarchy.from_dict(data.get("hierarchy", {})),
        )

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent)

    @classmethod
    def from_json(cls, payload: str) -> BookStructure:
        return cls.from_dict(json.loads(payload))


# =============================================================================
# QUALITY
# =============================================================================


@dataclass(frozen=True)
class QualityIssue:
    """A typed, severity-tagged problem found during validation."""

    type: IssueType
    severity: Severity
    description: str
    suggested_action: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "description": self.description,
            "suggested_action": self.suggested_action,
        }


@dataclass(frozen=True)
class ValidationMetrics:
    """Basic text metrics computed by the QualityValidator."""

    text_length: int = 0
    word_count: int = 0
    sentence_count: int = 0
    paragraph_count: int = 0
    readability_score: float = 0.0
    structure_score: float = 0.0
    cleanliness_score: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "text_length": self.text_length,
            "word_count": self.word_count,
            "sentence_count": self.sentence_count,
            "paragraph_count": self.paragraph_count,
            "readability_score": self.readability_score,
            "structure_score": self.structure_score,
            "cleanliness_score": self.cleanliness_score,
        }


@dataclass(frozen=True)
class EnhancementSummary:
    """
    Record of what the text enhancement steps changed.

    Produced by the pipeline from the stitcher, debris cleaner, corrector
    and residual error detector; consumed by the QualityValidator.
    """

    spelling_corrections: int = 0
    debris_removed: int = 0
    words_reconstructed: int = 0
    characters_fixed: int = 0
    issues_remaining: int = 0
    confidence: float = 1.0

    @property
    def issues_fixed(self) -> int:
        return (
            self.spelling_corrections
            + self.debris_removed
            + self.words_reconstructed
            + self.characters_fixed
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "spelling_corrections": self.spelling_corrections,
            "debris_removed": self.debris_removed,
            "words_reconstructed": self.words_reconstructed,
            "characters_fixed": self.characters_fixed,
            "issues_fixed": self.issues_fixed,
            "issues_remaining": self.issues_remaining,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class QualityReport:
    """
    Quality gate for a processed document.

    Attributes:
        is_valid: score >= threshold and no critical issue.
        score: Overall score, 0.0-1.0.
        confidence: Confidence in the assessment (sample size), 0.0-1.0.
        completeness: Share of the original's distinct words retained.
        consistency: 1.0 for consistent structure/formatting, lower otherwise.
        metrics: Underlying text metrics.
        issues: Typed issues, in rule order.
        recommendations: Deterministic follow-up directives.
        threshold: Pass threshold used.
    """

    is_valid: bool
    score: float
    confidence: float
    completeness: float
    consistency: float
    metrics: ValidationMetrics
    issues: tuple[QualityIssue, ...] = ()
    recommendations: tuple[str, ...] = ()
    threshold: float = 0.7

    def issues_of(self, issue_type: IssueType) -> list[QualityIssue]:
        return [issue for issue in self.issues if issue.type is issue_type]

    @property
    def has_critical_issues(self) -> bool:
        return any(issue.severity is Severity.CRITICAL for issue in self.issues)

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "score": self.score,
            "confidence": self.confidence,
            "completeness": self.completeness,
            "consistency": self.consistency,
            "threshold": self.threshold,
            "metrics": self.metrics.to_dict(),
            "issues": [issue.to_dict() for issue in self.issues],
            "recommendations": list(self.recommendations),
        }
