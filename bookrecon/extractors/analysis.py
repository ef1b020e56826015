"""
Pattern analysis over an extracted structure.

Summarizes which patterns fired and how often, spots book-level features
(table of contents, bibliography, index) and derives structure
recommendations.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from bookrecon.models import BookStructure

HIGH_CONFIDENCE = 0.8
MEDIUM_CONFIDENCE = 0.6
LOW_CONFIDENCE = 0.4

MAX_EXAMPLES = 3
MANY_FOOTNOTES = 20

FEATURE_PATTERNS: tuple[tuple[str, str, re.Pattern[str]], ...] = (
    (
        "table_of_contents",
        "Table of contents detected",
        re.compile(r"^\s*(?:inhaltsverzeichnis|inhalt|table of contents|contents)\b", re.I),
    ),
    (
        "bibliography",
        "Bibliography section detected",
        re.compile(
            r"^\s*(?:literaturverzeichnis|bibliographie|bibliography|references|quellen|sources)\b",
            re.I,
        ),
    ),
    (
        "index",
        "Index section detected",
        re.compile(r"^\s*(?:index|register|stichwortverzeichnis|namenregister|sachregister)\b", re.I),
    ),
)


@dataclass
class PatternStats:
    """How often one pattern (or paragraph kind) matched."""

    pattern: str
    matches: int
    confidence: float
    examples: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pattern": self.pattern,
            "matches": self.matches,
            "confidence": self.confidence,
            "examples": list(self.examples),
        }


@dataclass
class StructuralFeature:
    """A book-level feature such as a table of contents."""

    type: str
    description: str
    count: int
    confidence: float
    examples: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "description": self.description,
            "count": self.count,
            "confidence": self.confidence,
            "examples": list(self.examples),
        }


@dataclass
class PatternAnalysis:
    """Pattern statistics, structural features and recommendations."""

    header_patterns: list[PatternStats] = field(default_factory=list)
    footnote_patterns: list[PatternStats] = field(default_factory=list)
    paragraph_patterns: list[PatternStats] = field(default_factory=list)
    dialogue_patterns: list[PatternStats] = field(default_factory=list)
    structural_features: list[StructuralFeature] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "header_patterns": [p.to_dict() for p in self.header_patterns],
            "footnote_patterns": [p.to_dict() for p in self.footnote_patterns],
            "paragraph_patterns": [p.to_dict() for p in self.paragraph_patterns],
            "dialogue_patterns": [p.to_dict() for p in self.dialogue_patterns],
            "structural_features": [f.to_dict() for f in self.structural_features],
            "recommendations": list(self.recommendations),
        }


def _group_stats(items: list[tuple[str, str]]) -> list[PatternStats]:
    """(pattern_id, example) pairs -> stats in first-seen order."""
    stats: dict[str, PatternStats] = {}
    for pattern_id, example in items:
        entry = stats.setdefault(pattern_id, PatternStats(pattern_id, 0, MEDIUM_CONFIDENCE))
        entry.matches += 1
        if len(entry.examples) < MAX_EXAMPLES:
            entry.examples.append(example)
    for entry in stats.values():
        entry.confidence = HIGH_CONFIDENCE if entry.matches > 1 else MEDIUM_CONFIDENCE
    return list(stats.values())


def identify_structural_features(text: str) -> list[StructuralFeature]:
    """Find table of contents, bibliography and index headings."""
    lines = [line.strip() for line in text.splitlines()]
    features = []
    for feature_type, description, pattern in FEATURE_PATTERNS:
        found = [line for line in lines if pattern.match(line)]
        if found:
            features.append(
                StructuralFeature(
                    type=feature_type,
                    description=description,
                    count=len(found),
                    confidence=HIGH_CONFIDENCE,
                    examples=found[:MAX_EXAMPLES],
                )
            )
    return features


def structure_recommendations(structure: BookStructure) -> list[str]:
    recommendations = []

    if structure.header_count == 0:
        recommendations.append("Consider adding chapter or section headers for better organization")
    if len(structure.footnotes) > MANY_FOOTNOTES:
        recommendations.append(
            "Large number of footnotes detected - consider consolidating or moving to endnotes"
        )
    if not structure.hierarchy.has_consistent_numbering:
        recommendations.append("Standardize numbering scheme across all headers")
    if structure.dialogues:
        recommendations.append(
            "Dialogue format detected - ensure consistent speaker identification"
        )

    return recommendations


def analyze_patterns(structure: BookStructure, text: str) -> PatternAnalysis:
    """
    Analyze which patterns shaped a structure.

    Args:
        structure: Extracted structure.
        text: The text the structure was extracted from.
    """
    headers = _group_stats([(h.pattern_id, h.title) for h in structure.iter_headers()])
    footnotes = _group_stats([(f.pattern_id, f.reference) for f in structure.footnotes])

    kinds = Counter(p.kind for p in structure.paragraphs)
    paragraphs = [
        PatternStats(
            pattern=f"{kind.value}_paragraph",
            matches=count,
            confidence=HIGH_CONFIDENCE if count > 5 else MEDIUM_CONFIDENCE,
            examples=[p.text[:50] for p in structure.paragraphs if p.kind is kind][:MAX_EXAMPLES],
        )
        for kind, count in kinds.items()
    ]

    speakers = list(dict.fromkeys(d.speaker for d in structure.dialogues))
    dialogues = [
        PatternStats(
            pattern="dialogue_format",
            matches=len(structure.dialogues),
            confidence=HIGH_CONFIDENCE if structure.dialogues else LOW_CONFIDENCE,
            examples=speakers[:5],
        )
    ]

    return PatternAnalysis(
        header_patterns=headers,
        footnote_patterns=footnotes,
        paragraph_patterns=paragraphs,
        dialogue_patterns=dialogues,
        structural_features=identify_structural_features(text),
        recommendations=structure_recommendations(structure),
    )
