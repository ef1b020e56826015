"""
Tests for header validators, structure assessment and entry validation.
"""

import logging

import pytest

from bookrecon.extractors import (
    HierarchyValidator,
    StructureEntryValidator,
    StructureExtractor,
    TitleQualityValidator,
    assess_structure,
    validate_headers,
)
from bookrecon.models import HEADER_LEVELS, BookStructure, HeaderKind, Severity, StructureHeader


def make_header(kind, title="Ein Titel", line_number=1):
    return StructureHeader(
        id=f"h{line_number}",
        kind=kind,
        level=HEADER_LEVELS[kind],
        title=title,
        line_number=line_number,
        confidence=0.9,
        pattern_id="test",
        number="1",
    )


@pytest.fixture
def extractor(de_rules) -> StructureExtractor:
    return StructureExtractor(de_rules)


class TestHierarchyValidator:
    """Tests for level-skip detection."""

    def test_level_skip_reported(self):
        """Chapter straight to subsection skips a level."""
        headers = [
            make_header(HeaderKind.CHAPTER, line_number=1),
            make_header(HeaderKind.SUBSECTION, "Tief", line_number=2),
        ]
        issues = HierarchyValidator().check(headers)
        assert len(issues) == 1
        assert issues[0].type == "level_skip"
        assert issues[0].titles == ["Tief"]

    def test_orderly_levels(self):
        headers = [
            make_header(HeaderKind.CHAPTER, line_number=1),
            make_header(HeaderKind.SECTION, line_number=2),
            make_header(HeaderKind.SUBSECTION, line_number=3),
            make_header(HeaderKind.CHAPTER, line_number=4),
        ]
        assert HierarchyValidator().check(headers) == []


class TestTitleQualityValidator:
    """Tests for header title checks."""

    @pytest.mark.parametrize(
        "title,issue_type",
        [
            ("Ab", "short_title"),
            ("x" * 201, "long_title"),
            ("1234", "numeric_title"),
        ],
    )
    def test_bad_titles(self, title, issue_type):
        issues = TitleQualityValidator().check([make_header(HeaderKind.CHAPTER, title)])
        assert [i.type for i in issues] == [issue_type]

    def test_good_title(self):
        issues = TitleQualityValidator().check([make_header(HeaderKind.CHAPTER, "Einleitung")])
        assert issues == []

    def test_validate_headers_runs_all_rules(self, extractor):
        """Nested headers are validated too."""
        structure = extractor.extract("Kapitel 1: Ab\n\n1.1.1 Einzelheiten")
        types = sorted(i.type for i in validate_headers(structure))
        assert types == ["level_skip", "short_title"]


class TestAssessStructure:
    """Tests for the 0-100 structure score."""

    def test_no_headers(self, extractor):
        """Missing headers cost 30 points."""
        quality = assess_structure(extractor.extract("Nur Text."), "Nur Text.")
        assert quality.score == 70
        assert [i.type for i in quality.issues] == ["missing_headers"]
        assert quality.issues[0].severity is Severity.HIGH
        assert quality.completeness == 0.0

    def test_inconsistent_numbering(self, extractor):
        """Numbering gaps cost 15 points."""
        text = "Kapitel 1: Eins\n\nKapitel 2: Zwei\n\nKapitel 4: Vier"
        quality = assess_structure(extractor.extract(text), text)
        assert quality.score == 85
        assert quality.consistency == 0.5
        assert quality.completeness == pytest.approx(0.3)

    def test_referenced_footnote_not_orphaned(self, extractor):
        """A superscript reference in the body counts."""
        text = "Kapitel 1: Eins\n\nDas Wort¹ steht hier.\n\n[1] Die Anmerkung."
        quality = assess_structure(extractor.extract(text), text)
        assert quality.score == 100
        assert quality.issues == ()

    def test_orphaned_footnote(self, extractor):
        """A footnote only referenced by its own line is orphaned."""
        text = "Kapitel 1: Eins\n\nDas Wort steht hier.\n\n[1] Die Anmerkung."
        quality = assess_structure(extractor.extract(text), text)
        assert quality.score == 95
        assert [i.type for i in quality.issues] == ["orphaned_footnotes"]
        assert quality.issues[0].severity is Severity.LOW

    def test_score_floored_at_zero(self, extractor):
        """Many orphans cannot push the score below zero."""
        text = "\n".join(f"[{n}] Anmerkung {n}." for n in range(1, 31))
        quality = assess_structure(extractor.extract(text), text)
        assert len(quality.issues) == 31
        assert quality.score == 0

    def test_empty_structure(self):
        quality = assess_structure(BookStructure(), "")
        assert quality.score == 70
        assert quality.to_dict()["issues"][0]["severity"] == "high"


class TestStructureEntryValidator:
    """Tests for manifest-style entry validation."""

    @pytest.fixture
    def validator(self) -> StructureEntryValidator:
        return StructureEntryValidator()

    @pytest.mark.parametrize(
        "entry,level",
        [
            ("1. Einleitung", 1),
            ("2.1 Methode", 2),
            ("3.1.1 Details", 3),
            ("Chapter 4", 1),
            ("Kapitel 5 Schluss", 1),
            ("Section 2", 2),
            ("1.2.3.4.5.6 Sehr tief", 5),
        ],
    )
    def test_toc_levels(self, validator, entry, level):
        result = validator.validate_entry(entry, 0)
        assert result.kind == "toc"
        assert result.level == level

    @pytest.mark.parametrize(
        "entry,number",
        [("§12 Text des Paragraphen", 12), ("¶ 3 Absatz", 3), ("Paragraph 7 Inhalt", 7)],
    )
    def test_paragraph_numbers(self, validator, entry, number):
        result = validator.validate_entry(entry, 0)
        assert result.kind == "paragraph"
        assert result.paragraph_number == number

    def test_unknown_entry_warns(self, validator):
        result = validator.validate_entry("Irgendetwas", 0)
        assert result.kind == "unknown"
        assert result.is_valid
        assert result.warnings == ["Entry type could not be determined"]

    def test_not_a_list(self, validator):
        result = validator.validate("1. Einleitung")
        assert not result.is_valid
        assert result.errors == ["Book structure must be a list"]

    def test_empty_list(self, validator):
        result = validator.validate([])
        assert result.is_valid
        assert result.warnings == ["Book structure is empty"]

    def test_malformed_entries_reported(self, validator, caplog):
        """Non-string and empty entries are errors and are logged."""
        with caplog.at_level(logging.WARNING):
            result = validator.validate(["1. Einleitung", 42, "  "])
        assert not result.is_valid
        assert len(result.errors) == 2
        assert "Malformed structure entry" in caplog.text

    def test_consistency_checks(self, validator):
        """Duplicates, level jumps and missing paragraph numbers are warned about."""
        entries = [
            "1. Einleitung",
            "3.1.1 Tief",
            "1. Einleitung",
            "§1 Der erste Paragraph",
            "§3 Der dritte Paragraph",
        ]
        result = validator.validate(entries)

        assert result.is_valid
        assert 'Duplicate entry found at index 2: "1. Einleitung"' in result.warnings
        assert "TOC hierarchy jump at index 1: level 1 to 3" in result.warnings
        assert "Missing paragraph numbers: 2" in result.warnings

    def test_completeness_warnings(self, validator):
        result = validator.validate(["1. Einleitung", "2. Hauptteil"])
        assert "No paragraph entries found - structure may be incomplete" in result.warnings
        assert "Very few structure entries - may be incomplete" in result.warnings
        assert result.suggestions == ["Consider adding paragraph entries for better structure"]
