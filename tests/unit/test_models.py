"""
Unit tests for data models.
"""

import json

import pytest

from bookrecon.exceptions import MalformedInputError
from bookrecon.extractors import StructureExtractor
from bookrecon.models import (
    BookStructure,
    BoundingBox,
    EnhancementSummary,
    ParagraphKind,
    RecognizedSymbol,
    StructureParagraph,
)

TEXT = """Kapitel 1: Einleitung

Die Frage nach dem Sein.

1.1 Methode

    Eingerückter Absatz mit Wort¹.

¹ Vgl. Aristoteles.

Sokrates (lachend): Und nun?

Kapitel 2: Schluss"""


class TestBoundingBox:
    """Tests for BoundingBox."""

    def test_dimensions(self):
        box = BoundingBox(10, 20, 40, 80)
        assert box.width == 30
        assert box.height == 60

    def test_inverted_box_rejected(self):
        with pytest.raises(MalformedInputError):
            BoundingBox(10, 20, 5, 80)


class TestRecognizedSymbol:
    """Tests for RecognizedSymbol."""

    def test_from_dict_sequence_bbox(self):
        symbol = RecognizedSymbol.from_dict(
            {"text": "Wort", "confidence": 0.8, "bbox": [0, 0, 10, 20], "is_superscript": True}
        )
        assert symbol.height == 20
        assert symbol.is_superscript

    def test_percent_confidence_rescaled(self):
        symbol = RecognizedSymbol.from_dict({"text": "Wort", "confidence": 87, "bbox": [0, 0, 1, 1]})
        assert symbol.confidence == pytest.approx(0.87)

    @pytest.mark.parametrize(
        "data",
        [
            {"text": "Wort", "bbox": [0, 0, 1]},
            {"text": "Wort", "bbox": {"x0": 0, "y0": 0}},
            {"text": "Wort", "confidence": "hoch", "bbox": [0, 0, 1, 1]},
            {"text": "Wort", "confidence": 150, "bbox": [0, 0, 1, 1]},
            {"text": "   ", "bbox": [0, 0, 1, 1]},
            {"text": 5, "bbox": [0, 0, 1, 1]},
            ["Wort"],
        ],
    )
    def test_malformed_entries(self, data):
        with pytest.raises(MalformedInputError):
            RecognizedSymbol.from_dict(data)


class TestStructureParagraph:
    """Tests for StructureParagraph."""

    def test_empty_text_rejected(self):
        with pytest.raises(MalformedInputError):
            StructureParagraph("p1", "  ", ParagraphKind.REGULAR, 0, 1)

    def test_word_count(self):
        paragraph = StructureParagraph("p1", "Drei kleine Worte", ParagraphKind.REGULAR, 0, 1)
        assert paragraph.word_count == 3
        assert not paragraph.has_special_formatting


class TestBookStructureSerialization:
    """Tests for JSON round trips."""

    @pytest.fixture
    def structure(self, de_rules) -> BookStructure:
        return StructureExtractor(de_rules).extract(TEXT)

    def test_json_round_trip(self, structure):
        """Serialize then deserialize gives an equal structure."""
        restored = BookStructure.from_json(structure.to_json())
        assert restored == structure

    def test_order_preserved(self, structure):
        restored = BookStructure.from_json(structure.to_json())
        assert [h.title for h in restored.iter_headers()] == [
            "Einleitung",
            "Methode",
            "Schluss",
        ]
        assert [p.line_number for p in restored.paragraphs] == [
            p.line_number for p in structure.paragraphs
        ]

    def test_json_is_plain_data(self, structure):
        """Enums are written as their values, umlauts unescaped."""
        payload = structure.to_json()
        data = json.loads(payload)
        assert data["headers"][0]["kind"] == "chapter"
        assert data["hierarchy"]["numbering_style"] == "numeric"
        assert data["dialogues"][0]["speaker_note"] == "lachend"
        assert "¹" in payload

    def test_empty_structure_round_trip(self):
        assert BookStructure.from_json(BookStructure().to_json()) == BookStructure()


class TestEnhancementSummary:
    """Tests for EnhancementSummary."""

    def test_issues_fixed(self):
        summary = EnhancementSummary(
            spelling_corrections=2, debris_removed=1, words_reconstructed=3, characters_fixed=4
        )
        assert summary.issues_fixed == 10
        assert summary.to_dict()["issues_fixed"] == 10
