"""
Unit tests for structure extraction.
"""

import logging

import pytest

from bookrecon.exceptions import MalformedInputError
from bookrecon.extractors import StructureExtractor
from bookrecon.extractors.structure import footnote_kind, paragraph_kind
from bookrecon.models import FootnoteKind, HeaderKind, ParagraphKind
from bookrecon.rules import PatternRule, RuleSet

SAMPLE_TEXT = """Kapitel 1: Einleitung

Die Philosophie beginnt mit dem Staunen.
Sie fragt nach dem Grund.

1.1 Grundlagen

Erster Absatz des Abschnitts¹.

¹ Vgl. Platon, Theaitetos.

Sokrates: Was ist Wissen?

Kapitel 2: Hauptteil"""


@pytest.fixture
def extractor(de_rules) -> StructureExtractor:
    return StructureExtractor(de_rules)


@pytest.fixture
def structure(extractor):
    return extractor.extract(SAMPLE_TEXT)


class TestHeaders:
    """Tests for header detection and nesting."""

    def test_headers_nested_by_level(self, structure):
        """Sections become children of the preceding chapter."""
        assert [h.title for h in structure.headers] == ["Einleitung", "Hauptteil"]
        child = structure.headers[0].children[0]
        assert child.title == "Grundlagen"
        assert child.kind is HeaderKind.SECTION
        assert child.level == 2

    def test_iter_headers_in_document_order(self, structure):
        """All headers are yielded, parents first."""
        titles = [h.title for h in structure.iter_headers()]
        assert titles == ["Einleitung", "Grundlagen", "Hauptteil"]
        assert structure.header_count == 3

    def test_header_fields(self, structure):
        """Number, line number and pattern id are recorded."""
        first = structure.headers[0]
        assert first.kind is HeaderKind.CHAPTER
        assert first.number == "1"
        assert first.line_number == 1
        assert first.pattern_id == "chapter_keyword"

    def test_keyword_header_confidence_capped(self, structure):
        """Well-formed, short keyword headers reach full confidence."""
        assert structure.headers[0].confidence == 1.0

    def test_confidence_without_keyword(self, extractor):
        """Teil is a chapter pattern but not a confidence keyword."""
        header = extractor.extract("Teil II. Der Staat").headers[0]
        assert header.number == "II"
        assert header.title == "Der Staat"
        assert header.confidence == pytest.approx(0.9)

    @pytest.mark.parametrize(
        "line,kind,title",
        [
            ("Kapitel 3: Die Methode", HeaderKind.CHAPTER, "Die Methode"),
            ("IV. Die Freiheit des Willens", HeaderKind.CHAPTER, "Die Freiheit des Willens"),
            ("Vortrag 2: Über Goethe", HeaderKind.LECTURE, "Über Goethe"),
            ("3. Vortrag", HeaderKind.LECTURE, "3. Vortrag"),
            ("Vortrag vom 12. März 1922", HeaderKind.LECTURE, "12. März 1922"),
            ("Abschnitt 4 Die Sinne", HeaderKind.SECTION, "Die Sinne"),
            ("2.3 Der Begriff", HeaderKind.SECTION, "Der Begriff"),
            ("2.3.1 Einzelheiten", HeaderKind.SUBSECTION, "Einzelheiten"),
        ],
    )
    def test_header_patterns(self, extractor, line, kind, title):
        """Each built-in header pattern is recognized."""
        headers = list(extractor.extract(line).iter_headers())
        assert len(headers) == 1
        assert headers[0].kind is kind
        assert headers[0].title == title

    @pytest.mark.parametrize(
        "line",
        [
            "2.5 Millionen Menschen lebten dort im Jahr 1900.",
            "1.2.3 Prozent der Stimmen fielen weg!",
        ],
    )
    def test_decimal_prose_is_not_a_section(self, extractor, line):
        """A sentence opening with a decimal number stays a paragraph."""
        structure = extractor.extract(line)
        assert structure.header_count == 0
        assert [p.text for p in structure.paragraphs] == [line]

    def test_roman_numeral_needs_uppercase(self, extractor):
        """Ordinary words are not read as roman numerals."""
        structure = extractor.extract("Teil des Ganzen ist das Einzelne.")
        assert structure.header_count == 0


class TestFootnotes:
    """Tests for footnote detection."""

    def test_superscript_footnote(self, structure):
        """Superscript markers open a footnote."""
        assert len(structure.footnotes) == 1
        footnote = structure.footnotes[0]
        assert footnote.reference == "¹"
        assert footnote.text == "Vgl. Platon, Theaitetos."
        assert footnote.kind is FootnoteKind.SUPERSCRIPT
        assert footnote.line_number == 10

    @pytest.mark.parametrize(
        "line,reference,kind,pattern_id",
        [
            ("[1] Siehe Kant, S. 12.", "1", FootnoteKind.NUMERIC, "footnote_bracket"),
            ("(2) Ebenda.", "2", FootnoteKind.NUMERIC, "footnote_paren"),
            ("3) Vgl. Schelling.", "3", FootnoteKind.NUMERIC, "footnote_numbered"),
            ("*4 Zusatz.", "4", FootnoteKind.NUMERIC, "footnote_starred"),
            ("[a] Randnotiz.", "a", FootnoteKind.ALPHABETIC, "footnote_letter"),
            ("†Vgl. Fichte.", "†", FootnoteKind.SYMBOL, "footnote_symbol"),
        ],
    )
    def test_footnote_patterns(self, extractor, line, reference, kind, pattern_id):
        """Each built-in footnote pattern is recognized."""
        footnotes = extractor.extract(line).footnotes
        assert len(footnotes) == 1
        assert footnotes[0].reference == reference
        assert footnotes[0].kind is kind
        assert footnotes[0].pattern_id == pattern_id


class TestDialogue:
    """Tests for dialogue detection."""

    def test_dialogue_turn(self, structure):
        """Speaker: text lines are dialogue turns."""
        assert len(structure.dialogues) == 1
        turn = structure.dialogues[0]
        assert turn.speaker == "Sokrates"
        assert turn.text == "Was ist Wissen?"
        assert turn.speaker_note is None

    def test_dialogue_with_note(self, extractor):
        """Speaker notes in parentheses are kept."""
        turn = extractor.extract("Faust (leise): Habe nun, ach!").dialogues[0]
        assert turn.speaker == "Faust"
        assert turn.speaker_note == "leise"
        assert turn.text == "Habe nun, ach!"


class TestParagraphs:
    """Tests for paragraph grouping."""

    def test_lines_joined_until_blank_line(self, structure):
        """Contiguous lines form one paragraph."""
        first = structure.paragraphs[0]
        assert first.text == "Die Philosophie beginnt mit dem Staunen. Sie fragt nach dem Grund."
        assert first.line_number == 3
        assert first.kind is ParagraphKind.REGULAR
        assert len(structure.paragraphs) == 2

    def test_classified_line_breaks_paragraph(self, extractor):
        """A header directly after text ends the paragraph."""
        structure = extractor.extract("Ein Satz.\nKapitel 2: Weiter\nNoch ein Satz.")
        assert [p.text for p in structure.paragraphs] == ["Ein Satz.", "Noch ein Satz."]

    def test_numbered_paragraph(self, extractor):
        """Numbered paragraphs get their kind and marker."""
        paragraph = extractor.extract("1. Der erste Punkt").paragraphs[0]
        assert paragraph.kind is ParagraphKind.NUMBERED
        assert paragraph.markers == ("1.",)
        assert paragraph.has_special_formatting

    def test_indented_paragraph_level(self, extractor):
        """Indentation depth sets the level, tabs count as four spaces."""
        structure = extractor.extract("        Tief eingerückt.\n\n\tEingerückt.")
        assert [p.level for p in structure.paragraphs] == [2, 1]
        assert all(p.kind is ParagraphKind.INDENTED for p in structure.paragraphs)

    @pytest.mark.parametrize(
        "line,kind",
        [
            ("2. Punkt", ParagraphKind.NUMBERED),
            ("• Punkt", ParagraphKind.BULLETED),
            ("- Punkt", ParagraphKind.BULLETED),
            ("    Punkt", ParagraphKind.INDENTED),
            ("Punkt", ParagraphKind.REGULAR),
        ],
    )
    def test_paragraph_kind(self, line, kind):
        assert paragraph_kind(line) is kind


class TestFootnoteKind:
    """Tests for reference marker classification."""

    @pytest.mark.parametrize(
        "reference,kind",
        [
            ("12", FootnoteKind.NUMERIC),
            ("²³", FootnoteKind.SUPERSCRIPT),
            ("b", FootnoteKind.ALPHABETIC),
            ("**", FootnoteKind.SYMBOL),
        ],
    )
    def test_kinds(self, reference, kind):
        assert footnote_kind(reference) is kind


class TestExtractionErrors:
    """Tests for malformed input and failing patterns."""

    def test_non_string_rejected(self, extractor):
        """Non-text input is malformed."""
        with pytest.raises(MalformedInputError):
            extractor.extract(None)

    def test_empty_text(self, extractor):
        """Empty text gives an empty structure."""
        structure = extractor.extract("")
        assert structure.header_count == 0
        assert structure.paragraphs == ()
        assert structure.hierarchy.total_headers == 0

    def test_failing_pattern_skips_line(self, caplog):
        """A pattern without the expected groups is logged and its line skipped."""
        rules = RuleSet(
            language="xx",
            dialogue_patterns=(PatternRule("broken_dialogue", r"^(\w+):"),),
        )
        extractor = StructureExtractor(rules)

        with caplog.at_level(logging.WARNING):
            structure = extractor.extract("Sokrates: Was ist Wissen?\n\nNormaler Text.")

        assert structure.dialogues == ()
        assert [p.text for p in structure.paragraphs] == ["Normaler Text."]
        assert "line 1" in caplog.text
        assert "broken_dialogue" in caplog.text

    def test_builder_none_falls_through(self):
        """A match without usable groups does not classify the line."""
        rules = RuleSet(
            language="xx",
            footnote_patterns=(PatternRule("empty_note", r"^\[(?P<ref>\d+)\](?P<text>.*)$"),),
        )
        structure = StructureExtractor(rules).extract("[3]")
        assert structure.footnotes == ()
        assert [p.text for p in structure.paragraphs] == ["[3]"]
