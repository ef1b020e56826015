"""
Line classification into document structure.

Each non-blank line is tested against the rule set's pattern groups in
priority order:

    chapter > lecture > section > subsection  (headers)
    footnote markers
    dialogue turns

The first matching pattern decides the line. Lines nothing matches
accumulate into paragraphs; a blank line or a classified line ends the
current paragraph.

Header confidence starts at 0.6 and rises for well-formed matches:
+0.2 with two or more non-empty capture groups, +0.1 for lines under 100
characters, +0.2 when a keyword of the header kind appears on the line.
"""

from __future__ import annotations

import logging
import re
import uuid

from bookrecon.exceptions import MalformedInputError, PatternExtractionError
from bookrecon.extractors.hierarchy import build_hierarchy, nest_headers
from bookrecon.models import (
    HEADER_LEVELS,
    BookStructure,
    FootnoteKind,
    HeaderKind,
    ParagraphKind,
    StructureDialogue,
    StructureFootnote,
    StructureHeader,
    StructureParagraph,
)
from bookrecon.rules import PatternRule, RuleSet

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

HEADER_BASE_CONFIDENCE = 0.6
WELL_FORMED_BOOST = 0.2  # Two or more non-empty capture groups
SHORT_LINE_BOOST = 0.1
SHORT_LINE_LENGTH = 100
KEYWORD_BOOST = 0.2

FOOTNOTE_CONFIDENCE = 0.6
DIALOGUE_CONFIDENCE = 0.8

SUPERSCRIPT_CHARS = frozenset("¹²³⁴⁵⁶⁷⁸⁹⁰")
ASCII_DIGITS = re.compile(r"^[0-9]+$")
SINGLE_LETTER = re.compile(r"^[A-Za-z]$")
ROMAN_NUMERAL = re.compile(r"^[IVXLCDM]+$", re.IGNORECASE)

NUMBERED_LINE = re.compile(r"^\s*\d+\.\s+")
BULLETED_LINE = re.compile(r"^\s*[•*\-–]\s+")
INDENTED_LINE = re.compile(r"^\s{4,}")

# Marks a line whose extraction failed; it is dropped entirely
_SKIPPED = object()


def _new_id() -> str:
    return str(uuid.uuid4())


def _group(match: re.Match[str], name: str, index: int) -> str | None:
    """Named group if the pattern defines it, else the positional group."""
    if name in match.re.groupindex:
        return match.group(name)
    return match.group(index)


def footnote_kind(reference: str) -> FootnoteKind:
    """Classify a footnote reference marker."""
    if reference and all(c in SUPERSCRIPT_CHARS for c in reference):
        return FootnoteKind.SUPERSCRIPT
    if ASCII_DIGITS.match(reference):
        return FootnoteKind.NUMERIC
    if SINGLE_LETTER.match(reference):
        return FootnoteKind.ALPHABETIC
    return FootnoteKind.SYMBOL


def paragraph_kind(first_line: str) -> ParagraphKind:
    """Paragraph kind from the first line's leading characters."""
    if NUMBERED_LINE.match(first_line):
        return ParagraphKind.NUMBERED
    if BULLETED_LINE.match(first_line):
        return ParagraphKind.BULLETED
    if INDENTED_LINE.match(first_line):
        return ParagraphKind.INDENTED
    return ParagraphKind.REGULAR


# =============================================================================
# STRUCTURE EXTRACTOR
# =============================================================================


class StructureExtractor:
    """
    Classifies lines into headers, footnotes, paragraphs and dialogue.

    Example:
        >>> extractor = StructureExtractor(get_rule_set(rule_sets, "de"))
        >>> structure = extractor.extract("Kapitel 1: Einleitung\\n\\nText.")
        >>> structure.headers[0].title
        'Einleitung'
    """

    def __init__(self, rule_set: RuleSet, logger: logging.Logger | None = None):
        self.rule_set = rule_set
        self.logger = logger or logging.getLogger(__name__)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def extract(self, text: str) -> BookStructure:
        """
        Build the document structure for a text.

        Line numbers are 1-based.

        Raises:
            MalformedInputError: If text is not a string.
        """
        if not isinstance(text, str):
            raise MalformedInputError(f"Text must be a string, got {type(text).__name__}")

        headers: list[StructureHeader] = []
        footnotes: list[StructureFootnote] = []
        dialogues: list[StructureDialogue] = []
        paragraphs: list[StructureParagraph] = []
        pending: list[tuple[int, str]] = []
        skipped = 0

        def flush() -> None:
            if pending:
                paragraphs.append(self._build_paragraph(pending))
                pending.clear()

        for line_number, raw_line in enumerate(text.splitlines(), start=1):
            line = raw_line.strip()
            if not line:
                flush()
                continue

            element = self._classify(line, line_number)
            if element is None:
                pending.append((line_number, raw_line))
                continue

            flush()
            if element is _SKIPPED:
                skipped += 1
            elif isinstance(element, StructureHeader):
                headers.append(element)
            elif isinstance(element, StructureFootnote):
                footnotes.append(element)
            else:
                dialogues.append(element)
        flush()

        structure = BookStructure(
            headers=nest_headers(headers),
            footnotes=tuple(footnotes),
            paragraphs=tuple(paragraphs),
            dialogues=tuple(dialogues),
            hierarchy=build_hierarchy(headers),
        )

        self.logger.info(
            "Extracted %d headers, %d footnotes, %d paragraphs, %d dialogue turns "
            "(%d lines skipped)",
            len(headers),
            len(footnotes),
            len(paragraphs),
            len(dialogues),
            skipped,
        )
        return structure

    def header_confidence(self, match: re.Match[str], line: str, kind: HeaderKind) -> float:
        confidence = HEADER_BASE_CONFIDENCE

        non_empty = [g for g in match.groups() if g and g.strip()]
        if len(non_empty) >= 2:
            confidence += WELL_FORMED_BOOST
        if len(line) < SHORT_LINE_LENGTH:
            confidence += SHORT_LINE_BOOST
        keywords = self.rule_set.keyword_regexes.get(kind)
        if keywords is not None and keywords.search(line):
            confidence += KEYWORD_BOOST

        return round(min(1.0, confidence), 2)

    # -------------------------------------------------------------------------
    # Classification
    # -------------------------------------------------------------------------

    def _classify(self, line: str, line_number: int):
        """Return the element for a line, None for paragraph text, or _SKIPPED."""
        try:
            for kind, patterns in self.rule_set.header_patterns:
                for rule in patterns:
                    match = rule.regex.match(line)
                    if match:
                        return self._extract(
                            self._build_header, match, rule, line, line_number, kind
                        )

            for rule in self.rule_set.footnote_patterns:
                match = rule.regex.match(line)
                if match:
                    footnote = self._extract(self._build_footnote, match, rule, line, line_number)
                    if footnote is not None:
                        return footnote

            for rule in self.rule_set.dialogue_patterns:
                match = rule.regex.match(line)
                if match:
                    dialogue = self._extract(self._build_dialogue, match, rule, line, line_number)
                    if dialogue is not None:
                        return dialogue
        except PatternExtractionError as e:
            self.logger.warning(
                "Skipping line %d: pattern '%s' failed: %s", e.line_number, e.pattern_id, e
            )
            return _SKIPPED

        return None

    def _extract(self, builder, match, rule: PatternRule, line: str, line_number: int, *args):
        try:
            return builder(match, rule, line, line_number, *args)
        except (IndexError, KeyError, TypeError, ValueError) as e:
            raise PatternExtractionError(
                f"capture group extraction failed ({e})", line_number, rule.id
            ) from e

    # -------------------------------------------------------------------------
    # Element builders
    # -------------------------------------------------------------------------

    def _build_header(
        self,
        match: re.Match[str],
        rule: PatternRule,
        line: str,
        line_number: int,
        kind: HeaderKind,
    ) -> StructureHeader:
        return StructureHeader(
            id=_new_id(),
            kind=kind,
            level=HEADER_LEVELS[kind],
            title=self._header_title(match, line),
            number=self._header_number(match),
            line_number=line_number,
            confidence=self.header_confidence(match, line, kind),
            pattern_id=rule.id,
        )

    def _header_title(self, match: re.Match[str], line: str) -> str:
        if "title" in match.re.groupindex:
            title = match.group("title")
            return title.strip() if title and title.strip() else line

        # Last substantial group that is not just a number
        for group in reversed(match.groups()):
            candidate = (group or "").strip()
            if len(candidate) > 1 and not candidate.isdigit() and not ROMAN_NUMERAL.match(candidate):
                return candidate
        return line

    def _header_number(self, match: re.Match[str]) -> str | None:
        if "number" in match.re.groupindex:
            return match.group("number") or None

        for group in match.groups():
            if group and (ASCII_DIGITS.match(group) or ROMAN_NUMERAL.match(group)):
                return group
        return None

    def _build_footnote(
        self, match: re.Match[str], rule: PatternRule, line: str, line_number: int
    ) -> StructureFootnote | None:
        if "ref" in match.re.groupindex:
            reference = match.group("ref")
        else:
            reference = match.group(1) if match.re.groups else match.group(0)

        if "text" in match.re.groupindex:
            body = match.group("text")
        elif match.re.groups >= 2:
            body = match.group(2)
        else:
            body = line[match.end() :]

        reference = (reference or "").strip()
        body = (body or "").strip()
        if not reference or not body:
            return None

        return StructureFootnote(
            id=_new_id(),
            reference=reference,
            text=body,
            kind=footnote_kind(reference),
            confidence=FOOTNOTE_CONFIDENCE,
            line_number=line_number,
            pattern_id=rule.id,
        )

    def _build_dialogue(
        self, match: re.Match[str], rule: PatternRule, line: str, line_number: int
    ) -> StructureDialogue | None:
        speaker = _group(match, "speaker", 1)
        if "text" in match.re.groupindex:
            note = match.group("note") if "note" in match.re.groupindex else None
            body = match.group("text")
        elif match.re.groups >= 3:
            note = match.group(2)
            body = match.group(3)
        else:
            note = None
            body = match.group(2)

        speaker = (speaker or "").strip()
        body = (body or "").strip()
        if not speaker or not body:
            return None

        return StructureDialogue(
            id=_new_id(),
            speaker=speaker,
            text=body,
            speaker_note=note.strip() if note and note.strip() else None,
            line_number=line_number,
            confidence=DIALOGUE_CONFIDENCE,
        )

    def _build_paragraph(self, lines: list[tuple[int, str]]) -> StructureParagraph:
        line_number, first = lines[0]
        first = first.expandtabs(4)
        leading = len(first) - len(first.lstrip(" "))

        markers = []
        for indicator in self.rule_set.paragraph_indicators:
            found = indicator.regex.match(first)
            if found:
                markers.append(found.group(0).strip())

        return StructureParagraph(
            id=_new_id(),
            text=" ".join(raw.strip() for _n, raw in lines),
            kind=paragraph_kind(first),
            level=leading // 4,
            line_number=line_number,
            markers=tuple(markers),
        )
