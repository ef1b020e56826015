"""
Geometric superscript and footnote-marker detection.

Recognizers report a superscript flag, but it misses the subtle size
differences of footnote markers in scanned books. This detector recomputes
the flag from bounding-box statistics:

1. Group symbols into lines: sort on y0 and cluster symbols whose y0 is
   within ``line_tolerance_px`` of the line's first symbol.
2. Per line (at least two symbols): take the median height, then the
   average of the heights no larger than 1.5x the median. Tall outliers
   (drop caps, merged boxes) do not inflate the average.
3. A symbol is a superscript when it is clearly smaller than that average
   AND its top sits at the top of the line.

The computed flag replaces the recognizer flag for every symbol on an
evaluated line.
"""

from __future__ import annotations

import dataclasses
import logging
import re
import statistics
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from bookrecon.config import GeometryConfig
from bookrecon.exceptions import MalformedInputError
from bookrecon.models import RecognizedSymbol

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

SUPERSCRIPT_TRANSLATION = str.maketrans("0123456789", "⁰¹²³⁴⁵⁶⁷⁸⁹")

# Flagged symbols that are rendered as superscript characters
MARKER_PATTERN = re.compile(r"^[0-9*]+$")


# =============================================================================
# DATA STRUCTURES
# =============================================================================


@dataclass(frozen=True)
class SymbolLine:
    """Symbols sharing a text line, ordered left to right."""

    symbols: tuple[RecognizedSymbol, ...]
    top: float  # Smallest y0 on the line
    average_height: float | None = None  # None when the line was not evaluated

    @property
    def evaluated(self) -> bool:
        return self.average_height is not None


@dataclass(frozen=True)
class FootnoteCandidate:
    """A superscript marker found by geometry."""

    marker: str
    line_index: int
    symbol: RecognizedSymbol
    is_footnote_start: bool  # First symbol on its line: the note body itself

    @property
    def is_reference(self) -> bool:
        """In-text reference to a note."""
        return not self.is_footnote_start


@dataclass
class AnnotationResult:
    """Lines, superscripts and footnote candidates for one page."""

    lines: list[SymbolLine] = field(default_factory=list)
    footnote_candidates: list[FootnoteCandidate] = field(default_factory=list)
    skipped: int = 0  # Malformed symbol entries
    render_superscripts: bool = True

    @property
    def superscripts(self) -> list[RecognizedSymbol]:
        return [s for line in self.lines for s in line.symbols if s.is_superscript]

    @property
    def text(self) -> str:
        """Page text, one output line per symbol line."""
        return "\n".join(
            render_line(line, self.render_superscripts) for line in self.lines
        )


def render_line(line: SymbolLine, render_superscripts: bool = True) -> str:
    """
    Render a line's symbols as text.

    Superscript digit/asterisk markers are attached to the preceding word
    as superscript characters ("250" + "1" -> "250¹"), so footnote
    patterns can recognize them downstream.
    """
    parts: list[str] = []
    for symbol in line.symbols:
        text = symbol.text.strip()
        if render_superscripts and symbol.is_superscript and MARKER_PATTERN.match(text):
            marker = text.translate(SUPERSCRIPT_TRANSLATION)
            if parts:
                parts[-1] += marker
            else:
                parts.append(marker)
        else:
            parts.append(text)
    return " ".join(parts)


# =============================================================================
# DETECTOR
# =============================================================================


class GeometricAnnotationDetector:
    """
    Detects superscripts and footnote markers from symbol geometry.

    Example:
        >>> detector = GeometricAnnotationDetector()
        >>> result = detector.detect(page_symbols)
        >>> [s.text for s in result.superscripts]
        ['1']
    """

    def __init__(
        self,
        config: GeometryConfig | None = None,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize detector.

        Args:
            config: Geometry thresholds. Uses defaults if not provided.
            logger: Logger to use; defaults to the module logger.
        """
        self.config = config or GeometryConfig()
        self.logger = logger or logging.getLogger(__name__)

    def group_lines(self, symbols: Iterable[RecognizedSymbol]) -> list[list[RecognizedSymbol]]:
        """Cluster symbols into lines by y0, each line sorted by x0."""
        ordered = sorted(symbols, key=lambda s: (s.bbox.y0, s.bbox.x0))
        lines: list[list[RecognizedSymbol]] = []
        line_start = 0.0

        for symbol in ordered:
            if lines and abs(symbol.bbox.y0 - line_start) <= self.config.line_tolerance_px:
                lines[-1].append(symbol)
            else:
                lines.append([symbol])
                line_start = symbol.bbox.y0

        return [sorted(line, key=lambda s: s.bbox.x0) for line in lines]

    def average_height(self, symbols: list[RecognizedSymbol]) -> float:
        """Average height excluding outliers above factor x median."""
        heights = [s.height for s in symbols]
        median = statistics.median(heights)
        limit = median * self.config.outlier_height_factor
        kept = [h for h in heights if h <= limit]
        return sum(kept) / len(kept)

    def is_superscript(self, symbol: RecognizedSymbol, average: float, top: float) -> bool:
        return (
            symbol.height < self.config.height_ratio_threshold * average
            and symbol.bbox.y0 < top + self.config.vertical_offset_px
        )

    def detect(self, symbols: Iterable[RecognizedSymbol | dict[str, Any]]) -> AnnotationResult:
        """
        Group symbols into lines and flag superscripts.

        Dict entries are parsed with ``RecognizedSymbol.from_dict``;
        malformed entries are skipped with a warning.

        Returns:
            AnnotationResult with lines in reading order.
        """
        result = AnnotationResult(render_superscripts=self.config.render_superscripts)
        valid: list[RecognizedSymbol] = []

        for position, entry in enumerate(symbols):
            try:
                if isinstance(entry, RecognizedSymbol):
                    valid.append(entry)
                else:
                    valid.append(RecognizedSymbol.from_dict(entry))
            except MalformedInputError as e:
                self.logger.warning("Skipping malformed symbol %d: %s", position, e)
                result.skipped += 1

        for line_index, line_symbols in enumerate(self.group_lines(valid)):
            top = min(s.bbox.y0 for s in line_symbols)

            if len(line_symbols) < self.config.min_symbols_per_line:
                result.lines.append(SymbolLine(tuple(line_symbols), top))
                continue

            average = self.average_height(line_symbols)
            flagged: list[RecognizedSymbol] = []
            for symbol in line_symbols:
                detected = self.is_superscript(symbol, average, top)
                if detected != symbol.is_superscript:
                    self.logger.debug(
                        "Superscript flag for %r overridden: %s -> %s",
                        symbol.text,
                        symbol.is_superscript,
                        detected,
                    )
                    symbol = dataclasses.replace(symbol, is_superscript=detected)
                flagged.append(symbol)

            result.lines.append(SymbolLine(tuple(flagged), top, average))

            for position, symbol in enumerate(flagged):
                if symbol.is_superscript:
                    result.footnote_candidates.append(
                        FootnoteCandidate(
                            marker=symbol.text.strip(),
                            line_index=line_index,
                            symbol=symbol,
                            is_footnote_start=position == 0,
                        )
                    )

        self.logger.debug(
            "Annotated %d lines: %d superscripts, %d malformed entries skipped",
            len(result.lines),
            len(result.superscripts),
            result.skipped,
        )
        return result
