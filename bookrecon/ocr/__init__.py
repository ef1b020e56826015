"""
OCR reconstruction for recognized book text.

This module turns raw recognizer output into clean text:
- Fragment stitching with hyphenation rejoining
- Geometric superscript / footnote-marker detection from bounding boxes
- Rule-based OCR error correction per language
- Debris removal and residual spelling-error counting

Example:
    >>> from bookrecon.ocr import TextStitcher, OCRErrorCorrector
    >>> text = TextStitcher().stitch(["Die Philo-", "sophie iiber"])
    >>> OCRErrorCorrector(rules).correct(text).corrected_text
    'Die Philosophie über'
"""

from bookrecon.ocr.correction import (
    CorrectionResult,
    DebrisCleaner,
    DebrisResult,
    OCRErrorCorrector,
    ResidualErrorDetector,
)
from bookrecon.ocr.geometry import (
    AnnotationResult,
    FootnoteCandidate,
    GeometricAnnotationDetector,
    SymbolLine,
    render_line,
)
from bookrecon.ocr.stitching import StitchStats, TextStitcher

__all__ = [
    # Stitching
    "TextStitcher",
    "StitchStats",
    # Geometry
    "GeometricAnnotationDetector",
    "AnnotationResult",
    "SymbolLine",
    "FootnoteCandidate",
    "render_line",
    # Correction
    "OCRErrorCorrector",
    "CorrectionResult",
    "DebrisCleaner",
    "DebrisResult",
    "ResidualErrorDetector",
]
