"""
Configuration for bookrecon document processing.

Rule tables (patterns, substitutions, abbreviations) live in
``bookrecon.rules``; this module holds the numeric knobs.
"""

from dataclasses import dataclass, field

from bookrecon.quality.scoring import ScoringWeights


@dataclass
class GeometryConfig:
    """
    Thresholds for geometric superscript detection.

    The defaults were tuned on scanned German lecture transcripts where
    footnote markers are roughly two thirds of body text height.

    Example:
        >>> detector = GeometricAnnotationDetector(
        ...     GeometryConfig(line_tolerance_px=6.0)
        ... )
    """

    # Line grouping
    line_tolerance_px: float = 10.0  # Max y0 distance from a line's first symbol

    # Superscript test: height < ratio * average AND y0 < line top + offset
    height_ratio_threshold: float = 0.7
    vertical_offset_px: float = 3.0

    # Heights above factor * median are excluded from the line average
    outlier_height_factor: float = 1.5

    min_symbols_per_line: int = 2

    # Attach flagged digits/asterisks to the previous word as ¹²³ characters
    render_superscripts: bool = True

    def __post_init__(self):
        """Validate configuration."""
        if self.line_tolerance_px < 0:
            raise ValueError(f"line_tolerance_px must be >= 0, got {self.line_tolerance_px}")
        if not 0.0 < self.height_ratio_threshold <= 1.0:
            raise ValueError(
                f"height_ratio_threshold must be between 0.0 and 1.0, "
                f"got {self.height_ratio_threshold}"
            )
        if self.outlier_height_factor < 1.0:
            raise ValueError(
                f"outlier_height_factor must be >= 1.0, got {self.outlier_height_factor}"
            )
        if self.min_symbols_per_line < 2:
            raise ValueError(
                f"min_symbols_per_line must be >= 2, got {self.min_symbols_per_line}"
            )


@dataclass
class PipelineConfig:
    """
    Configuration for a document pass.

    All options have sensible defaults. Create a config only
    if you need to customize behavior.

    Example:
        >>> config = PipelineConfig(language="en", remove_debris=False)
        >>> result = DocumentPipeline(config=config).process_text(text)
    """

    # Rule set lookup key; unknown languages raise ConfigurationError
    language: str = "de"

    # Stitching
    page_separator: str = "\n"
    rejoin_line_breaks: bool = True  # Rejoin "Philo-\nsophie" inside pages

    # Enhancement steps
    remove_debris: bool = True
    detect_residual_errors: bool = True  # Spell-check count only, never corrects

    # Not implemented; reported as such in the phase outcomes
    enable_ai_enhancement: bool = False

    geometry: GeometryConfig = field(default_factory=GeometryConfig)
    scoring: ScoringWeights = field(default_factory=ScoringWeights)

    def __post_init__(self):
        """Validate configuration."""
        if not self.language:
            raise ValueError("language cannot be empty")
        if "\n" not in self.page_separator and not self.page_separator.isspace():
            raise ValueError(
                f"page_separator must be whitespace, got {self.page_separator!r}"
            )
