"""
bookrecon: Reconstruct document structure from recognized book pages.

This library turns OCR output (per-page text, or per-symbol text with
bounding boxes) into clean text, a hierarchical book structure and a
quality report:
- Stitching of page and line fragments with hyphenation rejoining
- Geometric superscript and footnote-marker detection
- Rule-based OCR correction for German and English
- Header, footnote, paragraph and dialogue extraction
- Quality scoring with typed issues and recommendations

Example:
    >>> import bookrecon
    >>> result = bookrecon.DocumentPipeline().process_text(text)
    >>> print(result.structure.to_json())
    >>> result.report.is_valid
    True
"""

from bookrecon.config import GeometryConfig, PipelineConfig
from bookrecon.exceptions import (
    BookReconError,
    ConfigurationError,
    MalformedInputError,
    PatternExtractionError,
    PipelineCancelledError,
)
from bookrecon.extractors import StructureExtractor
from bookrecon.models import (
    # Input
    BookStructure,
    BoundingBox,
    # Enhancement & Quality
    EnhancementSummary,
    # Enums
    FootnoteKind,
    HeaderKind,
    IssueType,
    NumberingStyle,
    ParagraphKind,
    QualityIssue,
    QualityReport,
    RecognizedSymbol,
    Severity,
    # Structure
    StructureDialogue,
    StructureFootnote,
    StructureHeader,
    StructureHierarchy,
    StructureParagraph,
    ValidationMetrics,
)
from bookrecon.ocr import GeometricAnnotationDetector, OCRErrorCorrector, TextStitcher
from bookrecon.pipeline import (
    CancellationToken,
    Completed,
    DocumentPipeline,
    NotImplementedPhase,
    PageInput,
    PipelineResult,
)
from bookrecon.quality import QualityValidator, ScoringWeights
from bookrecon.rules import RuleSet, default_rule_sets, get_rule_set, load_rule_sets

__version__ = "0.1.0"
__all__ = [
    # Main API
    "DocumentPipeline",
    "PipelineResult",
    "PageInput",
    "CancellationToken",
    "Completed",
    "NotImplementedPhase",
    # Components
    "TextStitcher",
    "GeometricAnnotationDetector",
    "OCRErrorCorrector",
    "StructureExtractor",
    "QualityValidator",
    # Configuration
    "PipelineConfig",
    "GeometryConfig",
    "ScoringWeights",
    "RuleSet",
    "default_rule_sets",
    "load_rule_sets",
    "get_rule_set",
    # Enums
    "HeaderKind",
    "FootnoteKind",
    "ParagraphKind",
    "NumberingStyle",
    "Severity",
    "IssueType",
    # Input
    "BoundingBox",
    "RecognizedSymbol",
    # Structure
    "BookStructure",
    "StructureHeader",
    "StructureFootnote",
    "StructureParagraph",
    "StructureDialogue",
    "StructureHierarchy",
    # Quality
    "EnhancementSummary",
    "QualityIssue",
    "QualityReport",
    "ValidationMetrics",
    # Exceptions
    "BookReconError",
    "ConfigurationError",
    "MalformedInputError",
    "PatternExtractionError",
    "PipelineCancelledError",
]
