"""
Structure extraction module.

Turns reconstructed text into a BookStructure and judges the result:
- Pattern-driven header, footnote, dialogue and paragraph detection
- Header nesting and numbering-consistency checks
- Structure quality assessment and header validation rules
- Pattern usage analysis with structure recommendations
"""

from bookrecon.extractors.analysis import (
    PatternAnalysis,
    PatternStats,
    StructuralFeature,
    analyze_patterns,
    identify_structural_features,
    structure_recommendations,
)
from bookrecon.extractors.hierarchy import (
    build_hierarchy,
    check_numbering_consistency,
    determine_numbering_style,
    nest_headers,
)
from bookrecon.extractors.structure import StructureExtractor
from bookrecon.extractors.validators import (
    DEFAULT_VALIDATORS,
    EntryResult,
    EntryValidationResult,
    HierarchyValidator,
    StructureEntryValidator,
    StructureIssue,
    StructureQuality,
    TitleQualityValidator,
    ValidationIssue,
    ValidationRule,
    assess_structure,
    validate_headers,
)

__all__ = [
    # Main extractor
    "StructureExtractor",
    # Hierarchy
    "build_hierarchy",
    "nest_headers",
    "determine_numbering_style",
    "check_numbering_consistency",
    # Validators
    "ValidationRule",
    "ValidationIssue",
    "HierarchyValidator",
    "TitleQualityValidator",
    "DEFAULT_VALIDATORS",
    "validate_headers",
    "StructureIssue",
    "StructureQuality",
    "assess_structure",
    "StructureEntryValidator",
    "EntryResult",
    "EntryValidationResult",
    # Analysis
    "PatternAnalysis",
    "PatternStats",
    "StructuralFeature",
    "analyze_patterns",
    "identify_structural_features",
    "structure_recommendations",
]
