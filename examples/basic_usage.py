#!/usr/bin/env python3
"""
Basic bookrecon Usage Example

This example demonstrates the core workflow:
1. Process recognized text into a BookStructure
2. Process pages with glyph geometry
3. Inspect the quality report
4. Use custom rule sets
5. Save the structure as JSON
"""

from pathlib import Path

from bookrecon import DocumentPipeline, PipelineConfig, load_rule_sets
from bookrecon.models import BookStructure

SAMPLE = """Kapitel 1: Einleitung

Die Philosophie fragt iiber das Seiende hinaus, daB es sich zeigt.¹

¹ Vgl. Aristoteles, Metaphysik.

Sokrates: Was ist das Sein?"""


def main():
    # ─────────────────────────────────────────────────────────────────────────
    # 1. Plain Text
    # ─────────────────────────────────────────────────────────────────────────

    pipeline = DocumentPipeline()
    result = pipeline.process_text(SAMPLE)

    print(f"Corrected text:\n{result.text}\n")
    for header in result.structure.iter_headers():
        print(f"  {header.kind.value} {header.number}: {header.title} (level {header.level})")
    for footnote in result.structure.footnotes:
        print(f"  Footnote {footnote.reference}: {footnote.text}")
    for turn in result.structure.dialogues:
        print(f"  {turn.speaker}: {turn.text}")

    # ─────────────────────────────────────────────────────────────────────────
    # 2. Pages with Geometry
    # ─────────────────────────────────────────────────────────────────────────

    # Symbols as produced by a recognizer; confidences may be 0-100
    page = {
        "index": 0,
        "symbols": [
            {"text": "D", "confidence": 88, "bbox": [50, 1120, 90, 1195]},
            {"text": "as", "confidence": 97, "bbox": [100, 1123, 140, 1177]},
            {"text": "Jahr", "confidence": 96, "bbox": [150, 1123, 230, 1177]},
            {"text": "250", "confidence": 94, "bbox": [250, 1123, 310, 1177]},
            {"text": "1", "confidence": 71, "bbox": [320, 1119, 335, 1155]},
        ],
    }
    result = pipeline.process_pages([page])
    print(f"Annotated text: {result.text}")  # D as Jahr 250¹
    print(f"  Superscripts: {result.summary.characters_fixed}")

    # ─────────────────────────────────────────────────────────────────────────
    # 3. Quality Report
    # ─────────────────────────────────────────────────────────────────────────

    report = result.report
    print(f"Score {report.score:.2f} ({'valid' if report.is_valid else 'invalid'})")
    for issue in report.issues:
        print(f"  [{issue.severity.value}] {issue.type.value}: {issue.description}")
    for recommendation in report.recommendations:
        print(f"  -> {recommendation}")

    for name, outcome in result.phases.items():
        print(f"  {name}: {outcome.status}")

    # ─────────────────────────────────────────────────────────────────────────
    # 4. Custom Rule Sets
    # ─────────────────────────────────────────────────────────────────────────

    # Sections in the YAML file replace built-in languages of the same code
    rule_sets = load_rule_sets("path/to/rules.yaml")
    config = PipelineConfig(language="en", remove_debris=False)
    result = DocumentPipeline(rule_sets, config).process_text("Chapter 1: Tbe Beginning")

    # ─────────────────────────────────────────────────────────────────────────
    # 5. Persistence
    # ─────────────────────────────────────────────────────────────────────────

    output = Path("output/structure.json")
    output.parent.mkdir(exist_ok=True)
    output.write_text(result.structure.to_json(), encoding="utf-8")

    loaded = BookStructure.from_json(output.read_text(encoding="utf-8"))
    print(f"Loaded {loaded.header_count} headers from {output}")


def batch_example():
    """Process several documents, continuing on errors."""
    documents = {path.stem: path.read_text(encoding="utf-8") for path in Path("texts/").glob("*.txt")}

    pipeline = DocumentPipeline()
    for key, result in pipeline.process_batch(documents, parallel=True, max_workers=4):
        if isinstance(result, Exception):
            print(f"{key}: FAILED ({result})")
        else:
            print(f"{key}: {result.structure.header_count} headers, score {result.report.score:.2f}")


if __name__ == "__main__":
    # Note: Rule file and batch examples use placeholder paths.
    print("bookrecon Usage Examples")
    print("=" * 50)
    print("\nSee the code for detailed examples of:")
    print("  - Plain text processing")
    print("  - Pages with glyph geometry")
    print("  - Quality reports and phase outcomes")
    print("  - Custom rule sets")
    print("  - JSON persistence")
    print("  - Batch processing")
