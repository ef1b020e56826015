"""
Document pipeline orchestrator.

Runs one document through every phase:
1. Page reassembly and geometric annotation (when symbols are given)
2. Stitching across pages and hyphenated line breaks
3. Text enhancement: debris removal, rule correction, residual error count
4. Structure extraction, assessment and pattern analysis
5. Quality validation

Each phase reports a PhaseOutcome. The AI enhancement phase has no
implementation and always reports NotImplementedPhase.

Example:
    >>> from bookrecon.pipeline import DocumentPipeline
    >>> result = DocumentPipeline().process_text("Kapitel 1: Einleitung\\n\\nText.")
    >>> result.structure.headers[0].title
    'Einleitung'
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import time
from collections.abc import Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any

from bookrecon.config import PipelineConfig
from bookrecon.exceptions import MalformedInputError, PipelineCancelledError
from bookrecon.extractors.analysis import PatternAnalysis, analyze_patterns
from bookrecon.extractors.structure import StructureExtractor
from bookrecon.extractors.validators import (
    StructureQuality,
    ValidationIssue,
    assess_structure,
    validate_headers,
)
from bookrecon.models import (
    BookStructure,
    EnhancementSummary,
    QualityReport,
    RecognizedSymbol,
)
from bookrecon.ocr.correction import DebrisCleaner, OCRErrorCorrector, ResidualErrorDetector
from bookrecon.ocr.geometry import AnnotationResult, GeometricAnnotationDetector
from bookrecon.ocr.stitching import TextStitcher
from bookrecon.quality.validator import QualityValidator
from bookrecon.rules import RuleSet, default_rule_sets, get_rule_set

logger = logging.getLogger(__name__)

# Step confidences averaged into EnhancementSummary.confidence
DEBRIS_CONFIDENCE = 0.95
REJOIN_CONFIDENCE = 0.85


# =============================================================================
# DATA STRUCTURES
# =============================================================================


@dataclass(frozen=True)
class PageInput:
    """
    One recognized page.

    Either ``text`` or ``symbols`` must be given. With symbols the page
    text is rebuilt from geometry; plain text skips annotation.
    """

    index: int
    text: str | None = None
    symbols: tuple[RecognizedSymbol | dict[str, Any], ...] = ()

    def __post_init__(self) -> None:
        if isinstance(self.index, bool) or not isinstance(self.index, int) or self.index < 0:
            raise MalformedInputError(f"Page index must be a non-negative int, got {self.index!r}")
        if self.text is not None and not isinstance(self.text, str):
            raise MalformedInputError(
                f"Page {self.index} text must be a string, got {type(self.text).__name__}"
            )
        if self.text is None and not self.symbols:
            raise MalformedInputError(f"Page {self.index} has neither text nor symbols")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PageInput:
        if not isinstance(data, dict):
            raise MalformedInputError(f"Page entry must be a mapping, got {type(data).__name__}")
        if "index" not in data:
            raise MalformedInputError("Page entry has no index")
        symbols = data.get("symbols") or ()
        if not isinstance(symbols, (list, tuple)):
            raise MalformedInputError("Page symbols must be a list")
        return cls(index=data["index"], text=data.get("text"), symbols=tuple(symbols))


class CancellationToken:
    """
    Cooperative cancellation for a document pass.

    The pipeline checks the token between phases and between pages.
    Cancelling from another thread is safe.

    Example:
        >>> token = CancellationToken(timeout=30.0)
        >>> pipeline.process_text(text, cancel_token=token)
    """

    def __init__(self, timeout: float | None = None):
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def check(self, phase: str) -> None:
        """Raise PipelineCancelledError if the pass should stop."""
        if self._event.is_set():
            raise PipelineCancelledError(f"Processing cancelled before {phase}")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise PipelineCancelledError(f"Processing deadline passed before {phase}")


@dataclass(frozen=True)
class Completed:
    """A phase that ran, with its output."""

    data: Any = None

    status = "completed"


@dataclass(frozen=True)
class NotImplementedPhase:
    """A phase with no implementation. Nothing is simulated."""

    reason: str = ""

    status = "not_implemented"


PhaseOutcome = Completed | NotImplementedPhase


@dataclass
class PipelineResult:
    """Result of processing one document."""

    text: str
    original_text: str
    structure: BookStructure
    report: QualityReport
    summary: EnhancementSummary
    structure_quality: StructureQuality
    analysis: PatternAnalysis
    header_issues: list[ValidationIssue] = field(default_factory=list)
    phases: dict[str, PhaseOutcome] = field(default_factory=dict)
    annotations: list[AnnotationResult] = field(default_factory=list)
    residual_errors: list[str] = field(default_factory=list)
    processing_log: list[str] = field(default_factory=list)
    processing_time_ms: float = 0.0

    @property
    def is_valid(self) -> bool:
        return self.report.is_valid

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "structure": self.structure.to_dict(),
            "report": self.report.to_dict(),
            "summary": self.summary.to_dict(),
            "structure_quality": self.structure_quality.to_dict(),
            "analysis": self.analysis.to_dict(),
            "header_issues": [dataclasses.asdict(issue) for issue in self.header_issues],
            "phases": {name: outcome.status for name, outcome in self.phases.items()},
            "residual_errors": list(self.residual_errors),
            "processing_log": list(self.processing_log),
            "processing_time_ms": self.processing_time_ms,
        }


# =============================================================================
# DOCUMENT PIPELINE
# =============================================================================


class DocumentPipeline:
    """
    Runs documents through annotation, stitching, enhancement, extraction
    and validation.

    Rule sets and the logger are only read, so one pipeline can serve
    several documents concurrently (see ``process_batch``).

    Attributes:
        rule_sets: Rule sets keyed by language code.
        config: Pipeline configuration.
    """

    def __init__(
        self,
        rule_sets: dict[str, RuleSet] | None = None,
        config: PipelineConfig | None = None,
        logger: logging.Logger | None = None,
    ):
        self.rule_sets = rule_sets if rule_sets is not None else default_rule_sets()
        self.config = config or PipelineConfig()
        self.logger = logger or logging.getLogger(__name__)

        # Spell-check dictionaries are expensive to load; built once per language
        self._detectors: dict[str, ResidualErrorDetector] = {}
        self._detectors_lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def process_text(
        self,
        text: str,
        language: str | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> PipelineResult:
        """
        Process plain text. Geometric annotation is skipped.

        Raises:
            ConfigurationError: If no rule set exists for the language.
            MalformedInputError: If text is not a string.
            PipelineCancelledError: If the token is cancelled mid-pass.
        """
        if not isinstance(text, str):
            raise MalformedInputError(f"Text must be a string, got {type(text).__name__}")
        return self.process_pages([PageInput(0, text=text)], language, cancel_token)

    def process_pages(
        self,
        pages: Iterable[PageInput | dict[str, Any]],
        language: str | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> PipelineResult:
        """
        Process recognized pages, which may arrive in any order.

        Pages are reassembled by index. Malformed and duplicate pages are
        skipped with a warning.

        Raises:
            ConfigurationError: If no rule set exists for the language.
            PipelineCancelledError: If the token is cancelled mid-pass.
        """
        start_time = time.time()
        language = language or self.config.language
        rule_set = get_rule_set(self.rule_sets, language)
        token = cancel_token or CancellationToken()
        log: list[str] = []
        phases: dict[str, PhaseOutcome] = {}

        # Reassembly and annotation
        token.check("page reassembly")
        ordered = self._reassemble(pages)
        page_texts: list[str] = []
        annotations: list[AnnotationResult] = []
        detector = GeometricAnnotationDetector(self.config.geometry, self.logger)

        for page in ordered:
            token.check(f"page {page.index}")
            if page.symbols:
                annotation = detector.detect(page.symbols)
                annotations.append(annotation)
                if annotation.lines or page.text is None:
                    page_texts.append(annotation.text)
                    continue
                self.logger.warning(
                    "Page %d has no usable symbols; using its text", page.index
                )
            page_texts.append(page.text)

        superscripts = sum(len(a.superscripts) for a in annotations)
        if annotations:
            phases["annotation"] = Completed(annotations)
            log.append(
                f"Annotated {len(annotations)} pages, {superscripts} superscripts detected"
            )

        # Stitching
        token.check("stitching")
        stitcher = TextStitcher(separator=self.config.page_separator, logger=self.logger)
        original_text, page_stats = stitcher.stitch_with_stats(
            page.rstrip() for page in page_texts
        )
        text = original_text
        words_reconstructed = page_stats.hyphens_joined
        step_confidences: list[float] = []
        if self.config.rejoin_line_breaks:
            text, line_stats = stitcher.rejoin_lines(text)
            words_reconstructed += line_stats.hyphens_joined
            if line_stats.hyphens_joined:
                step_confidences.append(REJOIN_CONFIDENCE)
        phases["stitching"] = Completed(page_stats)
        log.append(
            f"Stitched {page_stats.fragments} pages, {words_reconstructed} words reconstructed"
        )

        # Enhancement
        token.check("enhancement")
        debris_removed = 0
        if self.config.remove_debris:
            debris = DebrisCleaner(self.logger).clean(text)
            text = debris.text
            debris_removed = debris.removed_count
            if debris_removed:
                step_confidences.append(DEBRIS_CONFIDENCE)

        correction = OCRErrorCorrector(rule_set, self.logger).correct(text)
        text = correction.corrected_text
        if correction.changes_made:
            step_confidences.append(correction.confidence)

        residual: list[str] = []
        if self.config.detect_residual_errors and rule_set.spellcheck_language:
            residual = self._residual_detector(rule_set.spellcheck_language).find(text)

        summary = EnhancementSummary(
            spelling_corrections=correction.change_count,
            debris_removed=debris_removed,
            words_reconstructed=words_reconstructed,
            characters_fixed=superscripts if self.config.geometry.render_superscripts else 0,
            issues_remaining=len(residual),
            confidence=(
                sum(step_confidences) / len(step_confidences) if step_confidences else 1.0
            ),
        )
        phases["enhancement"] = Completed(summary)
        log.append(
            f"Enhanced text: {summary.issues_fixed} issues fixed, "
            f"{summary.issues_remaining} remaining"
        )

        if self.config.enable_ai_enhancement:
            self.logger.warning("AI enhancement requested but not implemented; skipping")
        phases["ai_enhancement"] = NotImplementedPhase("AI enhancement is not implemented")

        # Extraction
        token.check("extraction")
        structure = StructureExtractor(rule_set, self.logger).extract(text)
        structure_quality = assess_structure(structure, text)
        analysis = analyze_patterns(structure, text)
        header_issues = validate_headers(structure)
        phases["extraction"] = Completed(structure)
        log.append(
            f"Extracted {structure.header_count} headers, {len(structure.footnotes)} footnotes, "
            f"{len(structure.paragraphs)} paragraphs (structure score {structure_quality.score})"
        )

        # Validation
        token.check("validation")
        validator = QualityValidator(rule_set, self.config.scoring, self.logger)
        report = validator.validate(text, original_text, summary, structure)
        phases["validation"] = Completed(report)
        log.append(f"Quality score {report.score:.2f} ({'valid' if report.is_valid else 'invalid'})")

        # Nothing is returned if cancelled during the final phase
        token.check("result")
        result = PipelineResult(
            text=text,
            original_text=original_text,
            structure=structure,
            report=report,
            summary=summary,
            structure_quality=structure_quality,
            analysis=analysis,
            header_issues=header_issues,
            phases=phases,
            annotations=annotations,
            residual_errors=residual,
            processing_log=log,
            processing_time_ms=(time.time() - start_time) * 1000,
        )
        self.logger.info(
            "Processed document (%s): %d pages, score=%.2f in %.0fms",
            language,
            len(ordered),
            report.score,
            result.processing_time_ms,
        )
        return result

    def process_batch(
        self,
        documents: dict[str, str | list[PageInput | dict[str, Any]]],
        language: str | None = None,
        parallel: bool = False,
        max_workers: int = 4,
    ) -> Iterator[tuple[str, PipelineResult | Exception]]:
        """
        Process multiple documents, yielding results as completed.

        Args:
            documents: Mapping of key to plain text or a page list.
            language: Rule set for every document; defaults to the config.
            parallel: Whether to process in a thread pool.
            max_workers: Max parallel workers (if parallel=True).

        Yields:
            (key, result) tuples where result is PipelineResult or Exception
        """
        if not parallel:
            for key, document in documents.items():
                yield key, self._process_one(document, language)
            return

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                executor.submit(self._process_one, document, language): key
                for key, document in documents.items()
            }
            for future in as_completed(futures):
                yield futures[future], future.result()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _process_one(
        self,
        document: str | list[PageInput | dict[str, Any]],
        language: str | None,
    ) -> PipelineResult | Exception:
        try:
            if isinstance(document, str):
                return self.process_text(document, language)
            if not isinstance(document, (list, tuple)):
                raise MalformedInputError(
                    f"Document must be text or a page list, got {type(document).__name__}"
                )
            return self.process_pages(document, language)
        except Exception as e:
            self.logger.warning("Document failed: %s", e)
            return e

    def _reassemble(self, pages: Iterable[PageInput | dict[str, Any]]) -> list[PageInput]:
        """Validate pages and order them by index, first page per index wins."""
        by_index: dict[int, PageInput] = {}
        for position, entry in enumerate(pages):
            try:
                page = entry if isinstance(entry, PageInput) else PageInput.from_dict(entry)
            except MalformedInputError as e:
                self.logger.warning("Skipping malformed page entry %d: %s", position, e)
                continue
            if page.index in by_index:
                self.logger.warning("Skipping duplicate page %d", page.index)
                continue
            by_index[page.index] = page
        return [by_index[index] for index in sorted(by_index)]

    def _residual_detector(self, language: str) -> ResidualErrorDetector:
        with self._detectors_lock:
            if language not in self._detectors:
                self._detectors[language] = ResidualErrorDetector(language, logger=self.logger)
            return self._detectors[language]
