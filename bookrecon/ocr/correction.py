"""
OCR error correction for bookrecon.

Three text passes run after stitching:

- OCRErrorCorrector: ordered, word-anchored regex substitutions from the
  language RuleSet. Fixes systematic recognizer mistakes (umlauts read as
  "ii", ß read as "B", h read as "b").
- DebrisCleaner: removes scanner/recognizer debris (pipe and tilde runs,
  backticks, underscore lines, dot leaders).
- ResidualErrorDetector: counts words a spell checker does not know.
  It only flags; it never corrects, since spell-check corrections on
  scholarly German introduce more errors than they fix.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from spellchecker import SpellChecker

from bookrecon.exceptions import ConfigurationError
from bookrecon.rules import RuleSet, SubstitutionRule

logger = logging.getLogger(__name__)


# ============================================================================
# Constants
# ============================================================================

# Upper bound on substitution passes; rule sets normally settle in one
MAX_PASSES = 5

DEBRIS_PATTERNS: tuple[tuple[str, re.Pattern[str], str], ...] = (
    ("pipe_run", re.compile(r"\|{2,}"), ""),
    ("tilde_run", re.compile(r"~{2,}"), ""),
    ("backticks", re.compile(r"`+"), ""),
    ("underscore_run", re.compile(r"_{3,}"), ""),
    ("dot_run", re.compile(r"\.{4,}"), "..."),
)

WORD_PATTERN = re.compile(r"[^\W\d_]+")


# ============================================================================
# Results
# ============================================================================


@dataclass
class CorrectionResult:
    """Result of OCR correction."""

    original_text: str
    corrected_text: str
    changes_made: list[tuple[str, str]]  # (original, corrected)
    confidence: float  # Confidence in corrections

    @property
    def change_count(self) -> int:
        """Number of corrections made."""
        return len(self.changes_made)

    @property
    def was_modified(self) -> bool:
        """Whether any changes were made."""
        return self.original_text != self.corrected_text


@dataclass
class DebrisResult:
    """Result of debris removal."""

    text: str
    removed: dict[str, int] = field(default_factory=dict)  # pattern name -> matches

    @property
    def removed_count(self) -> int:
        return sum(self.removed.values())


def _match_case(original: str, replacement: str) -> str:
    """Carry the case of the matched text over to the replacement."""
    if not original or not replacement:
        return replacement
    if len(original) > 1 and original.isupper():
        return replacement.upper()
    if original[0].isupper() and replacement[0].islower():
        return replacement[0].upper() + replacement[1:]
    if original[0].islower() and replacement[0].isupper():
        return replacement[0].lower() + replacement[1:]
    return replacement


# ============================================================================
# OCR Error Corrector
# ============================================================================


class OCRErrorCorrector:
    """
    Applies a language's substitution rules.

    Rules run in order and the whole list repeats until a pass changes
    nothing, so correcting already-corrected text is a no-op. Characters
    outside a matched span are never touched.

    Example:
        >>> corrector = OCRErrorCorrector(get_rule_set(rule_sets, "de"))
        >>> corrector.correct("Das ist fiir uns, daB es geht.").corrected_text
        'Das ist für uns, daß es geht.'
    """

    def __init__(self, rule_set: RuleSet, logger: logging.Logger | None = None):
        self.rule_set = rule_set
        self.logger = logger or logging.getLogger(__name__)

    def _apply(self, rule: SubstitutionRule, text: str, changes: list[tuple[str, str]]) -> str:
        def replace(match: re.Match[str]) -> str:
            found = match.group(0)
            replacement = match.expand(rule.replacement)
            if rule.ignore_case:
                replacement = _match_case(found, replacement)
            if replacement != found:
                changes.append((found, replacement))
            return replacement

        return rule.regex.sub(replace, text)

    def correct(self, text: str) -> CorrectionResult:
        """
        Apply substitution rules to text.

        Args:
            text: Text to correct

        Returns:
            CorrectionResult with corrections
        """
        changes: list[tuple[str, str]] = []
        result = text

        for pass_number in range(1, MAX_PASSES + 1):
            before = len(changes)
            for rule in self.rule_set.substitutions:
                result = self._apply(rule, result, changes)
            if len(changes) == before:
                break
            self.logger.debug(
                "Correction pass %d made %d changes", pass_number, len(changes) - before
            )
        else:
            self.logger.warning(
                "Substitution rules for '%s' did not settle after %d passes",
                self.rule_set.language,
                MAX_PASSES,
            )

        return CorrectionResult(
            original_text=text,
            corrected_text=result,
            changes_made=changes,
            confidence=0.9 if changes else 1.0,  # High confidence for known patterns
        )


# ============================================================================
# Debris Cleaner
# ============================================================================


class DebrisCleaner:
    """Removes OCR debris that carries no text."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger(__name__)

    def clean(self, text: str) -> DebrisResult:
        result = DebrisResult(text=text)
        for name, pattern, replacement in DEBRIS_PATTERNS:
            result.text, count = pattern.subn(replacement, result.text)
            if count:
                result.removed[name] = count
        if result.removed:
            self.logger.debug("Removed debris: %s", result.removed)
        return result


# ============================================================================
# Residual Error Detector
# ============================================================================


class ResidualErrorDetector:
    """
    Flags words left unknown to the spell checker after correction.

    Args:
        language: pyspellchecker dictionary language (e.g. "de", "en").
        min_word_length: Shorter words are not checked.
        skip_capitalized: Skip capitalized words (proper nouns, and every
            German noun).
        additional_vocabulary: Words to treat as known.

    Raises:
        ConfigurationError: If pyspellchecker has no dictionary for
            ``language``.
    """

    def __init__(
        self,
        language: str,
        min_word_length: int = 4,
        skip_capitalized: bool = True,
        additional_vocabulary: set[str] | None = None,
        logger: logging.Logger | None = None,
    ):
        try:
            self.spell = SpellChecker(language=language)
        except (ValueError, OSError) as e:
            raise ConfigurationError(f"No spell-check dictionary for '{language}': {e}") from e

        if additional_vocabulary:
            self.spell.word_frequency.load_words(additional_vocabulary)

        self.language = language
        self.min_word_length = min_word_length
        self.skip_capitalized = skip_capitalized
        self.logger = logger or logging.getLogger(__name__)

    def _candidates(self, text: str) -> list[str]:
        words = []
        for word in WORD_PATTERN.findall(text):
            if len(word) < self.min_word_length:
                continue
            if self.skip_capitalized and word[0].isupper():
                continue
            words.append(word)
        return words

    def find(self, text: str) -> list[str]:
        """Return the unknown words, in text order."""
        words = self._candidates(text)
        unknown = self.spell.unknown(words)
        return [w for w in words if w.lower() in unknown]

    def count(self, text: str) -> int:
        found = self.find(text)
        self.logger.debug("%d residual spelling issues (%s)", len(found), self.language)
        return len(found)
