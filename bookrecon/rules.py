"""
Language rule sets.

A RuleSet bundles every language-specific table the engine needs:
substitution rules for the OCR error corrector, header/footnote/dialogue
pattern groups for the structure extractor, paragraph indicators,
abbreviations that do not end a sentence, and the spell-check language.

Rule sets are plain immutable values. They are built once (built-in sets
or a YAML file) and passed by value into components, so concurrent
documents can share them freely.

Example:
    >>> rule_sets = load_rule_sets("rules.yaml")
    >>> rules = get_rule_set(rule_sets, "de")
    >>> rules.patterns_for(HeaderKind.CHAPTER)[0].id
    'chapter_keyword'
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import cached_property
from pathlib import Path
from typing import Any

import yaml

from bookrecon.exceptions import ConfigurationError
from bookrecon.models import HeaderKind

logger = logging.getLogger(__name__)


# =============================================================================
# RULE TYPES
# =============================================================================


@dataclass(frozen=True)
class PatternRule:
    """A named regular expression used for line classification.

    Named groups are preferred by the extractor: ``title``/``number`` for
    headers, ``ref``/``text`` for footnotes, ``speaker``/``note``/``text``
    for dialogue. Patterns without them fall back to positional groups.
    """

    id: str
    pattern: str
    ignore_case: bool = False

    @cached_property
    def regex(self) -> re.Pattern[str]:
        flags = re.IGNORECASE if self.ignore_case else 0
        return re.compile(self.pattern, flags)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "pattern": self.pattern, "ignore_case": self.ignore_case}


@dataclass(frozen=True)
class SubstitutionRule:
    """A word-anchored regex substitution fixing a systematic OCR mistake."""

    pattern: str
    replacement: str
    ignore_case: bool = False
    description: str = ""

    @cached_property
    def regex(self) -> re.Pattern[str]:
        flags = re.IGNORECASE if self.ignore_case else 0
        return re.compile(self.pattern, flags)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pattern": self.pattern,
            "replacement": self.replacement,
            "ignore_case": self.ignore_case,
            "description": self.description,
        }


@dataclass(frozen=True)
class RuleSet:
    """
    All pattern and constant tables for one language.

    Attributes:
        language: Language code (e.g. "de").
        substitutions: OCR substitution rules, applied in order.
        header_patterns: (kind, patterns) pairs in priority order.
        header_keywords: (kind, keywords) pairs; a keyword on the line
            raises header confidence.
        footnote_patterns: Footnote body patterns, first match wins.
        dialogue_patterns: Dialogue patterns, first match wins.
        paragraph_indicators: Patterns whose matches become paragraph markers.
        abbreviations: Lowercase abbreviations that do not end a sentence.
        spellcheck_language: pyspellchecker language, or None to disable
            residual error detection.
    """

    language: str
    substitutions: tuple[SubstitutionRule, ...] = ()
    header_patterns: tuple[tuple[HeaderKind, tuple[PatternRule, ...]], ...] = ()
    header_keywords: tuple[tuple[HeaderKind, tuple[str, ...]], ...] = ()
    footnote_patterns: tuple[PatternRule, ...] = ()
    dialogue_patterns: tuple[PatternRule, ...] = ()
    paragraph_indicators: tuple[PatternRule, ...] = ()
    abbreviations: tuple[str, ...] = ()
    spellcheck_language: str | None = None

    def __post_init__(self):
        """Compile every pattern up front so bad rules fail before any work."""
        if not self.language:
            raise ConfigurationError("Rule set language cannot be empty")

        rules: list[PatternRule | SubstitutionRule] = list(self.substitutions)
        for _kind, patterns in self.header_patterns:
            rules.extend(patterns)
        rules.extend(self.footnote_patterns)
        rules.extend(self.dialogue_patterns)
        rules.extend(self.paragraph_indicators)

        for rule in rules:
            try:
                rule.regex  # noqa: B018
            except re.error as e:
                raise ConfigurationError(
                    f"Invalid pattern {rule.pattern!r} in rule set '{self.language}': {e}"
                ) from e

    def patterns_for(self, kind: HeaderKind) -> tuple[PatternRule, ...]:
        for rule_kind, patterns in self.header_patterns:
            if rule_kind is kind:
                return patterns
        return ()

    def keywords_for(self, kind: HeaderKind) -> tuple[str, ...]:
        for rule_kind, keywords in self.header_keywords:
            if rule_kind is kind:
                return keywords
        return ()

    @cached_property
    def keyword_regexes(self) -> dict[HeaderKind, re.Pattern[str] | None]:
        """One case-insensitive alternation per header kind."""
        compiled: dict[HeaderKind, re.Pattern[str] | None] = {}
        for kind in HeaderKind:
            keywords = self.keywords_for(kind)
            if keywords:
                alternation = "|".join(re.escape(k) for k in keywords)
                compiled[kind] = re.compile(alternation, re.IGNORECASE)
            else:
                compiled[kind] = None
        return compiled

    def to_dict(self) -> dict[str, Any]:
        """Convert to the mapping layout read by ``load_rule_sets``."""
        return {
            "spellcheck_language": self.spellcheck_language,
            "substitutions": [rule.to_dict() for rule in self.substitutions],
            "header_patterns": {
                kind.value: [rule.to_dict() for rule in patterns]
                for kind, patterns in self.header_patterns
            },
            "header_keywords": {
                kind.value: list(keywords) for kind, keywords in self.header_keywords
            },
            "footnote_patterns": [rule.to_dict() for rule in self.footnote_patterns],
            "dialogue_patterns": [rule.to_dict() for rule in self.dialogue_patterns],
            "paragraph_indicators": [rule.to_dict() for rule in self.paragraph_indicators],
            "abbreviations": list(self.abbreviations),
        }

    @classmethod
    def from_dict(cls, language: str, data: dict[str, Any]) -> RuleSet:
        """
        Build a rule set from a mapping (one language section of a YAML file).

        Raises:
            ConfigurationError: If the mapping is malformed.
        """
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Rule set '{language}' must be a mapping, got {type(data).__name__}"
            )
        try:
            header_patterns = []
            for kind_name, patterns in (data.get("header_patterns") or {}).items():
                header_patterns.append(
                    (HeaderKind(kind_name), tuple(_pattern_rule(p) for p in patterns))
                )
            header_keywords = tuple(
                (HeaderKind(kind_name), tuple(str(k) for k in keywords))
                for kind_name, keywords in (data.get("header_keywords") or {}).items()
            )
            return cls(
                language=language,
                substitutions=tuple(
                    SubstitutionRule(
                        pattern=s["pattern"],
                        replacement=s["replacement"],
                        ignore_case=bool(s.get("ignore_case", False)),
                        description=s.get("description", ""),
                    )
                    for s in data.get("substitutions") or []
                ),
                header_patterns=tuple(header_patterns),
                header_keywords=header_keywords,
                footnote_patterns=tuple(
                    _pattern_rule(p) for p in data.get("footnote_patterns") or []
                ),
                dialogue_patterns=tuple(
                    _pattern_rule(p) for p in data.get("dialogue_patterns") or []
                ),
                paragraph_indicators=tuple(
                    _pattern_rule(p) for p in data.get("paragraph_indicators") or []
                ),
                abbreviations=tuple(str(a).lower() for a in data.get("abbreviations") or []),
                spellcheck_language=data.get("spellcheck_language"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Malformed rule set '{language}': {e}") from e


def _pattern_rule(data: dict[str, Any]) -> PatternRule:
    return PatternRule(
        id=data["id"],
        pattern=data["pattern"],
        ignore_case=bool(data.get("ignore_case", False)),
    )


# =============================================================================
# BUILT-IN RULE SETS
# =============================================================================

# Shared footnote body patterns. Order matters: first match wins.
_FOOTNOTE_PATTERNS = (
    PatternRule("footnote_bracket", r"^\[(?P<ref>\d{1,3})\]\s*(?P<text>.+)$"),
    PatternRule("footnote_paren", r"^\((?P<ref>\d{1,3})\)\s*(?P<text>.+)$"),
    PatternRule("footnote_numbered", r"^(?P<ref>\d{1,3})\)\s*(?P<text>.+)$"),
    PatternRule("footnote_starred", r"^\*(?P<ref>\d{1,3})\s+(?P<text>.+)$"),
    PatternRule("footnote_superscript", r"^(?P<ref>[¹²³⁴⁵⁶⁷⁸⁹⁰]+)\s*(?P<text>.+)$"),
    PatternRule("footnote_letter", r"^\[(?P<ref>[a-zA-Z])\]\s*(?P<text>.+)$"),
    PatternRule("footnote_symbol", r"^(?P<ref>[*†‡]{1,3})(?P<text>\S.*)$"),
)

_DIALOGUE_PATTERNS = (
    PatternRule(
        "dialogue_with_note",
        r"^(?P<speaker>[A-ZÄÖÜ][a-zäöüß]+(?:\s+[A-ZÄÖÜ][a-zäöüß]+)?)\s*"
        r"\((?P<note>[^)]+)\)\s*:\s*(?P<text>.+)$",
    ),
    PatternRule(
        "dialogue",
        r"^(?P<speaker>[A-ZÄÖÜ][a-zäöüß]+(?:\s+[A-ZÄÖÜ][a-zäöüß]+)?)\s*:\s*(?P<text>.+)$",
    ),
)

_PARAGRAPH_INDICATORS = (
    PatternRule("numbered", r"^\s*\d+\.\s+"),
    PatternRule("lettered", r"^\s*[a-z]\)\s+"),
    PatternRule("starred", r"^\s*\*\s+"),
    PatternRule("dashed", r"^\s*[-–]\s+"),
    PatternRule("bullet", r"^\s*•\s+"),
)

_NUMBER = r"(?P<number>\d+|(?-i:[IVXLCDM]+))\b"
_TRAILING_TITLE = r"(?:\s*[:.]?\s*(?P<title>.+))?$"

_HEADER_PATTERNS = (
    (
        HeaderKind.CHAPTER,
        (
            PatternRule(
                "chapter_keyword",
                r"^(?P<keyword>Kapitel|Teil|Buch|Chapter|Part|Book)\s+" + _NUMBER + _TRAILING_TITLE,
                ignore_case=True,
            ),
            PatternRule(
                "chapter_roman",
                r"^(?P<number>[IVXLCDM]+)\.\s+(?P<title>[A-ZÄÖÜ][^.!?]{0,80})$",
            ),
        ),
    ),
    (
        HeaderKind.LECTURE,
        (
            PatternRule(
                "lecture_keyword",
                r"^(?P<keyword>Vortrag|Vorlesung|Lecture)\s+" + _NUMBER + _TRAILING_TITLE,
                ignore_case=True,
            ),
            PatternRule(
                "lecture_ordinal",
                r"^(?P<number>\d+)\.\s*(?P<keyword>Vortrag|Vorlesung|Lecture)" + _TRAILING_TITLE,
                ignore_case=True,
            ),
            PatternRule(
                "lecture_dated",
                r"^(?P<keyword>Vortrag|Vorlesung|Lecture)\s+vom\s+(?P<title>.+)$",
                ignore_case=True,
            ),
        ),
    ),
    (
        HeaderKind.SECTION,
        (
            PatternRule(
                "section_keyword",
                r"^(?P<keyword>Abschnitt|Unterkapitel|Section)\s+" + _NUMBER + _TRAILING_TITLE,
                ignore_case=True,
            ),
            # A title ending like a sentence is prose opening with a decimal
            PatternRule(
                "section_numbered",
                r"^(?P<parent>\d+)\.(?P<number>\d+)\.?\s+(?P<title>\S.{0,100}?)(?<![.!?])$",
            ),
        ),
    ),
    (
        HeaderKind.SUBSECTION,
        (
            PatternRule(
                "subsection_numbered",
                r"^(?P<grandparent>\d+)\.(?P<parent>\d+)\.(?P<number>\d+)\.?\s+"
                r"(?P<title>\S.{0,100}?)(?<![.!?])$",
            ),
        ),
    ),
)

_HEADER_KEYWORDS = (
    (HeaderKind.CHAPTER, ("kapitel", "chapter")),
    (HeaderKind.LECTURE, ("vortrag", "vorlesung", "lecture")),
    (HeaderKind.SECTION, ("abschnitt", "section")),
    (HeaderKind.SUBSECTION, ("unterabschnitt", "subsection")),
)


def _umlaut(pattern: str, replacement: str, description: str) -> SubstitutionRule:
    return SubstitutionRule(pattern, replacement, ignore_case=True, description=description)


def _eszett(pattern: str, replacement: str) -> SubstitutionRule:
    # Capital B stands in for ß; matching it case-insensitively would hit
    # real words (grobe, weib).
    return SubstitutionRule(pattern, replacement, description="B read for ß")


GERMAN_SUBSTITUTIONS = (
    # ö
    _umlaut(r"\bEr[o0]ffn", "Eröffn", "o read for ö"),
    _umlaut(r"\bk[o0]nnen\b", "können", "o read for ö"),
    _umlaut(r"\bm[o0]glich", "möglich", "o read for ö"),
    _umlaut(r"\bg[o0]ttlich", "göttlich", "o read for ö"),
    # ü
    _umlaut(r"\biiber\b", "über", "ii read for ü"),
    _umlaut(r"\bfiir\b", "für", "ii read for ü"),
    _umlaut(r"\bnatiirlich", "natürlich", "ii read for ü"),
    _umlaut(r"\bspriiren\b", "spüren", "ii read for ü"),
    _umlaut(r"\bmiissen\b", "müssen", "ii read for ü"),
    _umlaut(r"\bwiirde\b", "würde", "ii read for ü"),
    _umlaut(r"\bkiinstler", "künstler", "ii read for ü"),
    _umlaut(r"\bzuriick", "zurück", "ii read for ü"),
    _umlaut(r"\bRiickzug", "Rückzug", "ii read for ü"),
    _umlaut(r"\bHinzufligungen\b", "Hinzufügungen", "li read for ü"),
    _umlaut(r"\bVerfligungen\b", "Verfügungen", "li read for ü"),
    _umlaut(r"\bverfafit\b", "verfaßt", "fi read for ß"),
    # ä
    _umlaut(r"\berklaren\b", "erklären", "a read for ä"),
    _umlaut(r"\blanger\b(?=\s+(?:als|werden|machen))", "länger", "a read for ä"),
    # ß
    _eszett(r"\b([Dd])aB\b", r"\1aß"),
    _eszett(r"\b([Ww])eiB\b", r"\1eiß"),
    _eszett(r"\b([Gg])roBe\b", r"\1roße"),
    _eszett(r"\b([Gg])roBer\b", r"\1rößer"),
    _eszett(r"\b([Gg])roBte\b", r"\1rößte"),
    _eszett(r"\b([Mm])uBte\b", r"\1ußte"),
    _eszett(r"\b([Hh])eiBt\b", r"\1eißt"),
    _eszett(r"\b([Ss])chlieBlich\b", r"\1chließlich"),
    _eszett(r"\b([Rr])egelmaBig\b", r"\1egelmäßig"),
    # Z/I and h/c confusion
    SubstitutionRule(r"\bZdee\b", "Idee", description="Z read for I"),
    SubstitutionRule(r"\bSiche\b", "Siehe", description="c read for e"),
)


def _misspelling(wrong: str, right: str) -> SubstitutionRule:
    return SubstitutionRule(
        rf"\b{wrong}\b", right, ignore_case=True, description=f"{wrong} -> {right}"
    )


# Only misreadings that are not themselves English words
ENGLISH_SUBSTITUTIONS = (
    _misspelling("tbe", "the"),
    _misspelling("tlie", "the"),
    _misspelling("tbat", "that"),
    _misspelling("tbis", "this"),
    _misspelling("wbich", "which"),
    _misspelling("wliich", "which"),
    _misspelling("witb", "with"),
    _misspelling("bccn", "been"),
    _misspelling("bcing", "being"),
    _misspelling("thcir", "their"),
    _misspelling("wonld", "would"),
    _misspelling("conld", "could"),
    _misspelling("shonld", "should"),
    _misspelling("rnorning", "morning"),
)

GERMAN_ABBREVIATIONS = (
    "z. b.", "z.b.", "u. a.", "u.a.", "d. h.", "d.h.", "u. s. w.", "u.s.w.",
    "usw.", "etc.", "bzw.", "ca.", "vgl.", "ggf.", "evtl.", "inkl.", "exkl.",
    "zzgl.", "bzgl.", "gem.", "nr.", "abs.", "art.", "bd.", "hrsg.", "verf.",
    "aufl.", "f.", "ff.", "anm.", "orig.", "übers.", "bearb.", "hg.", "kap.",
    "fig.", "tab.", "taf.", "dgl.", "desgl.", "ebd.", "o.ä.", "u.ä.", "u.dgl.",
    "i.d.r.", "z.zt.", "u.u.", "u.v.a.", "u.v.m.", "sog.", "insb.", "insbes.",
    "allg.", "entspr.", "ungef.", "max.", "min.", "mögl.", "s.", "dr.", "prof.",
)

ENGLISH_ABBREVIATIONS = (
    "mr.", "mrs.", "ms.", "dr.", "prof.", "st.", "e.g.", "i.e.", "etc.", "vs.",
    "cf.", "vol.", "vols.", "p.", "pp.", "ch.", "no.", "fig.", "ed.", "eds.",
    "trans.", "ibid.", "op.", "cit.", "ca.",
)


def default_rule_sets() -> dict[str, RuleSet]:
    """Return the built-in rule sets keyed by language code."""
    shared = dict(
        header_patterns=_HEADER_PATTERNS,
        header_keywords=_HEADER_KEYWORDS,
        footnote_patterns=_FOOTNOTE_PATTERNS,
        dialogue_patterns=_DIALOGUE_PATTERNS,
        paragraph_indicators=_PARAGRAPH_INDICATORS,
    )
    return {
        "de": RuleSet(
            language="de",
            substitutions=GERMAN_SUBSTITUTIONS,
            abbreviations=GERMAN_ABBREVIATIONS,
            spellcheck_language="de",
            **shared,
        ),
        "en": RuleSet(
            language="en",
            substitutions=ENGLISH_SUBSTITUTIONS,
            abbreviations=ENGLISH_ABBREVIATIONS,
            spellcheck_language="en",
            **shared,
        ),
    }


# =============================================================================
# LOADING AND LOOKUP
# =============================================================================


def load_rule_sets(
    path: str | Path,
    base: dict[str, RuleSet] | None = None,
) -> dict[str, RuleSet]:
    """
    Load rule sets from a YAML file.

    The file maps language codes to rule set sections (see
    ``RuleSet.to_dict`` for the layout). Sections replace same-language
    entries of ``base``, which defaults to the built-in sets.

    Raises:
        ConfigurationError: If the file cannot be read or is malformed.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read rule file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in rule file {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Rule file {path} must map language codes to rule sets")

    rule_sets = dict(default_rule_sets() if base is None else base)
    for language, section in data.items():
        rule_sets[str(language)] = RuleSet.from_dict(str(language), section)
        logger.debug("Loaded rule set '%s' from %s", language, path)

    logger.info("Loaded %d rule set(s) from %s", len(data), path)
    return rule_sets


def get_rule_set(rule_sets: dict[str, RuleSet], language: str) -> RuleSet:
    """
    Look up the rule set for a language.

    Raises:
        ConfigurationError: If no rule set is configured for ``language``.
            There is no fallback to another language.
    """
    try:
        return rule_sets[language]
    except KeyError:
        available = ", ".join(sorted(rule_sets)) or "none"
        raise ConfigurationError(
            f"No rule set configured for language '{language}' (available: {available})"
        ) from None


__all__ = [
    "PatternRule",
    "SubstitutionRule",
    "RuleSet",
    "GERMAN_SUBSTITUTIONS",
    "ENGLISH_SUBSTITUTIONS",
    "GERMAN_ABBREVIATIONS",
    "ENGLISH_ABBREVIATIONS",
    "default_rule_sets",
    "load_rule_sets",
    "get_rule_set",
]
