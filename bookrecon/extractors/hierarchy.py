"""
Header hierarchy building.

Nests flat, line-ordered headers into a tree by level and summarizes the
hierarchy: per-kind counts, numbering style and numbering consistency.

Only purely numeric number sequences are gap-checked. Roman and
alphabetic sequences are accepted as they are.
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from bookrecon.models import (
    HeaderKind,
    NumberingStyle,
    StructureHeader,
    StructureHierarchy,
)

NUMERIC_PATTERN = re.compile(r"^[0-9]+$")
ROMAN_PATTERN = re.compile(r"^[IVXLCDM]+$", re.IGNORECASE)
ALPHABETIC_PATTERN = re.compile(r"^[A-Za-z]$")


def numbering_style_of(number: str) -> NumberingStyle | None:
    """Classify one header number token, or None if unrecognized."""
    if NUMERIC_PATTERN.match(number):
        return NumberingStyle.NUMERIC
    if ROMAN_PATTERN.match(number):
        return NumberingStyle.ROMAN
    if ALPHABETIC_PATTERN.match(number):
        return NumberingStyle.ALPHABETIC
    return None


def determine_numbering_style(headers: Iterable[StructureHeader]) -> NumberingStyle:
    """Numbering style over all numbered headers ("mixed" if more than one)."""
    styles = set()
    for header in headers:
        if header.number:
            style = numbering_style_of(header.number)
            if style is not None:
                styles.add(style)

    if not styles:
        return NumberingStyle.NUMERIC
    if len(styles) == 1:
        return styles.pop()
    return NumberingStyle.MIXED


def check_numbering_consistency(headers: Iterable[StructureHeader]) -> bool:
    """
    Check numbering per header kind.

    A kind with more than one header is inconsistent when any header lacks
    a number, or when its numbers are all numeric and the sorted values are not
    consecutive. A repeated number breaks the sequence.
    """
    groups: dict[HeaderKind, list[StructureHeader]] = {}
    for header in headers:
        groups.setdefault(header.kind, []).append(header)

    for group in groups.values():
        if len(group) <= 1:
            continue

        numbers = [h.number for h in group if h.number]
        if len(numbers) != len(group):
            return False

        if all(NUMERIC_PATTERN.match(n) for n in numbers):
            values = sorted(int(n) for n in numbers)
            for previous, current in zip(values, values[1:]):
                if current != previous + 1:
                    return False

    return True


@dataclass
class _Node:
    header: StructureHeader
    children: list[_Node] = field(default_factory=list)

    def freeze(self) -> StructureHeader:
        return dataclasses.replace(
            self.header, children=tuple(child.freeze() for child in self.children)
        )


def nest_headers(headers: Iterable[StructureHeader]) -> tuple[StructureHeader, ...]:
    """
    Nest headers by level.

    Each header becomes a child of the nearest preceding header with a
    strictly smaller level, or a root when there is none.

    Returns:
        Root headers, children ordered by line number.
    """
    roots: list[_Node] = []
    stack: list[_Node] = []

    for header in sorted(headers, key=lambda h: h.line_number):
        node = _Node(dataclasses.replace(header, children=()))
        while stack and stack[-1].header.level >= header.level:
            stack.pop()
        if stack:
            stack[-1].children.append(node)
        else:
            roots.append(node)
        stack.append(node)

    return tuple(node.freeze() for node in roots)


def build_hierarchy(headers: list[StructureHeader]) -> StructureHierarchy:
    """Summarize a flat header list."""
    counts = {kind: 0 for kind in HeaderKind}
    for header in headers:
        counts[header.kind] += 1

    return StructureHierarchy(
        max_level=max((h.level for h in headers), default=0),
        total_headers=len(headers),
        chapter_count=counts[HeaderKind.CHAPTER],
        lecture_count=counts[HeaderKind.LECTURE],
        section_count=counts[HeaderKind.SECTION],
        subsection_count=counts[HeaderKind.SUBSECTION],
        numbering_style=determine_numbering_style(headers),
        has_consistent_numbering=check_numbering_consistency(headers),
    )
