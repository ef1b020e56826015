"""
Fragment stitching and hyphenation rejoining.

Joins page and line fragments into continuous text. A fragment ending in
a hyphen followed by a fragment starting with a lowercase letter is a
word split across a break ("Philo-" + "sophie"); it is rejoined without
the hyphen. Every other boundary gets a separator.

The lowercase test uses ``str.islower`` so it covers umlauts, ß and
other diacritics, not only ASCII.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


# =============================================================================
# DATA STRUCTURES
# =============================================================================


@dataclass
class StitchStats:
    """Statistics for a stitching run."""

    fragments: int = 0  # Non-empty fragments consumed
    hyphens_joined: int = 0
    skipped: int = 0  # Empty or malformed fragments


def _continues_word(head: str, tail: str) -> bool:
    """True when ``head`` ends with a hyphen and ``tail`` starts lowercase."""
    if not head.endswith("-") or not tail:
        return False
    first = tail[0]
    return first.isalpha() and first.islower()


# =============================================================================
# TEXT STITCHER
# =============================================================================


class TextStitcher:
    """
    Joins text fragments, resolving hyphenation breaks.

    Example:
        >>> stitcher = TextStitcher()
        >>> stitcher.stitch(["Die Philo-", "sophie der", "Freiheit"])
        'Die Philosophie der Freiheit'
        >>> stitcher.stitch(["Nord-", "Amerika"])
        'Nord- Amerika'
    """

    def __init__(self, separator: str = " ", logger: logging.Logger | None = None):
        """
        Initialize stitcher.

        Args:
            separator: Inserted between fragments that are not a word break.
            logger: Logger to use; defaults to the module logger.
        """
        self.separator = separator
        self.logger = logger or logging.getLogger(__name__)

    def stitch(self, fragments: Iterable[str]) -> str:
        """Join fragments into one string."""
        text, _stats = self.stitch_with_stats(fragments)
        return text

    def stitch_with_stats(self, fragments: Iterable[str]) -> tuple[str, StitchStats]:
        """
        Join fragments and report what was done.

        Empty (or whitespace-only) fragments are skipped. Non-string
        fragments are malformed input: skipped with a warning.

        Returns:
            Tuple of (stitched_text, statistics).
        """
        stats = StitchStats()
        result = ""

        for position, fragment in enumerate(fragments):
            if not isinstance(fragment, str):
                self.logger.warning(
                    "Skipping non-text fragment at position %d (%s)",
                    position,
                    type(fragment).__name__,
                )
                stats.skipped += 1
                continue
            if not fragment.strip():
                stats.skipped += 1
                continue

            stats.fragments += 1
            if not result:
                result = fragment
            elif _continues_word(result, fragment):
                result = result[:-1] + fragment
                stats.hyphens_joined += 1
            else:
                result = result + self.separator + fragment

        self.logger.debug(
            "Stitched %d fragments (%d hyphen joins, %d skipped)",
            stats.fragments,
            stats.hyphens_joined,
            stats.skipped,
        )
        return result, stats

    def rejoin_lines(self, text: str) -> tuple[str, StitchStats]:
        """
        Rejoin words hyphenated across line breaks within a page.

        Only breaks where a letter precedes the hyphen are considered, so
        dash bullets and rules are left alone. Blank lines are kept.

        Returns:
            Tuple of (processed_text, statistics).
        """
        stats = StitchStats()
        lines: list[str] = []

        for line in text.split("\n"):
            stats.fragments += 1
            if lines:
                previous = lines[-1].rstrip()
                continuation = line.lstrip()
                if (
                    len(previous) > 1
                    and previous[-2].isalpha()
                    and _continues_word(previous, continuation)
                ):
                    lines[-1] = previous[:-1] + continuation
                    stats.hyphens_joined += 1
                    continue
            lines.append(line)

        if stats.hyphens_joined:
            self.logger.debug("Rejoined %d line-break hyphenations", stats.hyphens_joined)
        return "\n".join(lines), stats
