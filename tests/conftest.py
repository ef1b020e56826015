"""
Pytest configuration and fixtures for bookrecon tests.
"""

import pytest


@pytest.fixture(scope="session")
def rule_sets():
    """Return the built-in rule sets."""
    from bookrecon.rules import default_rule_sets

    return default_rule_sets()


@pytest.fixture(scope="session")
def de_rules(rule_sets):
    """Return the German rule set."""
    return rule_sets["de"]


@pytest.fixture(scope="session")
def en_rules(rule_sets):
    """Return the English rule set."""
    return rule_sets["en"]


@pytest.fixture
def make_symbol():
    """Build a RecognizedSymbol from (text, x0, y0, width, height)."""
    from bookrecon.models import BoundingBox, RecognizedSymbol

    def _make(text, x0, y0, width, height, confidence=0.95, is_superscript=False):
        return RecognizedSymbol(
            text=text,
            confidence=confidence,
            bbox=BoundingBox(x0, y0, x0 + width, y0 + height),
            is_superscript=is_superscript,
        )

    return _make
