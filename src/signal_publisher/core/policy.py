"""Confidence arithmetic and classification policy table.

Every stage that touches confidence goes through ``clamp`` and the
constants below so priors and adjustments live in one place.
"""

import re

from signal_publisher.core.entities import Category, SignalKind

CONFIDENCE_FLOOR = 0.3
CONFIDENCE_CEILING = 1.0

# Prior confidence assigned by the signal source, per kind.
PRIORS: dict[SignalKind, float] = {
    SignalKind.COMMIT: 0.7,
    SignalKind.DOCUMENT_UPDATE: 0.8,
    SignalKind.ISSUE: 0.6,
    SignalKind.OTHER: 0.5,
}

# (pattern, category, adjustment), first match wins.
COMMIT_MESSAGE_RULES: list[tuple[re.Pattern[str], Category, float]] = [
    (re.compile(r"\b(feat|feature|add|implement)\b", re.I), Category.CODE, 0.1),
    (re.compile(r"\b(docs?|readme|documentation)\b", re.I), Category.DOCS, 0.15),
    (re.compile(r"\b(fix|bug|patch|hotfix)\b", re.I), Category.CODE, 0.05),
    (re.compile(r"\b(config|setup|build|ci|cd)\b", re.I), Category.CONFIG, -0.05),
    (re.compile(r"\b(refactor|cleanup|style)\b", re.I), Category.CODE, 0.0),
]

DOCUMENT_UPDATE_ADJUSTMENT = 0.1

# (label set, category, adjustment), first match wins.
ISSUE_LABEL_RULES: list[tuple[frozenset[str], Category, float]] = [
    (frozenset({"bug", "fix"}), Category.CODE, 0.05),
    (frozenset({"documentation", "docs"}), Category.DOCS, 0.1),
    (frozenset({"feature", "enhancement"}), Category.CODE, 0.1),
]

# Used only when no label matched.
ISSUE_TITLE_RULES: list[tuple[re.Pattern[str], Category, float]] = [
    (re.compile(r"\b(bug|error|broken|crash)\b", re.I), Category.CODE, 0.0),
    (re.compile(r"\b(docs?|readme|documentation)\b", re.I), Category.DOCS, 0.05),
    (re.compile(r"\b(feature|enhancement|improve)\b", re.I), Category.CODE, 0.05),
]

# Subtracted when every context lookup for a signal failed outright.
ENRICHMENT_FAILURE_PENALTY = 0.2

DEFAULT_CONFIDENCE_THRESHOLD = 0.5

# Upper bound on post text, shared by generation cleanup and publish validation.
MAX_POST_LENGTH = 3000


def clamp(value: float, lo: float = CONFIDENCE_FLOOR, hi: float = CONFIDENCE_CEILING) -> float:
    """Bound value to [lo, hi]."""
    return max(lo, min(hi, value))
