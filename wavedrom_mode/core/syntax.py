"""Token classification, completion, and highlighting for WaveJSON.

WHY: WaveJSON is JSON-like, so generic JSON highlighting covers strings
and numbers, but the dialect's own vocabulary (signal/edge/config
sections and their attribute names) deserves its own categories, and the
same vocabulary is what completion should offer.

HOW: The fixed vocabularies are folded into one dict (TOKEN_CATEGORIES)
at import time, so classify() is a single lookup. tokenize() scans text
with one precompiled pattern whose identifier branch matches whole
symbols only, which is what keeps "signals" from being read as "signal".
completion_at_point() and highlight() are thin layers over those two.

RULES:
- Vocabularies are fixed and must match the renderer's key names exactly
- Every vocabulary token maps to exactly one Category
- Tokens outside every vocabulary classify as None (plain JSON)
- Identifier matching binds on symbol boundaries, never substrings
- Everything here is pure: no state, no I/O
"""

from __future__ import annotations

import enum
import re
from typing import Iterator, Mapping, NamedTuple, Optional

# ---------------------------------------------------------------------------
# Vocabularies
# ---------------------------------------------------------------------------


class Category(str, enum.Enum):
    """Highlight category of a WaveJSON token."""

    KEYWORD = "keyword"
    SIGNAL_ATTRIBUTE = "signal_attribute"
    CONFIG_ATTRIBUTE = "config_attribute"
    HEAD_FOOT_ATTRIBUTE = "head_foot_attribute"
    BRACKET = "bracket"
    PUNCTUATION = "punctuation"


KEYWORDS = ("signal", "edge", "config", "head", "foot", "assign")
SIGNAL_ATTRIBUTES = ("name", "wave", "data", "period", "phase", "node")
CONFIG_ATTRIBUTES = ("hscale", "skin")
HEAD_FOOT_ATTRIBUTES = ("tick", "tock", "text", "every")
BRACKETS = ("[", "]", "{", "}")
PUNCTUATION = ("'", ",", ":")

VOCABULARIES: dict[Category, tuple[str, ...]] = {
    Category.KEYWORD: KEYWORDS,
    Category.SIGNAL_ATTRIBUTE: SIGNAL_ATTRIBUTES,
    Category.CONFIG_ATTRIBUTE: CONFIG_ATTRIBUTES,
    Category.HEAD_FOOT_ATTRIBUTE: HEAD_FOOT_ATTRIBUTES,
    Category.BRACKET: BRACKETS,
    Category.PUNCTUATION: PUNCTUATION,
}

TOKEN_CATEGORIES: dict[str, Category] = {
    token: category
    for category, tokens in VOCABULARIES.items()
    for token in tokens
}

IDENTIFIERS: frozenset[str] = frozenset(
    KEYWORDS + SIGNAL_ATTRIBUTES + CONFIG_ATTRIBUTES + HEAD_FOOT_ATTRIBUTES
)
"""Every completable identifier (keywords plus the three attribute classes)."""

_SYMBOL = r"\w+"
_TOKEN_RE = re.compile(
    r"(?P<symbol>{})|(?P<delimiter>[\[\]{{}}',:])".format(_SYMBOL)
)
_SYMBOL_RE = re.compile(_SYMBOL)


class TokenSpan(NamedTuple):
    """One lexical token found by tokenize()."""

    start: int
    end: int
    text: str
    category: Optional[Category]


def classify(token: str) -> Optional[Category]:
    """Return the highlight category of a token, or None for plain JSON."""
    return TOKEN_CATEGORIES.get(token)


def tokenize(text: str) -> Iterator[TokenSpan]:
    """Yield every symbol and delimiter in text with its category.

    Whitespace and characters that are neither symbol constituents nor
    vocabulary delimiters (double quotes, dots, pipes in wave strings)
    are skipped. Symbols are matched greedily, so a symbol is only ever
    classified as a whole.
    """
    for match in _TOKEN_RE.finditer(text):
        token = match.group()
        yield TokenSpan(match.start(), match.end(), token, classify(token))


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------


def completion_candidates(prefix: str, excluding: str) -> set[str]:
    """Identifiers to offer at a completion point.

    WHY: The editor's completion machinery does its own prefix matching
    and ordering; it only needs the table.

    RULES:
    - Returns keywords and all attribute names, minus ``excluding``
      (the token already under the cursor)
    - ``prefix`` is part of the completion-table call shape but no
      filtering happens here; use filter_candidates() for that
    - No ranking
    """
    return set(IDENTIFIERS - {excluding})


def filter_candidates(candidates: set[str], prefix: str) -> list[str]:
    """Sorted candidates starting with prefix."""
    return sorted(c for c in candidates if c.startswith(prefix))


def symbol_at(text: str, offset: int) -> Optional[tuple[int, int]]:
    """Bounds of the symbol at or immediately before offset, if any."""
    if offset < 0 or offset > len(text):
        raise ValueError("offset {} outside text of length {}".format(offset, len(text)))
    for match in _SYMBOL_RE.finditer(text):
        if match.start() <= offset <= match.end():
            return match.start(), match.end()
        if match.start() > offset:
            break
    return None


def completion_at_point(text: str, offset: int) -> tuple[int, int, set[str]]:
    """Completion data for a cursor position.

    Returns ``(start, end, candidates)``: the region that a chosen
    candidate replaces and the candidate set. With no symbol at point
    the region is empty and every identifier is offered.
    """
    bounds = symbol_at(text, offset)
    if bounds is None:
        return offset, offset, completion_candidates("", "")
    start, end = bounds
    return start, end, completion_candidates(text[start:offset], text[start:end])


# ---------------------------------------------------------------------------
# Terminal highlighting
# ---------------------------------------------------------------------------

FACES: dict[Category, str] = {
    Category.KEYWORD: "1;34",
    Category.SIGNAL_ATTRIBUTE: "32",
    Category.CONFIG_ATTRIBUTE: "35",
    Category.HEAD_FOOT_ATTRIBUTE: "36",
    Category.BRACKET: "1",
    Category.PUNCTUATION: "2",
}
"""ANSI SGR parameters per category."""


def highlight(text: str, faces: Mapping[Category, str] = FACES) -> str:
    """Return text with each classified token wrapped in ANSI colour codes."""
    pieces: list[str] = []
    cursor = 0
    for span in tokenize(text):
        face = faces.get(span.category) if span.category else None
        if face is None:
            continue
        pieces.append(text[cursor:span.start])
        pieces.append("\x1b[{}m{}\x1b[0m".format(face, span.text))
        cursor = span.end
    pieces.append(text[cursor:])
    return "".join(pieces)
