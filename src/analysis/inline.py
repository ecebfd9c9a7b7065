"""Inline emphasis handling for model text.

Models mix real ``**bold**`` pairs with stray single asterisks left over from
half-applied list markup. Doubled markers are shielded behind a private-use
placeholder while strays are removed, so the cleanup can never eat one side of
a legitimate pair.
"""

from __future__ import annotations

import re

from src.analysis.models import Emphasis, Plain, Span

_DOUBLE_MARKER = "**"
_PRIVATE_USE = range(0xE000, 0xF900)

_INNER_STRAY_RE = re.compile(r"\s+\*(?=\s)")
_TRAILING_STRAY_RE = re.compile(r"\s+\*$")
_LEADING_STRAY_RE = re.compile(r"^\*(?:\s+|$)")
_WHITESPACE_RE = re.compile(r"\s+")
EMPHASIS_RE = re.compile(r"\*\*([^*]+?)\*\*")


def strip_stray_markers(text: str, edges: bool = True) -> str:
    """Remove lone ``*`` markers; ``edges=False`` keeps a leading/trailing one."""
    # Private-use code point not already present in the text.
    placeholder = next(chr(c) for c in _PRIVATE_USE if chr(c) not in text)
    guarded = text.replace(_DOUBLE_MARKER, placeholder)
    guarded = _INNER_STRAY_RE.sub("", guarded)
    if edges:
        guarded = _TRAILING_STRAY_RE.sub("", guarded)
        guarded = _LEADING_STRAY_RE.sub("", guarded)
    return guarded.replace(placeholder, _DOUBLE_MARKER)


def normalize_inline(text: str) -> str:
    """Cleaned form of a leaf string: strays removed, whitespace collapsed."""
    if not text:
        return ""
    cleaned = strip_stray_markers(text)
    return _WHITESPACE_RE.sub(" ", cleaned).strip()


def plain_text(text: str) -> str:
    """Cleaned text with emphasis pairs unwrapped; equals the joined span texts."""
    return EMPHASIS_RE.sub(r"\1", normalize_inline(text))


def tokenize(text: str) -> list[Span]:
    cleaned = normalize_inline(text)
    if not cleaned:
        return []

    spans: list[Span] = []
    cursor = 0
    for match in EMPHASIS_RE.finditer(cleaned):
        if match.start() > cursor:
            spans.append(Plain(text=cleaned[cursor:match.start()]))
        spans.append(Emphasis(text=match.group(1)))
        cursor = match.end()

    if cursor < len(cleaned):
        spans.append(Plain(text=cleaned[cursor:]))
    return spans
