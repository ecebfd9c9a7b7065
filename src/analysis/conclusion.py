"""Locate the final diagnostic statement near the end of freeform text.

Clinical narratives state findings first and the verdict last, so the search
runs backwards over the trailing sentences; scanning forwards would latch onto
early keyword mentions such as disclaimers.
"""

from __future__ import annotations

import re

from src.analysis.config import DEFAULT_CONFIG, NormalizerConfig
from src.analysis.models import ConclusionSplit

_MARKDOWN_HEADING_RE = re.compile(r"#{1,6}\s*")
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?؟])\s+")
_ELLIPSIS = "..."


def _mentions(sentence: str, keywords: tuple[str, ...]) -> bool:
    folded = sentence.casefold()
    return any(keyword.casefold() in folded for keyword in keywords)


def split_sentences(text: str, config: NormalizerConfig = DEFAULT_CONFIG) -> list[str]:
    sentences = (s.strip() for s in _SENTENCE_SPLIT_RE.split(text))
    return [s for s in sentences if len(s) >= config.sentence_min_chars]


def _bounded(sentences: list[str], config: NormalizerConfig) -> str:
    joined = " ".join(sentences)
    if len(joined) > config.summary_max_chars:
        return joined[:config.summary_max_chars].strip() + _ELLIPSIS
    return joined


def _find_summary(sentences: list[str], config: NormalizerConfig) -> str:
    window = range(len(sentences) - 1, max(0, len(sentences) - config.conclusion_window) - 1, -1)

    for i in window:
        if _mentions(sentences[i], config.diagnosis_keywords):
            return _bounded(sentences[i:i + 3], config)

    for i in window:
        sentence = sentences[i]
        if _mentions(sentence, config.status_keywords) and _mentions(sentence, config.stage_keywords):
            return _bounded(sentences[i:i + 2], config)

    health_terms = config.status_keywords + config.presence_keywords + config.stage_keywords
    for i in window:
        sentence = sentences[i]
        if not _mentions(sentence, health_terms):
            continue
        if _mentions(sentence, config.status_keywords) or _mentions(sentence, config.stage_keywords):
            return _bounded(sentences[i:i + 3], config)

    return _bounded(sentences[-2:], config)


def _folded_with_offsets(text: str) -> tuple[str, list[int]]:
    """Lowercase ``text`` without ``**`` markers and with whitespace runs collapsed.

    Returns the folded string and, for each of its characters, the index of
    the source character it came from.
    """
    chars: list[str] = []
    offsets: list[int] = []
    i = 0
    while i < len(text):
        if text.startswith("**", i):
            i += 2
            continue
        ch = text[i]
        if ch.isspace():
            if chars and chars[-1] != " ":
                chars.append(" ")
                offsets.append(i)
        else:
            lowered = ch.lower()
            chars.extend(lowered)
            offsets.extend([i] * len(lowered))
        i += 1
    return "".join(chars), offsets


def _remainder(clean_text: str, summary: str, sentences: list[str], config: NormalizerConfig) -> str:
    needle, _ = _folded_with_offsets(
        _MARKDOWN_HEADING_RE.sub("", summary.removesuffix(_ELLIPSIS))
    )
    needle = needle.strip()
    haystack, offsets = _folded_with_offsets(clean_text)

    if needle:
        index = haystack.rfind(needle)
        if index != -1 and index > len(haystack) * config.summary_min_position:
            return clean_text[:offsets[index]].strip()

    if len(sentences) > 2:
        return " ".join(sentences[:-2])
    return ""


def extract(text: str, config: NormalizerConfig = DEFAULT_CONFIG) -> ConclusionSplit:
    """Split freeform text into its conclusion and everything before it."""
    if not text:
        return ConclusionSplit()

    clean_text = _MARKDOWN_HEADING_RE.sub("", text).strip()
    sentences = split_sentences(clean_text, config)

    if sentences:
        summary = _find_summary(sentences, config)
    else:
        # Nothing sentence-shaped: show the raw tail as-is.
        summary = text.strip()[-config.fallback_tail_chars:].strip()

    return ConclusionSplit(
        summary=summary,
        remainder=_remainder(clean_text, summary, sentences, config),
    )
