"""Remove repeated sections and repeated sentences from freeform model text.

Models sometimes restate their conclusion, or echo a whole section, when they
run long. Both passes keep the first occurrence in document order.
"""

from __future__ import annotations

import re

from src.analysis.config import DEFAULT_CONFIG, NormalizerConfig

# Any whitespace run holding a newline, or spaces after terminal punctuation.
_SENTENCE_BREAK_RE = re.compile(r"(\s*\n\s*|(?<=[.!?؟])[ \t]+)")
_KEY_NOISE_RE = re.compile(r"[*:\s]+")


def _heading_key(line: str, config: NormalizerConfig) -> tuple[str, bool] | None:
    matched = config.match_section(line)
    if matched is None:
        return None
    section, rest = matched
    if section == config.conclusion_section:
        return section, True
    return f"{section}:{_KEY_NOISE_RE.sub('', rest)}", False


def dedupe_sections(text: str, config: NormalizerConfig = DEFAULT_CONFIG) -> str:
    """Drop repeated section headings; a repeated conclusion loses its body too."""
    seen: set[str] = set()
    kept: list[str] = []
    suppressing = False

    for line in text.split("\n"):
        stripped = line.strip()
        if not stripped:
            if not suppressing:
                kept.append("")
            continue

        heading = _heading_key(stripped, config)
        if heading is None:
            if not suppressing:
                kept.append(line)
            continue

        key, is_conclusion = heading
        suppressing = False
        if key in seen:
            suppressing = is_conclusion
            continue
        seen.add(key)
        kept.append(line)

    return "\n".join(kept)


def _sentence_key(sentence: str) -> str:
    return " ".join(sentence.casefold().split())


def _stronger_break(first: str, second: str) -> str:
    return first if first.count("\n") >= second.count("\n") else second


def dedupe_sentences(text: str, config: NormalizerConfig = DEFAULT_CONFIG) -> str:
    """Drop repeated sentences unless that would remove too much of the text."""
    parts = _SENTENCE_BREAK_RE.split(text)
    sentences = parts[0::2]
    breaks = parts[1::2]

    seen: set[str] = set()
    dropped: set[int] = set()
    total = 0
    for index, sentence in enumerate(sentences):
        key = _sentence_key(sentence)
        if not key:
            continue
        total += 1
        if len(key) < config.sentence_dedup_min_chars:
            continue
        if key in seen:
            dropped.add(index)
        else:
            seen.add(key)

    if not dropped or len(dropped) >= total * config.sentence_drop_ceiling:
        return text

    out: list[str] = []
    pending = ""
    for index, sentence in enumerate(sentences):
        following = breaks[index] if index < len(breaks) else ""
        if index in dropped:
            pending = _stronger_break(pending, following)
            continue
        out.append(pending)
        out.append(sentence)
        pending = following
    out.append(pending)
    return "".join(out)


def clean(text: str, config: NormalizerConfig = DEFAULT_CONFIG) -> str:
    """Run both passes until the text stops changing.

    A dropped sentence can pull a repeated heading to the start of its line,
    so a single round is not always stable. Each round only removes text.
    """
    if not text:
        return ""
    result = text.replace("\r\n", "\n").replace("\r", "\n")
    while True:
        cleaned = dedupe_sentences(dedupe_sections(result, config), config).rstrip()
        if cleaned == result:
            return cleaned
        result = cleaned
