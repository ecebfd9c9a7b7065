"""Line classifier turning cleaned freeform text into typed blocks.

Model output mixes markdown-like conventions inconsistently, so this is a
best-effort classifier: every line with real content lands in some block and
anything unrecognised falls back to a paragraph.
"""

from __future__ import annotations

import re

from src.analysis.config import DEFAULT_CONFIG, NormalizerConfig
from src.analysis.inline import strip_stray_markers
from src.analysis.models import (
    Blank,
    Block,
    BulletItem,
    Heading,
    HeadingWithBody,
    LabeledParagraph,
    NumberedItem,
    Paragraph,
)

_NUMBERED_RE = re.compile(r"^(\d+)\.(?!\d)\s*(.+)$")
_DASH_BULLET_RE = re.compile(r"^[-•]\s*(.+)$")
_HEADING_MARK_RE = re.compile(r"^#+\s*")
_TRAILING_PAREN_RE = re.compile(r"\s*\([^)]*\)\s*$")
_HAS_CONTENT_RE = re.compile(r"[^\W_]")
# Colons inside clock times like 10:30 never split a line.
_COLON_RE = re.compile(r"(?<!\d):|:(?!\d)")
# A label starts the line or follows terminal punctuation and ends at a colon
# that is not part of a clock time.
_LABEL_RE = re.compile(r"(?:^|(?<=[.;!?؛،]))\s*([^\s.:;!?؛،][^.:;!?؛،]*?)\s*:(?!\d)")


def _has_content(text: str) -> bool:
    return bool(_HAS_CONTENT_RE.search(text))


def _colons(line: str) -> list[int]:
    return [m.start() for m in _COLON_RE.finditer(line)]


def _split_at(line: str, colon: int) -> tuple[str, str]:
    """Split at `colon`, moving a closing ``**`` that trails it back to the left side."""
    left, right = line[:colon], line[colon + 1:].strip()
    if left.count("**") % 2 and right.startswith("**"):
        left, right = left + "**", right[2:].strip()
    return left, strip_stray_markers(right)


def _heading_text(text: str) -> str:
    text = _HEADING_MARK_RE.sub("", text).replace("**", "").strip()
    return _TRAILING_PAREN_RE.sub("", text).strip()


class _Segmenter:
    def __init__(self, config: NormalizerConfig):
        self.config = config
        self.conclusion_seen = False
        self.blocks: list[Block] = []

    def emit(self, block: Block) -> None:
        self.blocks.append(block)

    def feed(self, raw_line: str) -> None:
        line = raw_line.strip()
        if not line:
            self.emit(Blank())
            return
        # Mid-line strays go first; a leading one may still mark a bullet.
        line = strip_stray_markers(line, edges=False)

        for rule in (
            self._numbered,
            self._star_bullet,
            self._dash_bullet,
            self._heading,
            self._labeled_chunks,
            self._single_label,
        ):
            if rule(line):
                return
        self._paragraph(line)

    def _numbered(self, line: str) -> bool:
        match = _NUMBERED_RE.match(line)
        if not match:
            return False
        text = match.group(2).strip()
        if _has_content(text):
            self.emit(NumberedItem(index=int(match.group(1)), text=text))
        return True

    def _star_bullet(self, line: str) -> bool:
        if not line.startswith("*") or line.startswith("**"):
            return False
        text = strip_stray_markers(line[1:].strip())
        if _has_content(text):
            self.emit(BulletItem(text=text))
        return True

    def _dash_bullet(self, line: str) -> bool:
        match = _DASH_BULLET_RE.match(line)
        if not match:
            return False
        text = strip_stray_markers(match.group(1).strip())
        if _has_content(text):
            self.emit(BulletItem(text=text))
        return True

    def _heading(self, line: str) -> bool:
        colons = _colons(line)
        colon = colons[0] if colons else -1
        has_split = 0 < colon < self.config.heading_colon_max
        if not has_split and not line.startswith("#"):
            return False

        # A long left side is still a heading; its body then follows as a paragraph.
        detached = False
        if has_split:
            left, body = _split_at(line, colon)
            heading = _heading_text(left)
            detached = len(heading) >= self.config.label_max_chars
        else:
            heading, body = _heading_text(line), ""

        if not _has_content(heading):
            if _has_content(body):
                self.emit(Paragraph(text=body))
            return True

        if self.config.is_conclusion(heading):
            if self.conclusion_seen:
                return True
            self.conclusion_seen = True

        if not _has_content(body):
            self.emit(Heading(text=heading))
        elif detached:
            self.emit(Heading(text=heading))
            self.emit(Paragraph(text=body))
        else:
            self.emit(HeadingWithBody(heading=heading, body=body))
        return True

    def _labeled_chunks(self, line: str) -> bool:
        if len(line) <= self.config.multi_label_min_line or len(_colons(line)) < 2:
            return False

        labels = [
            m for m in _LABEL_RE.finditer(line)
            if len(m.group(1).strip()) < self.config.label_max_chars
        ]
        chunks: list[Block] = []
        lead = line[:labels[0].start()].strip() if labels else ""
        if _has_content(lead):
            chunks.append(Paragraph(text=strip_stray_markers(lead)))

        recovered = 0
        for position, match in enumerate(labels):
            end = labels[position + 1].start() if position + 1 < len(labels) else len(line)
            left, body = _split_at(line[match.start(1):end], match.end() - 1 - match.start(1))
            label = left.replace("**", "").strip()
            if _has_content(body):
                chunks.append(LabeledParagraph(label=label, body=body))
                recovered += 1
            elif _has_content(label):
                chunks.append(Paragraph(text=f"{label}:"))

        if recovered < 2:
            return False
        self.blocks.extend(chunks)
        return True

    def _single_label(self, line: str) -> bool:
        if len(line) <= self.config.single_label_min_line:
            return False
        interior = [c for c in _colons(line) if 0 < c < len(line) - 1]
        if len(interior) != 1:
            return False
        left, body = _split_at(line, interior[0])
        label = left.replace("**", "").strip()
        if len(label) >= self.config.label_max_chars or not _has_content(label):
            return False
        if not _has_content(body):
            return False
        self.emit(LabeledParagraph(label=label, body=body))
        return True

    def _paragraph(self, line: str) -> None:
        text = strip_stray_markers(line).strip()
        if _has_content(text):
            self.emit(Paragraph(text=text))


def segment(text: str, config: NormalizerConfig = DEFAULT_CONFIG) -> list[Block]:
    """Classify each line of ``text``; empty or blank input yields no blocks."""
    if not text or not text.strip():
        return []
    segmenter = _Segmenter(config)
    for line in text.split("\n"):
        segmenter.feed(line)
    return segmenter.blocks
