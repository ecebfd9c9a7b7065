"""Tunable thresholds and vocabulary for the freeform normalizer."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from src.analysis import vocabulary

_LEADING_DECORATION_RE = re.compile(r"^[#*\s]+")


def _fold(text: str) -> str:
    return " ".join(text.casefold().split())


class NormalizerConfig(BaseModel):
    """Thresholds tuned against one model's output style, plus keyword tables."""

    model_config = ConfigDict(frozen=True)

    heading_colon_max: int = Field(
        default=60,
        description="A colon before this column makes the line a heading candidate.",
    )
    label_max_chars: int = Field(
        default=40,
        description="Longest text accepted as a heading or label left of a colon.",
    )
    multi_label_min_line: int = Field(
        default=80,
        description="Lines longer than this are scanned for several 'label: content' chunks.",
    )
    single_label_min_line: int = Field(
        default=50,
        description="Lines longer than this may be split once at an interior colon.",
    )
    summary_min_position: float = Field(
        default=0.3,
        description="A located conclusion must start past this fraction of the text.",
    )
    sentence_drop_ceiling: float = Field(
        default=0.2,
        description="Sentence dedup is abandoned when it would drop this share or more.",
    )
    sentence_dedup_min_chars: int = Field(
        default=20,
        description="Sentences shorter than this are never treated as duplicates.",
    )
    sentence_min_chars: int = Field(
        default=10,
        description="Shorter fragments are ignored when looking for the conclusion.",
    )
    summary_max_chars: int = 400
    fallback_tail_chars: int = 300
    conclusion_window: int = Field(
        default=5,
        description="How many trailing sentences are searched for the conclusion.",
    )

    section_titles: dict[str, str] = Field(
        default_factory=lambda: dict(vocabulary.SECTION_TITLES)
    )
    conclusion_section: str = vocabulary.CONCLUSION_SECTION
    diagnosis_keywords: tuple[str, ...] = vocabulary.DIAGNOSIS_KEYWORDS
    status_keywords: tuple[str, ...] = vocabulary.STATUS_KEYWORDS
    presence_keywords: tuple[str, ...] = vocabulary.PRESENCE_KEYWORDS
    stage_keywords: tuple[str, ...] = vocabulary.STAGE_KEYWORDS

    _title_re: re.Pattern[str] = PrivateAttr()
    _canonical: dict[str, str] = PrivateAttr()

    def model_post_init(self, __context) -> None:
        self._canonical = {_fold(title): key for title, key in self.section_titles.items()}
        # Longest first so "final result" wins over a shorter prefix title.
        titles = sorted(self._canonical, key=len, reverse=True)
        alternation = "|".join(re.escape(t) for t in titles) or r"(?!x)x"
        self._title_re = re.compile(rf"^({alternation})(?!\w)")

    def match_section(self, line: str) -> tuple[str, str] | None:
        """Return (canonical key, trailing text) when the line opens a known section."""
        folded = _fold(_LEADING_DECORATION_RE.sub("", line))
        match = self._title_re.match(folded)
        if not match:
            return None
        return self._canonical[match.group(1)], folded[match.end():]

    def section_of(self, text: str) -> str | None:
        matched = self.match_section(text)
        return matched[0] if matched else None

    def is_conclusion(self, text: str) -> bool:
        return self.section_of(text) == self.conclusion_section


DEFAULT_CONFIG = NormalizerConfig()
