"""Derived views over one raw model answer.

Everything here is a pure function of the raw text: a freshly produced answer
and the same answer reloaded from storage render identically.
"""

from __future__ import annotations

from functools import cached_property
from typing import Any

from src.analysis.cleaner import clean
from src.analysis.conclusion import extract
from src.analysis.config import DEFAULT_CONFIG, NormalizerConfig
from src.analysis.inline import tokenize
from src.analysis.models import Block, ConclusionSplit, StructuredAnalysis
from src.analysis.segmenter import segment
from src.analysis.structured import parse_structured


def _spans(text: str) -> list[dict[str, Any]]:
    return [span.model_dump() for span in tokenize(text)]


class AnalysisView:
    """Callers check ``is_structured()`` and then use exactly one path."""

    def __init__(self, raw_text: str, config: NormalizerConfig = DEFAULT_CONFIG):
        self.raw_text = raw_text or ""
        self.config = config

    @cached_property
    def _structured(self) -> StructuredAnalysis | None:
        return parse_structured(self.raw_text)

    @cached_property
    def cleaned_text(self) -> str:
        return clean(self.raw_text, self.config)

    def is_structured(self) -> bool:
        return self._structured is not None

    def as_structured(self) -> StructuredAnalysis:
        if self._structured is None:
            raise ValueError("analysis is freeform; use as_blocks() or as_conclusion_split()")
        return self._structured

    def _require_freeform(self) -> None:
        if self._structured is not None:
            raise ValueError("analysis is structured; use as_structured()")

    def as_blocks(self) -> list[Block]:
        self._require_freeform()
        return segment(self.cleaned_text, self.config)

    def as_conclusion_split(self) -> ConclusionSplit:
        self._require_freeform()
        return extract(self.cleaned_text, self.config)

    def render(self) -> dict[str, Any]:
        """JSON-ready payload with every leaf string tokenized into spans."""
        if self._structured is not None:
            record = self._structured
            return {
                "structured": True,
                "analysis": record.model_dump(by_alias=True),
                "spans": {
                    "finalResult": _spans(record.final_result),
                    "biRadsOrNA": _spans(record.bi_rads_or_na),
                    "findings": {
                        name: _spans(value)
                        for name, value in record.findings.model_dump(by_alias=True).items()
                    },
                    "detailedAnalysis": _spans(record.detailed_analysis),
                    "recommendations": [_spans(item) for item in record.recommendations],
                },
            }

        split = self.as_conclusion_split()
        return {
            "structured": False,
            "blocks": [
                {
                    **block.model_dump(),
                    "spans": {name: _spans(value) for name, value in block.leaf_texts().items()},
                }
                for block in self.as_blocks()
            ],
            "conclusion": {
                **split.model_dump(),
                "summary_spans": _spans(split.summary),
            },
        }
