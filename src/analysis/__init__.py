"""Normalization of raw vision-model answers into renderable structure."""

from src.analysis.cleaner import clean
from src.analysis.conclusion import extract
from src.analysis.config import DEFAULT_CONFIG, NormalizerConfig
from src.analysis.inline import plain_text, tokenize
from src.analysis.pipeline import AnalysisView
from src.analysis.segmenter import segment
from src.analysis.structured import parse_structured

__all__ = [
    "AnalysisView",
    "DEFAULT_CONFIG",
    "NormalizerConfig",
    "clean",
    "extract",
    "parse_structured",
    "plain_text",
    "segment",
    "tokenize",
]
