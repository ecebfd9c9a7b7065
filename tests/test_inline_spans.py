"""Tests for inline emphasis tokenization."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.analysis.inline import normalize_inline, plain_text, strip_stray_markers, tokenize
from src.analysis.models import Emphasis, Plain


def test_tokenize_splits_plain_and_emphasis() -> None:
    spans = tokenize("The mass is **suspicious** and needs **biopsy**.")
    assert spans == [
        Plain(text="The mass is "),
        Emphasis(text="suspicious"),
        Plain(text=" and needs "),
        Emphasis(text="biopsy"),
        Plain(text="."),
    ]


def test_tokenize_without_markers_is_single_plain_span() -> None:
    assert tokenize("No dominant mass.") == [Plain(text="No dominant mass.")]


def test_tokenize_arabic_emphasis() -> None:
    assert tokenize("النتيجة: **طبيعي**") == [
        Plain(text="النتيجة: "),
        Emphasis(text="طبيعي"),
    ]


def test_stray_markers_removed_without_touching_pairs() -> None:
    assert strip_stray_markers("**bold** * text") == "**bold** text"
    assert normalize_inline("Density is * heterogeneous *") == "Density is heterogeneous"
    assert normalize_inline("* leading star") == "leading star"


def test_edges_kept_when_requested() -> None:
    assert strip_stray_markers("* item", edges=False) == "* item"


def test_private_use_characters_pass_through_untouched() -> None:
    text = "icon \ue000 and \ue001 with **bold** * stray"
    assert strip_stray_markers(text) == "icon \ue000 and \ue001 with **bold** stray"
    assert tokenize("\ue000x\ue000") == [Plain(text="\ue000x\ue000")]


def test_unpaired_double_marker_stays_plain() -> None:
    assert tokenize("a **b") == [Plain(text="a **b")]


def test_empty_input_yields_no_spans() -> None:
    assert tokenize("") == []
    assert tokenize("   \n ") == []


def test_span_concatenation_matches_plain_text() -> None:
    samples = [
        "The mass is **suspicious** and needs **biopsy**.",
        "* Density:  **fatty**   tissue *",
        "**عالية** الكثافة * مع تكلسات",
        "a **b",
        "****",
    ]
    for sample in samples:
        joined = "".join(span.text for span in tokenize(sample))
        assert joined == plain_text(sample)
