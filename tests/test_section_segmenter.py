"""Tests for line classification into blocks."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.analysis.config import NormalizerConfig
from src.analysis.models import (
    Blank,
    BulletItem,
    Heading,
    HeadingWithBody,
    LabeledParagraph,
    NumberedItem,
    Paragraph,
)
from src.analysis.segmenter import segment


def test_numbered_items() -> None:
    assert segment("1. Breast density is scattered.\n2. No mass.") == [
        NumberedItem(index=1, text="Breast density is scattered."),
        NumberedItem(index=2, text="No mass."),
    ]


def test_decimal_is_not_a_numbered_item() -> None:
    assert segment("1.5 cm mass noted in the upper quadrant") == [
        Paragraph(text="1.5 cm mass noted in the upper quadrant"),
    ]


def test_bullets_from_star_dash_and_dot() -> None:
    assert segment("* Star item *\n- Dash item\n• Dot item") == [
        BulletItem(text="Star item"),
        BulletItem(text="Dash item"),
        BulletItem(text="Dot item"),
    ]


def test_bold_line_is_not_a_bullet() -> None:
    assert segment("**Important** finding noted") == [Paragraph(text="**Important** finding noted")]


def test_headings() -> None:
    assert segment("التوصيات:\n# Summary\n## **Analysis** (detailed)") == [
        Heading(text="التوصيات"),
        Heading(text="Summary"),
        Heading(text="Analysis"),
    ]


def test_heading_with_inline_body() -> None:
    assert segment("**Findings:** scattered fibroglandular density") == [
        HeadingWithBody(heading="Findings", body="scattered fibroglandular density"),
    ]


def test_second_conclusion_heading_dropped() -> None:
    blocks = segment("الخلاصة:\nالصورة طبيعية.\nالخلاصة: مكرر")
    assert blocks == [Heading(text="الخلاصة"), Paragraph(text="الصورة طبيعية.")]


def test_blank_lines_become_blank_blocks() -> None:
    assert segment("First paragraph.\n\nSecond paragraph.") == [
        Paragraph(text="First paragraph."),
        Blank(),
        Paragraph(text="Second paragraph."),
    ]


def test_clock_times_do_not_split() -> None:
    assert segment("Exam performed at 10:30 without complications") == [
        Paragraph(text="Exam performed at 10:30 without complications"),
    ]


def test_long_line_split_into_labeled_chunks() -> None:
    line = (
        "The examination was performed on both breasts in standard views. "
        "Density: heterogeneously dense tissue. Masses: no dominant mass seen."
    )
    assert segment(line) == [
        Paragraph(text="The examination was performed on both breasts in standard views."),
        LabeledParagraph(label="Density", body="heterogeneously dense tissue."),
        LabeledParagraph(label="Masses", body="no dominant mass seen."),
    ]


def test_single_label_split() -> None:
    config = NormalizerConfig(heading_colon_max=10)
    line = "Breast composition: scattered areas of fibroglandular density are seen"
    assert segment(line, config) == [
        LabeledParagraph(
            label="Breast composition",
            body="scattered areas of fibroglandular density are seen",
        ),
    ]


def test_long_left_side_heading_keeps_its_body() -> None:
    line = "The radiologist reviewed all of the submitted projections: no change since last year"
    assert segment(line) == [
        Heading(text="The radiologist reviewed all of the submitted projections"),
        Paragraph(text="no change since last year"),
    ]
    assert segment("## The radiologist reviewed the submitted projections closely") == [
        Heading(text="The radiologist reviewed the submitted projections closely"),
    ]


def test_fragments_discarded() -> None:
    assert segment("...\n—\n**") == []


def test_segment_is_total() -> None:
    for text in ["", "   ", "{", "🙂✓", ":", "#", "* ", "1.", "\n\n", "**:**", "a" * 500 + ":" * 3]:
        blocks = segment(text)
        assert isinstance(blocks, list)
    assert segment("") == []
    assert segment("{") == []
