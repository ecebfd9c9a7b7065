from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

ImageCategory = Literal["mammogram", "xray", "other"]


class Plain(BaseModel):
    kind: Literal["plain"] = "plain"
    text: str


class Emphasis(BaseModel):
    kind: Literal["emphasis"] = "emphasis"
    text: str


Span = Annotated[Union[Plain, Emphasis], Field(discriminator="kind")]


class Heading(BaseModel):
    kind: Literal["heading"] = "heading"
    text: str

    def leaf_texts(self) -> dict[str, str]:
        return {"text": self.text}


class HeadingWithBody(BaseModel):
    kind: Literal["heading_with_body"] = "heading_with_body"
    heading: str
    body: str

    def leaf_texts(self) -> dict[str, str]:
        return {"heading": self.heading, "body": self.body}


class NumberedItem(BaseModel):
    kind: Literal["numbered_item"] = "numbered_item"
    index: int
    text: str

    def leaf_texts(self) -> dict[str, str]:
        return {"text": self.text}


class BulletItem(BaseModel):
    kind: Literal["bullet_item"] = "bullet_item"
    text: str

    def leaf_texts(self) -> dict[str, str]:
        return {"text": self.text}


class LabeledParagraph(BaseModel):
    kind: Literal["labeled_paragraph"] = "labeled_paragraph"
    label: str
    body: str

    def leaf_texts(self) -> dict[str, str]:
        return {"label": self.label, "body": self.body}


class Paragraph(BaseModel):
    kind: Literal["paragraph"] = "paragraph"
    text: str

    def leaf_texts(self) -> dict[str, str]:
        return {"text": self.text}


class Blank(BaseModel):
    kind: Literal["blank"] = "blank"

    def leaf_texts(self) -> dict[str, str]:
        return {}


Block = Annotated[
    Union[
        Heading,
        HeadingWithBody,
        NumberedItem,
        BulletItem,
        LabeledParagraph,
        Paragraph,
        Blank,
    ],
    Field(discriminator="kind"),
]


class Findings(BaseModel):
    """The four fixed mammography sub-findings; extra keys are rejected."""

    model_config = ConfigDict(strict=True, extra="forbid")

    breast_density: str = Field(alias="breastDensity")
    masses: str
    calcifications: str
    asymmetry: str


class StructuredAnalysis(BaseModel):
    """Fixed-schema record a model may emit as JSON.

    Validation is strict: values keep the types JSON decoding produced, so a
    numeric BI-RADS code or a bare string for ``recommendations`` fails the
    whole record instead of being coerced.
    """

    model_config = ConfigDict(strict=True)

    final_result: str = Field(alias="finalResult", min_length=1)
    bi_rads_or_na: str = Field(
        validation_alias=AliasChoices("biRadsOrNA", "biRads"),
        serialization_alias="biRadsOrNA",
    )
    findings: Findings
    detailed_analysis: str = Field(alias="detailedAnalysis", min_length=1)
    recommendations: list[str] = Field(min_length=1)


class ConclusionSplit(BaseModel):
    summary: str = ""
    remainder: str = ""


class AnalysisRecord(BaseModel):
    """Persisted analysis; the structured and segmented views are never stored."""

    id: str
    image_ref: str = ""
    raw_text: str
    image_category: ImageCategory = "other"
    owner_id: str
    custom_label: str | None = None
    created_at: datetime
