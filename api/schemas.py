from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from src.analysis.models import AnalysisRecord


class AnalysisItem(BaseModel):
    id: str
    image_ref: str = ""
    raw_text: str
    image_category: str
    custom_label: str | None = None
    created_at: datetime

    @classmethod
    def from_record(cls, record: AnalysisRecord) -> "AnalysisItem":
        return cls.model_validate(record.model_dump(exclude={"owner_id"}))


class AnalysisListResponse(BaseModel):
    items: list[AnalysisItem] = Field(default_factory=list)


class AnalysisDetailResponse(BaseModel):
    analysis: AnalysisItem
    view: dict[str, Any]


class AnalyzeImageResponse(BaseModel):
    success: bool = True
    analysis: str
    image_ref: str = ""
    image_type: str
    model: str = ""
    id: str | None = None
    saved: bool = False
    save_error: str | None = None
    view: dict[str, Any]


class RenameRequest(BaseModel):
    custom_label: str = Field(min_length=1)
