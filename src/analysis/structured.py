"""Recover the fixed-schema analysis record from raw model output."""

from __future__ import annotations

import json
import re

from pydantic import ValidationError

from src.analysis.models import StructuredAnalysis
from src.config.logger import get_logger

_logger = get_logger(__name__)

_CODE_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


def _json_candidate(raw: str) -> str:
    text = _CODE_FENCE_RE.sub("", raw).strip()
    first = text.find("{")
    last = text.rfind("}")
    if first != -1 and last > first:
        return text[first:last + 1]
    return text


def parse_structured(raw: str | None) -> StructuredAnalysis | None:
    """Return the record, or ``None`` when the output is not structured.

    Only the outermost first-``{`` to last-``}`` span is decoded; a record
    missing any field is rejected whole rather than partially surfaced.
    """
    if not raw or not raw.strip():
        return None

    candidate = _json_candidate(raw)
    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as exc:
        _logger.debug("[structured] not JSON: %s (preview=%r)", exc, raw[:200])
        return None

    if not isinstance(payload, dict):
        _logger.debug("[structured] JSON root is %s, not an object", type(payload).__name__)
        return None

    # JSON-mode validation keeps strict typing while accepting nested objects.
    try:
        return StructuredAnalysis.model_validate_json(candidate)
    except ValidationError as exc:
        _logger.info(
            "[structured] JSON incomplete, falling back to freeform: keys=%s errors=%s",
            sorted(payload),
            exc.error_count(),
        )
        return None
