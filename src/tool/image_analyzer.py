"""Vision-model analysis of uploaded medical images."""

from __future__ import annotations

import asyncio
import time
from typing import Annotated, Any

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.tools import tool

from src.config.logger import get_logger, log_stage
from src.config.settings import settings
from src.llm.model_factory import get_chat_model
from src.prompts.prompts import IMAGE_ANALYSIS_REQUEST, image_prompt_for
from src.tool.envelope import error_payload, ok_payload
from src.utils.image_utils import decode_image_base64, image_data_url, validate_image_upload

_logger = get_logger(__name__)

TOOL_NAME = "analyze_medical_image"


def _content_text(content: Any) -> str:
    """Flatten a chat response body that may be a string or a list of parts."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(str(part.get("text") or ""))
        return "".join(parts)
    return str(content or "")


def _messages(image_bytes: bytes, image_category: str, mime_type: str) -> list:
    return [
        SystemMessage(content=image_prompt_for(image_category)),
        HumanMessage(
            content=[
                {"type": "text", "text": IMAGE_ANALYSIS_REQUEST},
                {
                    "type": "image_url",
                    "image_url": {"url": image_data_url(image_bytes, mime_type)},
                },
            ]
        ),
    ]


async def analyze_medical_image(
    image_bytes: bytes,
    image_category: str = "mammogram",
    mime_type: str = "image/jpeg",
) -> str:
    """Ask the configured vision models, in order, to describe one image.

    Returns an envelope JSON string. On success ``data.raw_text`` holds the
    model answer untouched and ``data.model`` names the model that produced it.

    Error codes: ``INVALID_INPUT``, ``MODEL_UNAVAILABLE``, ``UPSTREAM_ERROR``.
    """
    start_ts = time.perf_counter()

    try:
        validate_image_upload(image_bytes, mime_type)
    except ValueError as exc:
        return error_payload(TOOL_NAME, "INVALID_INPUT", str(exc), start_ts)

    messages = _messages(image_bytes, image_category, mime_type)
    built_any = False
    last_error = ""

    for model_name in settings.analyzer_model_chain():
        # Provider resolution can query Ollama synchronously.
        llm = await asyncio.to_thread(
            get_chat_model,
            "ANALYZER",
            model=model_name,
            temperature=settings.ANALYZER_TEMPERATURE,
        )
        if llm is None:
            continue
        built_any = True
        try:
            response = await llm.ainvoke(messages)
        except Exception as exc:
            last_error = str(exc).strip() or exc.__class__.__name__
            _logger.warning("[analyzer] %s failed: %s", model_name, last_error[:200])
            continue

        raw_text = _content_text(getattr(response, "content", response)).strip()
        if not raw_text:
            last_error = f"{model_name} returned an empty answer"
            _logger.warning("[analyzer] %s", last_error)
            continue

        log_stage(_logger, f"analyzer.{model_name}", raw_text)
        return ok_payload(TOOL_NAME, {"raw_text": raw_text, "model": model_name}, start_ts)

    if not built_any:
        return error_payload(
            TOOL_NAME,
            "MODEL_UNAVAILABLE",
            "no vision model could be built; check the ANALYZER model configuration",
            start_ts,
        )
    return error_payload(
        TOOL_NAME,
        "UPSTREAM_ERROR",
        f"image analysis failed: {last_error or 'unknown error'}",
        start_ts,
    )


@tool
async def analyze_image_base64(
    image_base64: Annotated[str, "Image content as raw base64 or a data URL."],
    image_category: Annotated[str, "mammogram, xray or other."] = "mammogram",
    mime_type: Annotated[str, "Image MIME type, e.g. image/png."] = "image/jpeg",
) -> str:
    """Analyze a base64-encoded medical image (returns an envelope JSON string).

    Success field: ``data.raw_text``, the unmodified model answer.
    """
    try:
        image_bytes = decode_image_base64(image_base64)
    except ValueError as exc:
        return error_payload(TOOL_NAME, "INVALID_INPUT", str(exc), time.perf_counter())
    return await analyze_medical_image(image_bytes, image_category, mime_type)
