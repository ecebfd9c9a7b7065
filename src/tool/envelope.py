"""JSON envelope shared by every tool result."""

from __future__ import annotations

import json
import time
from datetime import datetime, timezone
from typing import Any

ENVELOPE_VERSION = "1.0"


def _envelope(
    tool: str,
    ok: bool,
    data: dict[str, Any],
    error: dict[str, str] | None,
    start_ts: float,
) -> str:
    return json.dumps(
        {
            "tool": tool,
            "ok": ok,
            "data": data,
            "error": error,
            "meta": {
                "version": ENVELOPE_VERSION,
                "ts": datetime.now(timezone.utc).isoformat(),
                "latency_ms": int((time.perf_counter() - start_ts) * 1000),
            },
        },
        ensure_ascii=False,
    )


def ok_payload(tool: str, data: dict[str, Any], start_ts: float) -> str:
    return _envelope(tool, True, data, None, start_ts)


def error_payload(
    tool: str,
    code: str,
    message: str,
    start_ts: float,
    data: dict[str, Any] | None = None,
) -> str:
    return _envelope(tool, False, data or {}, {"code": code, "message": message}, start_ts)
