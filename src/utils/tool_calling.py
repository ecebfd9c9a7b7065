from __future__ import annotations

import json
from typing import Any

_ENVELOPE_VERSION = {"version": "1.0"}


def _failure(tool_name: str, code: str, message: str) -> dict[str, Any]:
    return {
        "tool": tool_name,
        "ok": False,
        "data": {},
        "error": {"code": code, "message": message},
        "meta": dict(_ENVELOPE_VERSION),
    }


def parse_tool_payload(tool_name: str, raw: Any) -> dict[str, Any]:
    """Turn a tool's envelope (JSON text or dict) into a well-formed dict."""
    if isinstance(raw, dict):
        payload = raw
    else:
        text = str(raw) if raw is not None else ""
        try:
            payload = json.loads(text)
        except ValueError:
            return _failure(tool_name, "INVALID_JSON", text[:500])

    if not isinstance(payload, dict):
        return _failure(tool_name, "INVALID_PAYLOAD", "tool payload must be JSON object")

    ok = bool(payload.get("ok"))
    data = payload.get("data")
    if not isinstance(data, dict):
        data = {}
    error = payload.get("error")
    if ok:
        error = None
    elif not isinstance(error, dict):
        error = {"code": "UNKNOWN_ERROR", "message": "tool returned failure without error payload"}
    meta = payload.get("meta")
    return {
        "tool": str(payload.get("tool") or tool_name),
        "ok": ok,
        "data": data,
        "error": error,
        "meta": meta if isinstance(meta, dict) else dict(_ENVELOPE_VERSION),
    }


def tool_text_or_error(payload: dict[str, Any], key: str = "raw_text") -> str:
    if payload.get("ok"):
        value = payload.get("data", {}).get(key, "")
        return str(value) if value is not None else ""
    error = payload.get("error", {})
    code = error.get("code", "UNKNOWN_ERROR")
    msg = error.get("message", "")
    return f"[{code}] {msg}".strip()
