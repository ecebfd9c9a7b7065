from src.utils.tool_calling import parse_tool_payload, tool_text_or_error

__all__ = [
    "parse_tool_payload",
    "tool_text_or_error",
]
