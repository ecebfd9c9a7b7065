"""Tool exports and registry."""

from src.tool.image_analyzer import analyze_image_base64, analyze_medical_image

tools = [analyze_image_base64]
tools_by_name = {tool.name: tool for tool in tools}

__all__ = [
    "analyze_image_base64",
    "analyze_medical_image",
    "tools",
    "tools_by_name",
]
