"""Pydantic models for parsed assistant message content."""

from .content import ContentBlock, ContentBlockList, TextBlock, ToolInvocation

__all__ = [
    "ContentBlock",
    "ContentBlockList",
    "TextBlock",
    "ToolInvocation",
]
