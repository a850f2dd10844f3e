"""Streaming parser for tool-invocation markup in language model output.

Model output mixing prose with ``<tool><param>value</param></tool>`` blocks is
turned into an ordered list of ``TextBlock`` and ``ToolInvocation`` models,
re-parsable on every streamed chunk.

Usage:
    from markup_stream import AssistantMessageParser

    parser = AssistantMessageParser()
    for chunk in stream:
        blocks = parser.process_chunk(chunk)
    blocks = parser.finalize()
"""

from .models import ContentBlock, ContentBlockList, TextBlock, ToolInvocation
from .services import (
    AssistantMessageParser,
    FormatNormalizer,
    ParserConfig,
    RegistryError,
    StreamingScanner,
    ToolRegistry,
    get_config,
    get_default_registry,
    normalize,
    parse,
    parse_assistant_message,
)

__all__ = [
    "AssistantMessageParser",
    "ContentBlock",
    "ContentBlockList",
    "FormatNormalizer",
    "ParserConfig",
    "RegistryError",
    "StreamingScanner",
    "TextBlock",
    "ToolInvocation",
    "ToolRegistry",
    "get_config",
    "get_default_registry",
    "normalize",
    "parse",
    "parse_assistant_message",
]
