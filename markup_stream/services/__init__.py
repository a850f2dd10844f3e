"""Parsing services for streamed assistant messages."""

from .config import ParserConfig, get_config, reload_config
from .format_normalizers import FormatNormalizer, normalize
from .message_parser import AssistantMessageParser, parse_assistant_message
from .streaming_scanner import StreamingScanner, parse
from .tool_registry import (
    DEFAULT_PARAM_NAMES,
    DEFAULT_TOOL_NAMES,
    RegistryError,
    ToolRegistry,
    build_registry,
    get_default_registry,
)

__all__ = [
    "AssistantMessageParser",
    "DEFAULT_PARAM_NAMES",
    "DEFAULT_TOOL_NAMES",
    "FormatNormalizer",
    "ParserConfig",
    "RegistryError",
    "StreamingScanner",
    "ToolRegistry",
    "build_registry",
    "get_config",
    "get_default_registry",
    "normalize",
    "parse",
    "parse_assistant_message",
    "reload_config",
]
