"""Parser configuration helpers."""

from __future__ import annotations

from functools import lru_cache
import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_CONTENT_BEARING_TOOLS = frozenset({"write_to_file", "new_rule"})


class ParserConfig(BaseModel):
    """Runtime configuration loaded from environment variables."""

    model_config = ConfigDict(frozen=True)

    normalize_dialects: bool = Field(
        default=True,
        description="Rewrite <function_calls> dialects to canonical markup before scanning",
    )
    content_bearing_tools: set[str] = Field(
        default_factory=lambda: set(DEFAULT_CONTENT_BEARING_TOOLS),
        description=(
            "Tools whose <content> payload may itself contain </content>. "
            "Their content value is re-derived from the last closing tag seen."
        ),
    )
    extra_tool_names: set[str] = Field(
        default_factory=set,
        description="Tool names added to the default registry (MARKUP_STREAM_EXTRA_TOOLS)",
    )
    extra_param_names: set[str] = Field(
        default_factory=set,
        description="Parameter names added to the default registry (MARKUP_STREAM_EXTRA_PARAMS)",
    )
    slow_parse_ms: float = Field(
        default=50.0,
        ge=0.0,
        description="Parses slower than this are logged at warning level",
    )

    @field_validator(
        "content_bearing_tools", "extra_tool_names", "extra_param_names", mode="before"
    )
    @classmethod
    def _split_names(cls, value: str | set[str] | None) -> set[str]:
        if value is None:
            return set()
        if isinstance(value, str):
            return _split_csv(value)
        return {str(name).strip() for name in value if str(name).strip()}


def _read_env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(key, default)


def _split_csv(value: str) -> set[str]:
    return {name.strip() for name in value.split(",") if name.strip()}


@lru_cache(maxsize=1)
def get_config() -> ParserConfig:
    """Load and cache parser configuration."""
    normalize_dialects = _read_env("MARKUP_STREAM_NORMALIZE_DIALECTS", "true").lower() in {
        "true",
        "1",
        "yes",
    }
    content_bearing_tools = _read_env(
        "MARKUP_STREAM_CONTENT_BEARING_TOOLS", ",".join(sorted(DEFAULT_CONTENT_BEARING_TOOLS))
    )
    extra_tool_names = _read_env("MARKUP_STREAM_EXTRA_TOOLS", "")
    extra_param_names = _read_env("MARKUP_STREAM_EXTRA_PARAMS", "")
    slow_parse_ms = _read_env("MARKUP_STREAM_SLOW_PARSE_MS", "50")

    return ParserConfig(
        normalize_dialects=normalize_dialects,
        content_bearing_tools=content_bearing_tools,
        extra_tool_names=extra_tool_names,
        extra_param_names=extra_param_names,
        slow_parse_ms=slow_parse_ms,
    )


def reload_config() -> ParserConfig:
    """Clear cached config and the registry built from it (useful for tests) and reload."""
    # Imported here: tool_registry depends on this module
    from .tool_registry import get_default_registry

    get_config.cache_clear()
    get_default_registry.cache_clear()
    return get_config()
