"""Registry of tool and parameter names recognised in assistant markup.

The scanner only ever treats ``<name>`` as structure when ``name`` is a
registered tool (at top level) or a registered parameter (inside a tool).
Everything else is prose or literal parameter content.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import FrozenSet, Optional

from .config import DEFAULT_CONTENT_BEARING_TOOLS, ParserConfig, get_config

logger = logging.getLogger(__name__)

CONTENT_PARAM = "content"

DEFAULT_TOOL_NAMES: FrozenSet[str] = frozenset({
    "execute_command",
    "read_file",
    "fetch_instructions",
    "write_to_file",
    "apply_diff",
    "insert_content",
    "search_and_replace",
    "search_files",
    "list_files",
    "list_code_definition_names",
    "browser_action",
    "use_mcp_tool",
    "access_mcp_resource",
    "ask_followup_question",
    "attempt_completion",
    "switch_mode",
    "new_task",
    "new_rule",
    "codebase_search",
    "update_todo_list",
    "run_slash_command",
    "generate_image",
})

DEFAULT_PARAM_NAMES: FrozenSet[str] = frozenset({
    "command",
    "path",
    "content",
    "line_count",
    "regex",
    "file_pattern",
    "recursive",
    "action",
    "url",
    "coordinate",
    "text",
    "server_name",
    "tool_name",
    "arguments",
    "uri",
    "question",
    "result",
    "diff",
    "mode_slug",
    "reason",
    "line",
    "mode",
    "message",
    "cwd",
    "follow_up",
    "task",
    "size",
    "search",
    "replace",
    "use_regex",
    "ignore_case",
    "args",
    "start_line",
    "end_line",
    "query",
    "todos",
    "prompt",
    "image",
})

# Names are spliced into tags verbatim, so they must not contain markup characters.
_VALID_NAME = re.compile(r"^[^\s<>/]+$")


class RegistryError(Exception):
    """Raised when a registry violates the parser's preconditions."""


@dataclass(frozen=True)
class ToolRegistry:
    """Immutable sets of known tool and parameter names.

    Attributes:
        tool_names: Names that open a tool invocation at top level
        param_names: Names that open a parameter inside a tool invocation
        content_bearing_tools: Tools whose ``content`` payload may contain
            its own closing tag and is re-derived from the last one seen
    """

    tool_names: FrozenSet[str]
    param_names: FrozenSet[str]
    content_bearing_tools: FrozenSet[str] = field(default=DEFAULT_CONTENT_BEARING_TOOLS)

    def __post_init__(self) -> None:
        # Accept any iterable of names but always store frozensets
        for attr in ("tool_names", "param_names", "content_bearing_tools"):
            object.__setattr__(self, attr, frozenset(getattr(self, attr)))

        if not self.tool_names:
            raise RegistryError("tool_names must not be empty")
        if not self.param_names:
            raise RegistryError("param_names must not be empty")

        for name in self.tool_names | self.param_names:
            if not isinstance(name, str) or not _VALID_NAME.match(name):
                raise RegistryError(f"Invalid tag name: {name!r}")

        unknown = self.content_bearing_tools - self.tool_names
        if unknown:
            raise RegistryError(
                f"Content-bearing tools are not registered tools: {sorted(unknown)}"
            )

    @property
    def tool_opening_tag_length(self) -> int:
        """Length of the longest ``<tool>`` opening tag."""
        return max(len(name) for name in self.tool_names) + 2

    @property
    def param_opening_tag_length(self) -> int:
        """Length of the longest ``<param>`` opening tag."""
        return max(len(name) for name in self.param_names) + 2

    def is_tool(self, name: str) -> bool:
        """Return True if ``name`` opens a tool invocation."""
        return name in self.tool_names

    def is_param(self, name: str) -> bool:
        """Return True if ``name`` opens a parameter inside a tool."""
        return name in self.param_names

    def is_content_bearing(self, name: str) -> bool:
        """Return True if ``name``'s content payload is recaptured from its last closer."""
        return name in self.content_bearing_tools


def build_registry(config: Optional[ParserConfig] = None) -> ToolRegistry:
    """Build the default registry extended by configured extra names.

    Args:
        config: Parser configuration (defaults to ``get_config()``)

    Returns:
        ToolRegistry with default and extra names
    """
    config = config or get_config()
    tool_names = DEFAULT_TOOL_NAMES | frozenset(config.extra_tool_names)
    param_names = DEFAULT_PARAM_NAMES | frozenset(config.extra_param_names)

    registry = ToolRegistry(
        tool_names=tool_names,
        param_names=param_names,
        content_bearing_tools=frozenset(config.content_bearing_tools),
    )
    logger.debug(
        f"Built tool registry: {len(registry.tool_names)} tools, "
        f"{len(registry.param_names)} params"
    )
    return registry


@lru_cache(maxsize=1)
def get_default_registry() -> ToolRegistry:
    """Load and cache the registry built from the current configuration."""
    return build_registry()
