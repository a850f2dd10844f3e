"""Rewrite rule for invoke_tool elements.

Handles the dialect where the tool name is a child element:

    <function_calls>
    <invoke_tool>
    <tool_name>list_files</tool_name>
    <path>.</path>
    </invoke_tool>
    </function_calls>
"""

import logging
import re

from .base import FormatRewriter, normalize_parameters

logger = logging.getLogger(__name__)


class InvokeToolRewriter(FormatRewriter):
    """Rewrites ``<invoke_tool><tool_name>tool</tool_name>..</invoke_tool>``."""

    # Pattern for invoke_tool elements
    # Captures: (1) element body
    INVOKE_TOOL_PATTERN = re.compile(r'<invoke_tool>(.*?)</invoke_tool>', re.DOTALL)

    # Pattern for the tool name child element
    TOOL_NAME_PATTERN = re.compile(r'<tool_name>([^<]+)</tool_name>')

    @property
    def name(self) -> str:
        """Return rule name."""
        return "InvokeToolRewriter"

    def can_rewrite(self, content: str) -> bool:
        """Check if content contains invoke_tool elements.

        Args:
            content: Block body to check

        Returns:
            True if content matches the invoke_tool dialect
        """
        return bool(self.INVOKE_TOOL_PATTERN.search(content))

    def rewrite(self, content: str) -> str:
        """Rewrite invoke_tool fragments with known tool names.

        Args:
            content: Block body containing invoke_tool fragments

        Returns:
            Body with valid fragments in canonical form
        """
        return self.INVOKE_TOOL_PATTERN.sub(self._rewrite_fragment, content)

    def _rewrite_fragment(self, match: re.Match) -> str:
        body = match.group(1)

        name_match = self.TOOL_NAME_PATTERN.search(body)
        if name_match is None:
            logger.debug(f"[{self.name}] Fragment has no <tool_name>, leaving as-is")
            return match.group(0)

        tool_name = name_match.group(1).strip()
        if not self.registry.is_tool(tool_name):
            logger.debug(f"[{self.name}] Unknown tool '{tool_name}', leaving fragment as-is")
            return match.group(0)

        params_content = self.TOOL_NAME_PATTERN.sub('', body, count=1).strip()
        return f"<{tool_name}>{normalize_parameters(params_content)}</{tool_name}>"
