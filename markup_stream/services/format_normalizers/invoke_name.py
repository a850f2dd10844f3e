"""Rewrite rule for named invoke elements.

Handles the dialect where the tool name is an attribute of ``<invoke>``:

    <function_calls>
    <invoke name="read_file">
    <path>src/app.py</path>
    </invoke>
    </function_calls>

Parameters may also be wrapped Anthropic-style:

    <invoke name="read_file">
    <parameters>
    <parameter name="path">src/app.py</parameter>
    </parameters>
    </invoke>

Some models close the fragment with the tool's own tag (``</read_file>``)
instead of ``</invoke>``; both are accepted.
"""

import logging
import re
from typing import List, Optional

from .base import FormatRewriter, normalize_parameters

logger = logging.getLogger(__name__)


class InvokeNameRewriter(FormatRewriter):
    """Rewrites ``<invoke name="tool">..</invoke>`` to ``<tool>..</tool>``."""

    # Opening invoke element with name attribute
    # Captures: (1) tool name
    INVOKE_OPEN_PATTERN = re.compile(r'<invoke\s+name="([^"]+)">')

    # Any lowercase-underscore closing tag; accepted as the fragment end when it
    # is </invoke> or closes a registered tool.
    CLOSING_TAG_PATTERN = re.compile(r'</([a-z_]+)>')

    @property
    def name(self) -> str:
        """Return rule name."""
        return "InvokeNameRewriter"

    def can_rewrite(self, content: str) -> bool:
        """Check if content contains named invoke elements.

        Args:
            content: Block body to check

        Returns:
            True if an ``<invoke name="...">`` element is present
        """
        return bool(self.INVOKE_OPEN_PATTERN.search(content))

    def rewrite(self, content: str) -> str:
        """Rewrite named invoke fragments with known tool names.

        Args:
            content: Block body containing invoke fragments

        Returns:
            Body with valid fragments in canonical form
        """
        pieces: List[str] = []
        position = 0

        while True:
            open_match = self.INVOKE_OPEN_PATTERN.search(content, position)
            if open_match is None:
                break

            close_match = self._find_fragment_end(content, open_match.end())
            if close_match is None:
                # Unterminated fragment (still streaming); leave the rest alone
                break

            fragment = content[open_match.start():close_match.end()]
            tool_name = open_match.group(1).strip()

            pieces.append(content[position:open_match.start()])
            if self.registry.is_tool(tool_name):
                body = content[open_match.end():close_match.start()]
                pieces.append(f"<{tool_name}>{normalize_parameters(body).strip()}</{tool_name}>")
            else:
                logger.debug(f"[{self.name}] Unknown tool '{tool_name}', leaving fragment as-is")
                pieces.append(fragment)
            position = close_match.end()

        pieces.append(content[position:])
        return ''.join(pieces)

    def _find_fragment_end(self, content: str, start: int) -> Optional[re.Match]:
        """Find the first closing tag that ends an invoke fragment.

        Args:
            content: Block body
            start: Position just past the opening invoke tag

        Returns:
            Match for ``</invoke>`` or a registered tool's closing tag, or None
        """
        for match in self.CLOSING_TAG_PATTERN.finditer(content, start):
            tag_name = match.group(1)
            if tag_name == "invoke" or self.registry.is_tool(tag_name):
                return match
        return None
