"""Rule chain that rewrites alternate tool-call dialects to canonical markup.

This module implements the Chain of Responsibility pattern for format
normalization. Every ``<function_calls>`` block is handed to each rule in
priority order until one of them changes it.
"""

import logging
import re
from typing import List, Optional

from ..tool_registry import ToolRegistry, get_default_registry
from .base import FormatRewriter
from .invoke_name import InvokeNameRewriter
from .invoke_tool import InvokeToolRewriter

logger = logging.getLogger(__name__)


class FormatNormalizer:
    """Chains dialect rewrite rules together, trying each in priority order.

    The chain tries rules in a fixed order:
    1. InvokeNameRewriter (``<invoke name="tool">``, with or without a
       ``<parameters>`` wrapper)
    2. InvokeToolRewriter (``<invoke_tool><tool_name>tool</tool_name>``)

    A block rewritten by a rule is replaced by its rewritten body, dropping
    the ``<function_calls>`` wrapper. A block that no rule changed is left
    exactly as it was, wrapper included, so normalization is idempotent.
    Text outside ``<function_calls>`` blocks is never modified.
    """

    # Innermost function_calls blocks only; an unpaired outer opener stays literal
    FUNCTION_CALLS_PATTERN = re.compile(
        r'<function_calls>((?:(?!<function_calls>).)*?)</function_calls>', re.DOTALL
    )

    def __init__(self, registry: Optional[ToolRegistry] = None):
        """Initialize the chain with all available rules.

        Args:
            registry: Known tool names (defaults to the configured registry)
        """
        self.registry = registry or get_default_registry()
        self.rewriters: List[FormatRewriter] = [
            InvokeNameRewriter(self.registry),
            InvokeToolRewriter(self.registry),
        ]

    def normalize(self, text: str) -> str:
        """Rewrite all known dialect blocks in ``text``.

        Args:
            text: Raw model output

        Returns:
            Text with recognised tool-call blocks in canonical form

        Example:
            >>> normalizer = FormatNormalizer()
            >>> normalizer.normalize(
            ...     '<function_calls><invoke name="read_file">'
            ...     '<path>a.txt</path></invoke></function_calls>'
            ... )
            '<read_file><path>a.txt</path></read_file>'
        """
        if not text or '<function_calls>' not in text:
            return text
        # Rewriting an inner block can expose its enclosing block, so repeat
        # until stable. Every change removes a wrapper, which bounds the loop.
        while True:
            normalized = self.FUNCTION_CALLS_PATTERN.sub(self._normalize_block, text)
            if normalized == text:
                return normalized
            text = normalized

    def _normalize_block(self, match: re.Match) -> str:
        content = match.group(1)

        for rewriter in self.rewriters:
            if not rewriter.can_rewrite(content):
                continue

            rewritten = rewriter.rewrite(content)
            if rewritten == content:
                # Rule matched but rewrote nothing, try next rule
                continue

            logger.debug(f"Using {rewriter.name} to normalize function_calls block")
            logger.info(
                f"[{rewriter.name}] Normalized function_calls block",
                extra={"block_length": len(match.group(0))},
            )
            return rewritten

        return match.group(0)


def normalize(text: str, registry: Optional[ToolRegistry] = None) -> str:
    """Rewrite alternate tool-call dialects in ``text`` to canonical markup."""
    return FormatNormalizer(registry).normalize(text)
