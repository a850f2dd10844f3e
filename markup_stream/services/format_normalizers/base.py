"""Base classes for format rewrite rules.

Each rule rewrites one alternate tool-call dialect found inside a
``<function_calls>`` block into canonical ``<tool><param>value</param></tool>``
markup. Rules are total: they never raise and always return either rewritten
text or the text they were given.
"""

import re
from abc import ABC, abstractmethod

from ..tool_registry import ToolRegistry

# Optional <parameters> container around parameter elements
PARAMETERS_WRAPPER_PATTERN = re.compile(r'</?parameters>')

# Pattern for named parameter elements
# Captures: (1) parameter name, (2) raw value
PARAMETER_PATTERN = re.compile(
    r'<parameter\s+name="([^"]+)">(.*?)</parameter>',
    re.DOTALL,
)


def normalize_parameters(content: str) -> str:
    """Rewrite named parameter elements to canonical parameter tags.

    Drops any ``<parameters>`` container and converts
    ``<parameter name="p">value</parameter>`` to ``<p>value</p>``. Only the
    whitespace directly around each value is trimmed.

    Args:
        content: Body of an invoke fragment

    Returns:
        Body with canonical parameter tags
    """
    result = PARAMETERS_WRAPPER_PATTERN.sub('', content)

    def _rewrite(match: re.Match) -> str:
        name = match.group(1).strip()
        return f"<{name}>{match.group(2).strip()}</{name}>"

    return PARAMETER_PATTERN.sub(_rewrite, result)


class FormatRewriter(ABC):
    """Abstract base class for dialect rewrite rules.

    Rules are organized in a fixed fallback order by ``FormatNormalizer``.
    Each rule checks whether a ``<function_calls>`` body looks like its
    dialect before attempting a rewrite.
    """

    def __init__(self, registry: ToolRegistry):
        """Initialize the rule.

        Args:
            registry: Known tool names used to validate invoked tools
        """
        self.registry = registry

    @abstractmethod
    def can_rewrite(self, content: str) -> bool:
        """Check if this rule can handle the given block body.

        Args:
            content: Inner text of a ``<function_calls>`` block

        Returns:
            True if the body contains this rule's dialect
        """
        pass

    @abstractmethod
    def rewrite(self, content: str) -> str:
        """Rewrite every fragment of this rule's dialect in the block body.

        Fragments naming an unknown tool are left exactly as they were.

        Args:
            content: Inner text of a ``<function_calls>`` block

        Returns:
            Rewritten body, or ``content`` unchanged if nothing was rewritten
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Rule name for logging and debugging."""
        pass
