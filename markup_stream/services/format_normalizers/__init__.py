"""Format normalizers for alternate tool-call dialects.

This package provides a Strategy Pattern implementation for rewriting the
tool-call envelopes emitted by different model families into the canonical
``<tool><param>value</param></tool>`` markup the streaming scanner reads.

Main Components:
- FormatRewriter: Abstract base class for rewrite rules
- FormatNormalizer: Chain of Responsibility running rules in fallback order

Supported Dialects (inside <function_calls> blocks):
- Named invoke: <invoke name="tool"><param>value</param></invoke>
- Named invoke with wrapper: <invoke name="tool"><parameters><parameter name="p">v</parameter></parameters></invoke>
- Invoke tool: <invoke_tool><tool_name>tool</tool_name><param>value</param></invoke_tool>

Usage:
    from .format_normalizers import FormatNormalizer

    normalizer = FormatNormalizer(registry)
    canonical = normalizer.normalize(model_output)
"""

from .base import FormatRewriter, normalize_parameters
from .chain import FormatNormalizer, normalize

__all__ = [
    "FormatRewriter",
    "FormatNormalizer",
    "normalize",
    "normalize_parameters",
]
