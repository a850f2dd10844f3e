"""Assistant message parsing pipeline.

Combines the two stages every parse goes through:

1. FormatNormalizer rewrites alternate ``<function_calls>`` dialects into
   canonical ``<tool><param>value</param></tool>`` markup.
2. StreamingScanner walks the normalized text once and emits content blocks.

``parse_assistant_message`` is a pure function of its input. Callers that
receive the model output as a stream can use ``AssistantMessageParser``,
which only owns the growing transcript buffer and re-parses it in full on
every chunk.
"""

from __future__ import annotations

import logging
import time
from typing import List, Optional

from ..models.content import ContentBlock
from .config import ParserConfig, get_config
from .format_normalizers import FormatNormalizer
from .streaming_scanner import StreamingScanner
from .tool_registry import ToolRegistry, get_default_registry

logger = logging.getLogger(__name__)


def parse_assistant_message(
    text: str,
    registry: Optional[ToolRegistry] = None,
    config: Optional[ParserConfig] = None,
) -> List[ContentBlock]:
    """Parse raw model output into ordered content blocks.

    Args:
        text: Cumulative model output received so far
        registry: Known tool/parameter names (defaults to the configured registry)
        config: Parser configuration (defaults to ``get_config()``)

    Returns:
        Content blocks in order of appearance; only the last may be partial

    Example:
        >>> blocks = parse_assistant_message(
        ...     "Reading it now.\\n<read_file><path>a.txt</path></read_file>"
        ... )
        >>> [block.type for block in blocks]
        ['text', 'tool_use']
    """
    registry = registry or get_default_registry()
    config = config or get_config()

    start_time = time.perf_counter()

    normalized = text
    if config.normalize_dialects:
        normalized = FormatNormalizer(registry).normalize(text)
    blocks = StreamingScanner(registry).scan(normalized)

    elapsed_ms = (time.perf_counter() - start_time) * 1000
    if elapsed_ms > config.slow_parse_ms:
        logger.warning(
            f"Slow parse: {len(text)} chars into {len(blocks)} block(s) in {elapsed_ms:.2f}ms"
        )
    else:
        logger.debug(f"Parsed {len(text)} chars into {len(blocks)} block(s) in {elapsed_ms:.2f}ms")

    return blocks


class AssistantMessageParser:
    """Owns a streamed transcript buffer and re-parses it on every chunk."""

    def __init__(
        self,
        registry: Optional[ToolRegistry] = None,
        config: Optional[ParserConfig] = None,
    ):
        """Initialize the parser.

        Args:
            registry: Known tool/parameter names (defaults to the configured registry)
            config: Parser configuration (defaults to ``get_config()``)
        """
        self.registry = registry or get_default_registry()
        self.config = config or get_config()
        self._buffer = ""
        self._blocks: List[ContentBlock] = []

    @property
    def buffer(self) -> str:
        """Transcript received so far."""
        return self._buffer

    @property
    def blocks(self) -> List[ContentBlock]:
        """Blocks from the most recent parse."""
        return list(self._blocks)

    def process_chunk(self, chunk: str) -> List[ContentBlock]:
        """Append a chunk and re-parse the whole transcript.

        Args:
            chunk: Newly received model output

        Returns:
            Fresh block list for the cumulative transcript
        """
        self._buffer += chunk
        self._blocks = parse_assistant_message(self._buffer, self.registry, self.config)
        return self.blocks

    def finalize(self) -> List[ContentBlock]:
        """Return the final blocks once the stream has ended.

        Nothing is under construction after the stream ends, so every block is
        returned with ``partial=False``. A tool whose closing tag never
        arrived keeps the parameters that were received.
        """
        self._blocks = [block.model_copy(update={"partial": False}) for block in self._blocks]
        logger.debug(f"Finalized message with {len(self._blocks)} block(s)")
        return self.blocks

    def reset(self) -> None:
        """Clear the buffer before the next message."""
        self._buffer = ""
        self._blocks = []
