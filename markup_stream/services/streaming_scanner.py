"""Single-pass scanner turning canonical tool markup into content blocks.

The scanner walks normalized model output once, left to right, and emits an
ordered list of ``TextBlock`` and ``ToolInvocation`` models. It is meant to be
re-run on the whole cumulative transcript every time a new chunk arrives, so
an unterminated construct at the end of the input is never an error: it is
returned as the single trailing block with ``partial=True``.

Scan states (exactly one is active at any position):

    Idle     no block open
    InText   prose accumulating since ``start``
    InTool   tool open, no parameter open
    InParam  parameter value accumulating inside an open tool

Every tag ends with ``>``, so tag checks only run on ``>`` characters and only
look back as far as the longest registered tag. Total cost stays linear in
the input length.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Union

from ..models.content import ContentBlock, TextBlock, ToolInvocation
from .config import DEFAULT_CONTENT_BEARING_TOOLS
from .tool_registry import CONTENT_PARAM, ToolRegistry

logger = logging.getLogger(__name__)

COMMAND_TOOL = "execute_command"
COMMAND_PARAM = "command"


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class InText:
    start: int


@dataclass(frozen=True)
class InTool:
    invocation: ToolInvocation
    tag_start: int
    body_start: int


@dataclass(frozen=True)
class InParam:
    invocation: ToolInvocation
    tag_start: int
    body_start: int
    param: str
    value_start: int


ScanState = Union[Idle, InText, InTool, InParam]


def _strip_outer_newline(value: str) -> str:
    """Remove at most one leading and one trailing newline."""
    if value.startswith("\n"):
        value = value[1:]
    if value.endswith("\n"):
        value = value[:-1]
    return value


def finalize_param_value(tool_name: str, param: str, raw: str) -> str:
    """Turn raw text between a parameter's tags into its stored value.

    Values are trimmed. ``execute_command``'s ``command`` has ``&amp;``
    decoded to ``&`` because models disagree on escaping it; no other entity
    is decoded. ``content`` additionally loses one outer newline, which the
    trim has already removed.
    """
    value = raw.strip()
    if tool_name == COMMAND_TOOL and param == COMMAND_PARAM:
        value = value.replace("&amp;", "&")
    if param == CONTENT_PARAM:
        value = _strip_outer_newline(value)
    return value


def _match_opening_tag(
    text: str,
    start: int,
    end: int,
    is_known: Callable[[str], bool],
    max_length: int,
) -> Optional[str]:
    """Return ``name`` if ``text[start:end]`` ends with ``<name>`` and ``is_known(name)``.

    Names never contain ``<``, so the only candidate is the text after the
    last ``<`` within reach of the longest tag.
    """
    lower = max(start, end - max_length)
    lt = text.rfind("<", lower, end - 1)
    if lt == -1:
        return None
    name = text[lt + 1:end - 1]
    if is_known(name):
        return name
    return None


class StreamingScanner:
    """Scans canonical tool markup into an ordered list of content blocks."""

    def __init__(self, registry: ToolRegistry):
        """Initialize the scanner.

        Args:
            registry: Known tool, parameter and content-bearing tool names
        """
        self.registry = registry

    def scan(self, text: str) -> List[ContentBlock]:
        """Scan ``text`` into content blocks.

        Args:
            text: Normalized model output (the whole transcript so far)

        Returns:
            Blocks in order of appearance; only the last may be partial

        Example:
            >>> scanner = StreamingScanner(registry)
            >>> scanner.scan("<read_file><path>a.t")
            [ToolInvocation(type='tool_use', name='read_file', params={'path': 'a.t'}, partial=True, ...)]
        """
        blocks: List[ContentBlock] = []
        state: ScanState = Idle()

        for index, char in enumerate(text):
            end = index + 1

            if isinstance(state, InParam):
                state = self._scan_param(text, end, char, state)
                continue

            if isinstance(state, InTool):
                state = self._scan_tool(text, end, char, state, blocks)
                continue

            if isinstance(state, Idle):
                state = InText(start=index)

            state = self._scan_text(text, end, char, state, blocks)

        self._finish(text, state, blocks)
        logger.debug(f"Scanned {len(text)} chars into {len(blocks)} block(s)")
        return blocks

    def _scan_param(self, text: str, end: int, char: str, state: InParam) -> ScanState:
        if char != ">":
            return state

        closing_tag = f"</{state.param}>"
        if not text.endswith(closing_tag, state.value_start, end):
            return state

        invocation = state.invocation
        raw_value = text[state.value_start:end - len(closing_tag)]
        invocation.params[state.param] = finalize_param_value(
            invocation.name, state.param, raw_value
        )
        return InTool(invocation, state.tag_start, state.body_start)

    def _scan_tool(
        self,
        text: str,
        end: int,
        char: str,
        state: InTool,
        blocks: List[ContentBlock],
    ) -> ScanState:
        if char != ">":
            return state

        invocation = state.invocation
        if text.endswith(f"</{invocation.name}>", state.body_start, end):
            invocation.partial = False
            invocation.raw = text[state.tag_start:end]
            blocks.append(invocation)
            return Idle()

        param = _match_opening_tag(
            text,
            state.body_start,
            end,
            self.registry.is_param,
            self.registry.param_opening_tag_length,
        )
        if param is not None:
            return InParam(invocation, state.tag_start, state.body_start, param, end)

        if self.registry.is_content_bearing(invocation.name) and text.endswith(
            f"</{CONTENT_PARAM}>", state.body_start, end
        ):
            self._recapture_content(text[state.body_start:end], invocation)

        return state

    def _scan_text(
        self,
        text: str,
        end: int,
        char: str,
        state: InText,
        blocks: List[ContentBlock],
    ) -> ScanState:
        if char != ">":
            return state

        tool_name = _match_opening_tag(
            text,
            state.start,
            end,
            self.registry.is_tool,
            self.registry.tool_opening_tag_length,
        )
        if tool_name is None:
            return state

        tag_start = end - len(tool_name) - 2
        prose = text[state.start:tag_start].strip()
        if prose:
            blocks.append(TextBlock(text=prose, partial=False))

        return InTool(ToolInvocation(name=tool_name, partial=True), tag_start, end)

    @staticmethod
    def _recapture_content(body: str, invocation: ToolInvocation) -> None:
        """Re-derive ``content`` from its first opening and last closing tag.

        File payloads may contain the literal ``</content>``, which closes the
        parameter early. Taking the span up to the last closing tag seen so
        far recovers the full payload once the tool itself closes.
        """
        opening_tag = f"<{CONTENT_PARAM}>"
        opening = body.find(opening_tag)
        if opening == -1:
            return

        value_start = opening + len(opening_tag)
        value_end = body.rfind(f"</{CONTENT_PARAM}>")
        if value_end > value_start:
            invocation.params[CONTENT_PARAM] = _strip_outer_newline(body[value_start:value_end])

    @staticmethod
    def _finish(text: str, state: ScanState, blocks: List[ContentBlock]) -> None:
        """Emit whatever construct was still open when the input ended."""
        if isinstance(state, InParam):
            invocation = state.invocation
            invocation.params[state.param] = finalize_param_value(
                invocation.name, state.param, text[state.value_start:]
            )
            invocation.raw = text[state.tag_start:]
            blocks.append(invocation)
        elif isinstance(state, InTool):
            state.invocation.raw = text[state.tag_start:]
            blocks.append(state.invocation)
        elif isinstance(state, InText):
            prose = text[state.start:].strip()
            if prose:
                blocks.append(TextBlock(text=prose, partial=True))


def parse(
    text: str,
    tool_names: Iterable[str],
    param_names: Iterable[str],
) -> List[ContentBlock]:
    """Scan canonical markup using explicit name sets.

    Args:
        text: Normalized model output
        tool_names: Known tool names
        param_names: Known parameter names

    Returns:
        Ordered content blocks

    Raises:
        RegistryError: If either name set is empty or contains invalid names
    """
    tool_names = frozenset(tool_names)
    registry = ToolRegistry(
        tool_names=tool_names,
        param_names=frozenset(param_names),
        content_bearing_tools=DEFAULT_CONTENT_BEARING_TOOLS & tool_names,
    )
    return StreamingScanner(registry).scan(text)
