"""Unit tests for the parsing pipeline and the stream helper.

Tests cover:
- End-to-end parsing of every wire dialect
- Prefix-by-prefix streaming behaviour
- AssistantMessageParser buffering, finalize and reset
- Block list serialization
"""

import pytest

from markup_stream.models.content import ContentBlockList, TextBlock, ToolInvocation
from markup_stream.services.config import ParserConfig
from markup_stream.services.message_parser import (
    AssistantMessageParser,
    parse_assistant_message,
)
from markup_stream.services.tool_registry import ToolRegistry


@pytest.fixture
def registry() -> ToolRegistry:
    return ToolRegistry(
        tool_names={"read_file", "write_to_file", "execute_command", "list_files"},
        param_names={"path", "content", "command", "recursive"},
        content_bearing_tools={"write_to_file"},
    )


@pytest.fixture
def config() -> ParserConfig:
    return ParserConfig()


WELL_FORMED_MESSAGE = (
    "I'll create the file and then run the tests.\n\n"
    "<write_to_file>\n"
    "<path>notes.md</path>\n"
    "<content>\n"
    "# Notes\n"
    "Close parameters with </content> tags.\n"
    "</content>\n"
    "</write_to_file>\n\n"
    "<execute_command>\n"
    "<command>pytest -q &amp;&amp; echo ok</command>\n"
    "</execute_command>\n"
    "Waiting for results."
)


# =============================================================================
# Pipeline
# =============================================================================


class TestParseAssistantMessage:
    """Test the normalize-then-scan pipeline."""

    def test_canonical_dialect(self, registry, config):
        """Canonical markup is scanned directly."""
        blocks = parse_assistant_message(
            "<read_file><path>a.txt</path></read_file>", registry, config
        )

        assert blocks == [
            ToolInvocation(
                name="read_file",
                params={"path": "a.txt"},
                partial=False,
                raw="<read_file><path>a.txt</path></read_file>",
            )
        ]

    def test_invoke_name_dialect(self, registry, config):
        """Named invoke blocks become tool invocations."""
        text = (
            "Looking now.\n"
            "<function_calls>\n"
            '<invoke name="read_file">\n'
            "<parameters>\n"
            '<parameter name="path">src/app.py</parameter>\n'
            "</parameters>\n"
            "</invoke>\n"
            "</function_calls>"
        )

        blocks = parse_assistant_message(text, registry, config)

        assert blocks[0] == TextBlock(text="Looking now.", partial=False)
        assert blocks[1].name == "read_file"
        assert blocks[1].params == {"path": "src/app.py"}
        assert blocks[1].partial is False

    def test_invoke_tool_dialect(self, registry, config):
        """invoke_tool blocks become tool invocations."""
        text = (
            "<function_calls><invoke_tool><tool_name>list_files</tool_name>"
            "<path>.</path><recursive>true</recursive></invoke_tool></function_calls>"
        )

        blocks = parse_assistant_message(text, registry, config)

        assert len(blocks) == 1
        assert blocks[0].name == "list_files"
        assert blocks[0].params == {"path": ".", "recursive": "true"}

    def test_invalid_invoke_tool_is_prose(self, registry, config):
        """An unknown tool in the invoke_tool dialect stays prose."""
        text = (
            "<function_calls><invoke_tool><tool_name>not_a_tool</tool_name>"
            "<path>.</path></invoke_tool></function_calls>"
        )

        blocks = parse_assistant_message(text, registry, config)

        assert blocks == [TextBlock(text=text, partial=True)]

    def test_normalization_disabled(self, registry):
        """Dialect blocks stay prose when normalization is turned off."""
        text = '<function_calls><invoke name="read_file"><path>a</path></invoke></function_calls>'

        blocks = parse_assistant_message(text, registry, ParserConfig(normalize_dialects=False))

        assert blocks == [TextBlock(text=text, partial=True)]

    def test_full_message(self, registry, config):
        """A realistic message yields prose, two tools and trailing prose."""
        blocks = parse_assistant_message(WELL_FORMED_MESSAGE, registry, config)

        assert [block.type for block in blocks] == ["text", "tool_use", "tool_use", "text"]
        assert blocks[1].params["content"] == (
            "# Notes\nClose parameters with </content> tags."
        )
        assert blocks[2].params["command"] == "pytest -q && echo ok"
        assert blocks[3] == TextBlock(text="Waiting for results.", partial=True)


# =============================================================================
# Streaming Properties
# =============================================================================


class TestStreamingPrefixes:
    """Parse every prefix of a message as a stream would deliver it."""

    def test_at_most_one_partial_block_and_it_is_last(self, registry, config):
        """Only the trailing block may be partial at any prefix."""
        for k in range(len(WELL_FORMED_MESSAGE) + 1):
            blocks = parse_assistant_message(WELL_FORMED_MESSAGE[:k], registry, config)
            partial_positions = [i for i, block in enumerate(blocks) if block.partial]
            assert partial_positions in ([], [len(blocks) - 1]), k

    def test_closed_blocks_never_change(self, registry, config):
        """A block closed at prefix k is identical at every later prefix."""
        previous_closed = []
        for k in range(len(WELL_FORMED_MESSAGE) + 1):
            blocks = parse_assistant_message(WELL_FORMED_MESSAGE[:k], registry, config)
            closed = [block for block in blocks if not block.partial]
            assert closed[: len(previous_closed)] == previous_closed, k
            previous_closed = closed

    def test_final_prefix_matches_direct_parse(self, registry, config):
        """Streaming to the end converges on parsing the whole message."""
        parser = AssistantMessageParser(registry, config)
        for char in WELL_FORMED_MESSAGE:
            blocks = parser.process_chunk(char)

        assert blocks == parse_assistant_message(WELL_FORMED_MESSAGE, registry, config)


# =============================================================================
# Stream Helper
# =============================================================================


class TestAssistantMessageParser:
    """Test the buffer-owning stream helper."""

    def test_process_chunks(self, registry, config):
        """Each chunk re-parses the cumulative buffer."""
        parser = AssistantMessageParser(registry, config)

        first = parser.process_chunk("<read_file><pa")
        assert first[0].params == {}
        assert first[0].partial is True

        second = parser.process_chunk("th>a.t")
        assert second[0].params == {"path": "a.t"}

        third = parser.process_chunk("xt</path></read_file>")
        assert third[0].params == {"path": "a.txt"}
        assert third[0].partial is False
        assert parser.buffer == "<read_file><path>a.txt</path></read_file>"

    def test_blocks_property_returns_copy(self, registry, config):
        """Mutating the returned list does not affect the parser."""
        parser = AssistantMessageParser(registry, config)
        parser.process_chunk("Hello")

        parser.blocks.clear()

        assert len(parser.blocks) == 1

    def test_finalize_clears_partial_flags(self, registry, config):
        """After the stream ends no block is partial."""
        parser = AssistantMessageParser(registry, config)
        parser.process_chunk("Sure.\n<read_file><path>a.txt")

        blocks = parser.finalize()

        assert [block.partial for block in blocks] == [False, False]
        assert blocks[1].params == {"path": "a.txt"}

    def test_reset(self, registry, config):
        """Reset clears the buffer and blocks."""
        parser = AssistantMessageParser(registry, config)
        parser.process_chunk("Hello")

        parser.reset()

        assert parser.buffer == ""
        assert parser.blocks == []


class TestSerialization:
    """Test block list round trips through JSON."""

    def test_block_list_json(self, registry, config):
        """Blocks validate back into the right models by type."""
        blocks = parse_assistant_message("Hi <read_file><path>a</path></read_file>", registry, config)

        restored = ContentBlockList.validate_json(ContentBlockList.dump_json(blocks))

        assert restored == blocks
        assert isinstance(restored[0], TextBlock)
        assert isinstance(restored[1], ToolInvocation)

    def test_to_openai_format(self):
        """Invocations convert to OpenAI tool_calls entries."""
        invocation = ToolInvocation(name="read_file", params={"path": "a.txt"}, partial=False)

        assert invocation.to_openai_format("call_1") == {
            "id": "call_1",
            "type": "function",
            "function": {"name": "read_file", "arguments": '{"path": "a.txt"}'},
        }
