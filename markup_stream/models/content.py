"""Pydantic models for parsed assistant message content.

A parse produces an ordered list of content blocks: prose spans and tool
invocations. Blocks are created fresh on every parse call and carry a
``partial`` flag for the single block that was still under construction when
the input ended.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Dict, List, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class TextBlock(BaseModel):
    """A prose span between (or around) tool invocations."""

    type: Literal["text"] = "text"
    text: str = Field(..., description="Prose with surrounding whitespace trimmed")
    partial: bool = Field(
        False,
        description="True only when the input ended while this prose was accumulating",
    )


class ToolInvocation(BaseModel):
    """A structured tool call scanned from canonical ``<tool><param>..</param></tool>`` markup."""

    type: Literal["tool_use"] = "tool_use"
    name: str = Field(..., description="Tool name, drawn from the tool registry")
    params: Dict[str, str] = Field(
        default_factory=dict,
        description="Parameter values in order of first appearance",
    )
    partial: bool = Field(
        True,
        description="True until the tool's own closing tag has been seen",
    )
    raw: str = Field(
        "",
        description="Slice of the normalized text this invocation was scanned from",
    )

    def to_openai_format(self, call_id: str) -> Dict[str, Any]:
        """Convert to OpenAI function calling format.

        Args:
            call_id: Unique identifier for this tool call

        Returns:
            Dictionary matching OpenAI's tool_calls structure with:
            - id: unique call identifier
            - type: "function"
            - function: object with name and JSON-encoded arguments
        """
        return {
            "id": call_id,
            "type": "function",
            "function": {
                "name": self.name,
                "arguments": json.dumps(self.params),
            },
        }


ContentBlock = Annotated[Union[TextBlock, ToolInvocation], Field(discriminator="type")]

# Validates/serializes whole block lists, e.g. when handing them to an executor over JSON.
ContentBlockList = TypeAdapter(List[ContentBlock])
