"""Types for the assistant Messages dialect (/v1/messages).

Requests are plain mappings read block by block during normalization;
these shapes describe the projected response and its content blocks.
"""

from typing import Any, Literal, Union
from typing_extensions import TypedDict


class TextBlockParam(TypedDict, total=False):
    type: Literal["text"]
    text: str


class ToolUseBlockParam(TypedDict, total=False):
    """An assistant request to run a tool. `input` is a JSON object."""
    type: Literal["tool_use"]
    id: str
    name: str
    input: dict[str, Any]


StopReason = Literal["end_turn", "max_tokens", "stop_sequence", "tool_use", "refusal"]


class MessagesUsage(TypedDict, total=False):
    input_tokens: int
    output_tokens: int


class MessageObject(TypedDict, total=False):
    """Response body for POST /v1/messages."""
    id: str
    type: Literal["message"]
    role: Literal["assistant"]
    content: list[Union[TextBlockParam, ToolUseBlockParam]]
    model: str
    stop_reason: StopReason | None
    stop_sequence: str | None
    usage: MessagesUsage


# =============================================================================
# Event Type Constants
# =============================================================================

EVENT_MESSAGE_START = "message_start"
EVENT_CONTENT_BLOCK_START = "content_block_start"
EVENT_CONTENT_BLOCK_DELTA = "content_block_delta"
EVENT_CONTENT_BLOCK_STOP = "content_block_stop"
EVENT_MESSAGE_DELTA = "message_delta"
EVENT_MESSAGE_STOP = "message_stop"
