"""Stream adapter for converting Chat Completions chunks to Messages events.

Chat Completion Chunks:
    {"choices":[{"delta":{"content":"Hello"},"index":0}]}
    {"choices":[{"delta":{"tool_calls":[...]},"index":0}]}
    {"choices":[{"delta":{},"finish_reason":"stop","index":0}]}
    [DONE]

Messages Events:
    event: message_start
    data: {"type":"message_start","message":{...}}

    event: content_block_start
    data: {"type":"content_block_start","index":0,"content_block":{"type":"text","text":""}}

    event: content_block_delta
    data: {"type":"content_block_delta","index":0,"delta":{"type":"text_delta","text":"Hello"}}

    event: content_block_stop
    data: {"type":"content_block_stop","index":0}

    event: message_delta
    data: {"type":"message_delta","delta":{"stop_reason":"end_turn"},"usage":{"output_tokens":10}}

    event: message_stop
    data: {"type":"message_stop"}
"""

import logging
from typing import Any, AsyncIterator, Optional

from ..core.records import ChunkRecord, RawRecord, ToolCallFragment
from ..core.stream import DisconnectChecker, StreamAdapter, StreamEvent
from ..responses.translator import generate_call_id
from ..types.messages import (
    EVENT_CONTENT_BLOCK_DELTA,
    EVENT_CONTENT_BLOCK_START,
    EVENT_CONTENT_BLOCK_STOP,
    EVENT_MESSAGE_DELTA,
    EVENT_MESSAGE_START,
    EVENT_MESSAGE_STOP,
)
from .translator import convert_stop_reason, generate_message_id

logger = logging.getLogger("chatbridge")


class ChatToMessagesStreamAdapter(StreamAdapter):
    """Converts canonical stream chunks into Messages streaming events.

    tool_use blocks stay open until the stream finishes, so argument
    fragments that arrive interleaved with other calls or with text are
    still streamed into the right block. A text block is closed as soon as
    a tool block opens; later text opens a new text block. Tool call
    fragments are buffered until the call has a name, because the tool_use
    block start must carry it.
    """

    name = "MessagesStreamAdapter"

    def __init__(self, model: str, message_id: Optional[str] = None):
        """Initialize the stream adapter.

        Args:
            model: Requested model, reported in message_start
            message_id: Message id to report; generated when omitted
        """
        super().__init__()
        self.message_id = message_id or generate_message_id()
        self.model = model

        # Content block tracking
        self.next_block_index = 0
        self.text_block_index: Optional[int] = None

        # Tool call tracking (by chunk tool call index)
        self.tool_calls: dict[int, dict[str, Any]] = {}

        self.finish_reason: Optional[str] = None
        self.output_tokens = 0

    def _start_events(self) -> list[StreamEvent]:
        return [{
            "type": EVENT_MESSAGE_START,
            "message": {
                "id": self.message_id,
                "type": "message",
                "role": "assistant",
                "content": [],
                "model": self.model,
                "stop_reason": None,
                "stop_sequence": None,
                "usage": {"input_tokens": 0, "output_tokens": 0},
            },
        }]

    def _process_record(self, record: ChunkRecord) -> list[StreamEvent]:
        events: list[StreamEvent] = []

        for choice in record.choices:
            if choice.index != 0:
                logger.debug(f"{self.name}: Ignoring choice {choice.index}")
                continue

            if choice.text:
                events.extend(self._process_text_delta(choice.text))

            for fragment in choice.tool_calls:
                events.extend(self._process_tool_call_delta(fragment))

            if choice.finish_reason:
                self.finish_reason = choice.finish_reason
                events.extend(self._close_text_block())

        if record.usage:
            self.output_tokens = record.usage.get("completion_tokens") or 0

        return events

    def _finish_events(self) -> list[StreamEvent]:
        events: list[StreamEvent] = []

        # Calls that never got a name still become blocks
        for tc_data in self.tool_calls.values():
            if tc_data["block_index"] is None:
                events.extend(self._open_tool_block(tc_data))

        events.extend(self._close_text_block())

        tool_block_indices = sorted(
            tc_data["block_index"] for tc_data in self.tool_calls.values()
        )
        for block_index in tool_block_indices:
            events.append({"type": EVENT_CONTENT_BLOCK_STOP, "index": block_index})

        events.append({
            "type": EVENT_MESSAGE_DELTA,
            "delta": {
                "stop_reason": convert_stop_reason(self.finish_reason),
                "stop_sequence": None,
            },
            "usage": {"output_tokens": self.output_tokens},
        })
        events.append({"type": EVENT_MESSAGE_STOP})
        return events

    def _process_text_delta(self, text: str) -> list[StreamEvent]:
        events: list[StreamEvent] = []

        if self.text_block_index is None:
            self.text_block_index = self._next_block()
            events.append({
                "type": EVENT_CONTENT_BLOCK_START,
                "index": self.text_block_index,
                "content_block": {"type": "text", "text": ""},
            })

        events.append({
            "type": EVENT_CONTENT_BLOCK_DELTA,
            "index": self.text_block_index,
            "delta": {"type": "text_delta", "text": text},
        })
        return events

    def _process_tool_call_delta(self, fragment: ToolCallFragment) -> list[StreamEvent]:
        tc_data = self.tool_calls.get(fragment.index)
        if tc_data is None:
            tc_data = {"id": None, "name": "", "arguments": "", "block_index": None}
            self.tool_calls[fragment.index] = tc_data

        if fragment.id and not tc_data["id"]:
            tc_data["id"] = fragment.id
        if fragment.name and not tc_data["name"]:
            tc_data["name"] = fragment.name

        if tc_data["block_index"] is None:
            if fragment.arguments:
                tc_data["arguments"] += fragment.arguments
            if tc_data["name"]:
                return self._open_tool_block(tc_data)
            return []

        if not fragment.arguments:
            return []

        tc_data["arguments"] += fragment.arguments
        return [{
            "type": EVENT_CONTENT_BLOCK_DELTA,
            "index": tc_data["block_index"],
            "delta": {"type": "input_json_delta", "partial_json": fragment.arguments},
        }]

    def _open_tool_block(self, tc_data: dict[str, Any]) -> list[StreamEvent]:
        """Start a tool_use block and replay the buffered arguments."""
        events = self._close_text_block()

        tc_data["id"] = tc_data["id"] or generate_call_id()
        tc_data["block_index"] = self._next_block()
        events.append({
            "type": EVENT_CONTENT_BLOCK_START,
            "index": tc_data["block_index"],
            "content_block": {
                "type": "tool_use",
                "id": tc_data["id"],
                "name": tc_data["name"],
                "input": {},
            },
        })

        if tc_data["arguments"]:
            events.append({
                "type": EVENT_CONTENT_BLOCK_DELTA,
                "index": tc_data["block_index"],
                "delta": {"type": "input_json_delta", "partial_json": tc_data["arguments"]},
            })
        return events

    def _next_block(self) -> int:
        block_index = self.next_block_index
        self.next_block_index += 1
        return block_index

    def _close_text_block(self) -> list[StreamEvent]:
        if self.text_block_index is None:
            return []
        block_index = self.text_block_index
        self.text_block_index = None
        return [{"type": EVENT_CONTENT_BLOCK_STOP, "index": block_index}]


async def adapt_chat_stream_to_messages(
    model: str,
    chunks: AsyncIterator[RawRecord],
    disconnect_checker: Optional[DisconnectChecker] = None,
) -> AsyncIterator[bytes]:
    """Convenience function to adapt a chunk stream with a fresh adapter.

    Args:
        model: Requested model
        chunks: Canonical chunks in arrival order
        disconnect_checker: Optional client disconnect check

    Yields:
        Messages SSE events
    """
    adapter = ChatToMessagesStreamAdapter(model)
    async for event in adapter.adapt_stream(chunks, disconnect_checker):
        yield event
