"""Stream adapter for converting Chat Completions chunks to Responses events.

Chat Completion Chunks:
    {"id":"chatcmpl-1","choices":[{"delta":{"content":"Hello"},"index":0}]}
    {"id":"chatcmpl-1","choices":[{"delta":{},"finish_reason":"stop","index":0}]}
    [DONE]

Responses Events:
    event: response.created
    data: {"type":"response.created","response":{...,"status":"in_progress"}}

    event: response.output_text.delta
    data: {"type":"response.output_text.delta","delta":"Hello",...}

    event: response.output_text.done
    data: {"type":"response.output_text.done","text":"Hello",...}

    event: response.done
    data: {"type":"response.done","response":{...,"status":"completed"}}

One adapter instance holds the translation state of exactly one streaming
exchange. It is not reentrant: feed it one chunk at a time, in arrival order.
"""

import logging
import time
from typing import Any, AsyncIterator, Optional

from ..core.records import ChunkRecord, RawRecord, ToolCallFragment
from ..core.stream import DisconnectChecker, StreamAdapter, StreamEvent
from ..types.responses import (
    EVENT_FUNCTION_CALL_ARGS_DELTA,
    EVENT_FUNCTION_CALL_ARGS_START,
    EVENT_OUTPUT_TEXT_DELTA,
    EVENT_OUTPUT_TEXT_DONE,
    EVENT_RESPONSE_CREATED,
    EVENT_RESPONSE_DONE,
    FunctionCallItem,
    MessageItem,
    OutputItem,
    ResponseObject,
    ResponseUsage,
)
from .translator import (
    convert_usage,
    function_call_item_id,
    generate_call_id,
    generate_response_id,
    message_item_id,
)

logger = logging.getLogger("chatbridge")


class ChatToResponsesStreamAdapter(StreamAdapter):
    """Converts canonical stream chunks into Responses streaming events.

    State kept across chunks:
    - the authoritative response id (last non-empty chunk id wins)
    - one text slot: its output index, accumulated text, open/closed flags
    - one entry per tool call index, so the start event is sent only once
    - sequence numbers and the next free output index
    """

    name = "ResponsesStreamAdapter"

    def __init__(self, model: str, response_id: Optional[str] = None):
        """Initialize the stream adapter.

        Args:
            model: Requested model, reported on every lifecycle event
            response_id: Placeholder id used until a chunk supplies one
        """
        super().__init__()
        self.response_id = response_id or generate_response_id()
        self.model = model
        self.created_at = int(time.time())

        # Sequence tracking
        self.sequence_number = 0
        self.next_output_index = 0

        # Text slot
        self.text_output_index: Optional[int] = None
        self.text_item_id: Optional[str] = None
        self.text_closed = False
        self.accumulated_text = ""

        # Tool call tracking (by chunk tool call index)
        self.tool_calls: dict[int, dict[str, Any]] = {}

        self.usage: Optional[ResponseUsage] = None

    def _start_events(self) -> list[StreamEvent]:
        return [self._event(EVENT_RESPONSE_CREATED, response={
            "id": self.response_id,
            "object": "response",
            "created_at": self.created_at,
            "model": self.model,
            "output": [],
            "status": "in_progress",
        })]

    def _finish_events(self) -> list[StreamEvent]:
        response: ResponseObject = {
            "id": self.response_id,
            "object": "response",
            "created_at": self.created_at,
            "model": self.model,
            "output": self._build_output(),
            "output_text": self.accumulated_text,
            "status": "completed",
        }
        if self.usage:
            response["usage"] = self.usage

        return [self._event(EVENT_RESPONSE_DONE, response=response)]

    def _process_record(self, record: ChunkRecord) -> list[StreamEvent]:
        events: list[StreamEvent] = []

        if record.id:
            self.response_id = record.id

        for choice in record.choices:
            if choice.index != 0:
                logger.debug(f"{self.name}: Ignoring choice {choice.index}")
                continue

            if choice.text:
                events.extend(self._process_text_delta(choice.text))

            for fragment in choice.tool_calls:
                events.extend(self._process_tool_call_delta(fragment))

            if choice.finish_reason and self.text_output_index is not None and not self.text_closed:
                self.text_closed = True
                events.append(self._event(
                    EVENT_OUTPUT_TEXT_DONE,
                    item_id=self.text_item_id,
                    output_index=self.text_output_index,
                    content_index=0,
                    text=self.accumulated_text,
                ))

        if record.usage:
            self.usage = convert_usage(record.usage)

        return events

    def _process_text_delta(self, text: str) -> list[StreamEvent]:
        if self.text_closed:
            logger.debug(f"{self.name}: Dropping text after output_text.done")
            return []

        if self.text_output_index is None:
            self.text_output_index = self._reserve_output_index()
            self.text_item_id = message_item_id(self.response_id)

        self.accumulated_text += text
        return [self._event(
            EVENT_OUTPUT_TEXT_DELTA,
            item_id=self.text_item_id,
            output_index=self.text_output_index,
            content_index=0,
            delta=text,
        )]

    def _process_tool_call_delta(self, fragment: ToolCallFragment) -> list[StreamEvent]:
        events: list[StreamEvent] = []
        tc_data = self.tool_calls.get(fragment.index)

        if tc_data is None:
            call_id = fragment.id or generate_call_id()
            tc_data = {
                "call_id": call_id,
                "item_id": function_call_item_id(call_id),
                "name": fragment.name or "",
                "arguments": "",
                "output_index": self._reserve_output_index(),
            }
            self.tool_calls[fragment.index] = tc_data

            item: FunctionCallItem = {
                "id": tc_data["item_id"],
                "type": "function_call",
                "name": tc_data["name"],
                "call_id": call_id,
                "status": "in_progress",
            }
            events.append(self._event(
                EVENT_FUNCTION_CALL_ARGS_START,
                output_index=tc_data["output_index"],
                item=item,
            ))
        elif fragment.name and not tc_data["name"]:
            tc_data["name"] = fragment.name

        if fragment.arguments:
            tc_data["arguments"] += fragment.arguments
            events.append(self._event(
                EVENT_FUNCTION_CALL_ARGS_DELTA,
                item_id=tc_data["item_id"],
                output_index=tc_data["output_index"],
                delta=fragment.arguments,
            ))

        return events

    def _build_output(self) -> list[OutputItem]:
        items: dict[int, OutputItem] = {}

        if self.text_output_index is not None:
            message_item: MessageItem = {
                "id": self.text_item_id,
                "type": "message",
                "role": "assistant",
                "status": "completed",
                "content": [{
                    "type": "output_text",
                    "text": self.accumulated_text,
                    "annotations": [],
                }],
            }
            items[self.text_output_index] = message_item

        for tc_data in self.tool_calls.values():
            function_call_item: FunctionCallItem = {
                "id": tc_data["item_id"],
                "type": "function_call",
                "status": "completed",
                "name": tc_data["name"],
                "arguments": tc_data["arguments"],
                "call_id": tc_data["call_id"],
            }
            items[tc_data["output_index"]] = function_call_item

        return [item for _, item in sorted(items.items())]

    def _event(self, event_type: str, **fields: Any) -> StreamEvent:
        self.sequence_number += 1
        return {"type": event_type, "sequence_number": self.sequence_number, **fields}

    def _reserve_output_index(self) -> int:
        """Return the next output_index and advance the counter."""
        output_index = self.next_output_index
        self.next_output_index += 1
        return output_index


async def adapt_chat_stream_to_responses(
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
        Responses SSE events
    """
    adapter = ChatToResponsesStreamAdapter(model)
    async for event in adapter.adapt_stream(chunks, disconnect_checker):
        yield event
