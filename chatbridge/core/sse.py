"""SSE (Server-Sent Events) decoding and encoding."""

import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional


DONE_SENTINEL = "[DONE]"


@dataclass
class SSEEvent:
    event: Optional[str]
    data: Optional[str]
    other_lines: list[str] = field(default_factory=list)


class SSEDecoder:
    """Incremental decoder for an SSE byte stream.

    Network chunks do not line up with event boundaries, so bytes are
    buffered until a blank line terminates an event.
    """

    def __init__(self) -> None:
        self._buffer = ""

    def feed(self, chunk: bytes) -> list[SSEEvent]:
        if not chunk:
            return []
        text = chunk.decode("utf-8", errors="replace")
        text = text.replace("\r\n", "\n").replace("\r", "\n")
        self._buffer += text
        events: list[SSEEvent] = []

        while True:
            sep_index = self._buffer.find("\n\n")
            if sep_index == -1:
                break
            raw_event = self._buffer[:sep_index]
            self._buffer = self._buffer[sep_index + 2:]
            if not raw_event.strip():
                continue
            events.append(self._parse_event(raw_event))

        return events

    def flush(self) -> list[SSEEvent]:
        """Parse whatever is left once the stream has ended."""
        if not self._buffer.strip():
            self._buffer = ""
            return []
        leftover = self._buffer
        self._buffer = ""
        return [self._parse_event(leftover.strip("\n"))]

    @staticmethod
    def _parse_event(raw: str) -> SSEEvent:
        data_lines: list[str] = []
        other_lines: list[str] = []
        event_name: Optional[str] = None
        for line in raw.split("\n"):
            if line.startswith("data:"):
                data_lines.append(line[5:].lstrip())
            elif line.startswith("event:"):
                event_name = line[6:].strip()
            else:
                other_lines.append(line)
        data = "\n".join(data_lines) if data_lines else None
        return SSEEvent(event=event_name, data=data, other_lines=other_lines)


def format_sse_event(event: Mapping[str, Any]) -> bytes:
    """Encode a dialect event as an SSE frame named after its type.

    Args:
        event: Event payload; its "type" becomes the SSE event name

    Returns:
        SSE formatted bytes
    """
    json_str = json.dumps(event, ensure_ascii=False)
    return f"event: {event['type']}\ndata: {json_str}\n\n".encode("utf-8")
