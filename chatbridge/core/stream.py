"""Shared driver for the dialect stream adapters."""

import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

from .records import ChunkRecord, MalformedRecordError, RawRecord, parse_chunk
from .sse import format_sse_event

logger = logging.getLogger("chatbridge")

StreamEvent = dict[str, Any]
DisconnectChecker = Callable[[], Awaitable[bool]]


class StreamAdapter:
    """Base class for a per-exchange stream translation state.

    Subclasses provide the dialect events for the three lifecycle steps:
    `_start_events` (before any chunk), `_process_record` (per chunk) and
    `_finish_events` (after the upstream signalled completion). The base
    class guarantees the start events come first, the finish events come
    last and only once, and that an undecodable chunk is skipped.
    """

    name = "StreamAdapter"

    def __init__(self) -> None:
        self.started = False
        self.finished = False

    def start(self) -> list[StreamEvent]:
        """Emit the stream-opening events. Only the first call emits."""
        if self.started:
            return []
        self.started = True
        return self._start_events()

    def feed(self, raw: RawRecord) -> list[StreamEvent]:
        """Translate one chunk into the events it implies.

        A chunk that cannot be decoded is skipped and logged; the stream
        carries on with the next one.
        """
        events = self.start()
        if self.finished:
            logger.debug(f"{self.name}: Ignoring chunk after finish")
            return events

        try:
            record = parse_chunk(raw)
        except MalformedRecordError as exc:
            logger.debug(f"{self.name}: Skipping malformed chunk ({exc}): {raw!r:.100}")
            return events

        if record is not None:
            events.extend(self._process_record(record))
        return events

    def finish(self) -> list[StreamEvent]:
        """Emit the terminal events. Only the first call emits."""
        events = self.start()
        if self.finished:
            return events
        self.finished = True
        events.extend(self._finish_events())
        return events

    async def adapt_stream(
        self,
        chunks: AsyncIterator[RawRecord],
        disconnect_checker: Optional[DisconnectChecker] = None,
    ) -> AsyncIterator[bytes]:
        """Transform a live chunk stream into SSE frames.

        Args:
            chunks: Canonical chunks in arrival order
            disconnect_checker: Polled between chunks; returning True stops
                the stream without terminal events

        Yields:
            SSE formatted bytes
        """
        for event in self.start():
            yield format_sse_event(event)

        async for raw in chunks:
            if disconnect_checker is not None and await disconnect_checker():
                logger.info(f"{self.name}: Client disconnected, stopping stream")
                return
            for event in self.feed(raw):
                yield format_sse_event(event)

        for event in self.finish():
            yield format_sse_event(event)

    def _start_events(self) -> list[StreamEvent]:
        raise NotImplementedError

    def _process_record(self, record: ChunkRecord) -> list[StreamEvent]:
        raise NotImplementedError

    def _finish_events(self) -> list[StreamEvent]:
        raise NotImplementedError
