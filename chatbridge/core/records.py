"""Parsing of canonical partial-update records (streamed chunks).

Both stream adapters parse an incoming chunk into a `ChunkRecord` before they
touch any of their state. A chunk that fails to parse is rejected whole, so a
corrupt chunk leaves no half-applied update behind.
"""

import json
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from .sse import DONE_SENTINEL


RawRecord = Union[Mapping[str, Any], str, bytes]


class MalformedRecordError(ValueError):
    """Raised when a streamed chunk cannot be decoded."""
    pass


@dataclass(frozen=True)
class ToolCallFragment:
    """A piece of one tool call, identified by its index position."""
    index: int
    id: Optional[str] = None
    name: Optional[str] = None
    arguments: Optional[str] = None


@dataclass(frozen=True)
class ChoiceDelta:
    index: int
    text: str = ""
    tool_calls: tuple[ToolCallFragment, ...] = ()
    finish_reason: Optional[str] = None


@dataclass(frozen=True)
class ChunkRecord:
    id: str
    choices: tuple[ChoiceDelta, ...]
    usage: Optional[dict[str, Any]] = None


def parse_chunk(raw: RawRecord) -> Optional[ChunkRecord]:
    """Decode one streamed chunk.

    Args:
        raw: A decoded chunk, or its JSON text as str/bytes

    Returns:
        The parsed record, or None for the [DONE] sentinel

    Raises:
        MalformedRecordError: If the chunk is not valid JSON or has the
            wrong shape
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        text = raw.strip()
        if text.startswith("data:"):
            text = text[5:].strip()
        if text == DONE_SENTINEL:
            return None
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            raise MalformedRecordError(f"invalid JSON: {exc}") from exc

    if not isinstance(raw, Mapping):
        raise MalformedRecordError(f"chunk must be an object, got {type(raw).__name__}")

    chunk_id = raw.get("id") or ""
    if not isinstance(chunk_id, str):
        raise MalformedRecordError("chunk id must be a string")

    raw_choices = raw.get("choices") or []
    if not isinstance(raw_choices, list):
        raise MalformedRecordError("choices must be a list")

    usage = raw.get("usage")
    if usage is not None and not isinstance(usage, Mapping):
        raise MalformedRecordError("usage must be an object")

    return ChunkRecord(
        id=chunk_id,
        choices=tuple(_parse_choice(choice) for choice in raw_choices),
        usage=dict(usage) if usage else None,
    )


def _parse_choice(choice: Any) -> ChoiceDelta:
    if not isinstance(choice, Mapping):
        raise MalformedRecordError("choice must be an object")

    index = choice.get("index", 0)
    if not isinstance(index, int):
        raise MalformedRecordError("choice index must be an integer")

    delta = choice.get("delta") or {}
    if not isinstance(delta, Mapping):
        raise MalformedRecordError("delta must be an object")

    finish_reason = choice.get("finish_reason")
    if finish_reason is not None and not isinstance(finish_reason, str):
        raise MalformedRecordError("finish_reason must be a string")

    raw_tool_calls = delta.get("tool_calls") or []
    if not isinstance(raw_tool_calls, list):
        raise MalformedRecordError("tool_calls must be a list")

    return ChoiceDelta(
        index=index,
        text=_extract_text(delta.get("content")),
        tool_calls=tuple(_parse_tool_call(tc) for tc in raw_tool_calls),
        finish_reason=finish_reason or None,
    )


def _extract_text(content: Any) -> str:
    """Text increment of a delta; list content keeps only text parts."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        texts: list[str] = []
        for part in content:
            if isinstance(part, Mapping) and part.get("type") in ("text", "output_text"):
                text = part.get("text")
                if isinstance(text, str):
                    texts.append(text)
        return "".join(texts)
    raise MalformedRecordError("delta content must be a string or a list")


def _parse_tool_call(tc: Any) -> ToolCallFragment:
    if not isinstance(tc, Mapping):
        raise MalformedRecordError("tool call fragment must be an object")

    index = tc.get("index", 0)
    if not isinstance(index, int):
        raise MalformedRecordError("tool call index must be an integer")

    function = tc.get("function") or {}
    if not isinstance(function, Mapping):
        raise MalformedRecordError("tool call function must be an object")

    call_id = tc.get("id")
    name = function.get("name")
    arguments = function.get("arguments")
    for label, value in (("id", call_id), ("name", name), ("arguments", arguments)):
        if value is not None and not isinstance(value, str):
            raise MalformedRecordError(f"tool call {label} must be a string")

    return ToolCallFragment(
        index=index,
        id=call_id or None,
        name=name or None,
        arguments=arguments or None,
    )
