"""Tests for the chat-to-responses stream adapter."""

import json

import pytest

from chatbridge.responses.stream_adapter import (
    ChatToResponsesStreamAdapter,
    adapt_chat_stream_to_responses,
)
from chatbridge.types.responses import (
    EVENT_FUNCTION_CALL_ARGS_DELTA,
    EVENT_FUNCTION_CALL_ARGS_START,
    EVENT_OUTPUT_TEXT_DELTA,
    EVENT_OUTPUT_TEXT_DONE,
    EVENT_RESPONSE_CREATED,
    EVENT_RESPONSE_DONE,
)

from conftest import aiter_list, parse_sse_frames


def _text_chunk(text, chunk_id="chatcmpl-1", finish_reason=None):
    return {
        "id": chunk_id,
        "choices": [{"index": 0, "delta": {"content": text}, "finish_reason": finish_reason}],
    }


def _finish_chunk(reason="stop", chunk_id="chatcmpl-1"):
    return {"id": chunk_id, "choices": [{"index": 0, "delta": {}, "finish_reason": reason}]}


def _tool_chunk(index=0, call_id=None, name=None, arguments=None):
    function = {}
    if name is not None:
        function["name"] = name
    if arguments is not None:
        function["arguments"] = arguments
    tool_call = {"index": index, "function": function}
    if call_id is not None:
        tool_call["id"] = call_id
    return {"id": "chatcmpl-1", "choices": [{"index": 0, "delta": {"tool_calls": [tool_call]}}]}


def _run(adapter, chunks):
    events = adapter.start()
    for chunk in chunks:
        events.extend(adapter.feed(chunk))
    events.extend(adapter.finish())
    return events


def test_text_stream_event_sequence():
    adapter = ChatToResponsesStreamAdapter("m")
    events = _run(adapter, [
        _text_chunk("Hello"),
        _text_chunk(" world"),
        _finish_chunk(),
    ])

    assert [e["type"] for e in events] == [
        EVENT_RESPONSE_CREATED,
        EVENT_OUTPUT_TEXT_DELTA,
        EVENT_OUTPUT_TEXT_DELTA,
        EVENT_OUTPUT_TEXT_DONE,
        EVENT_RESPONSE_DONE,
    ]
    assert events[1]["delta"] == "Hello"
    assert events[2]["delta"] == " world"
    assert events[3]["text"] == "Hello world"
    assert events[3]["output_index"] == 0
    assert events[3]["content_index"] == 0

    done = events[-1]["response"]
    assert done["status"] == "completed"
    assert done["output_text"] == "Hello world"
    assert done["output"][0]["content"][0]["text"] == "Hello world"


def test_text_and_finish_in_same_chunk():
    adapter = ChatToResponsesStreamAdapter("m")
    events = _run(adapter, [
        _text_chunk("Hello"),
        _text_chunk(" world", finish_reason="stop"),
    ])

    assert [e["type"] for e in events] == [
        EVENT_RESPONSE_CREATED,
        EVENT_OUTPUT_TEXT_DELTA,
        EVENT_OUTPUT_TEXT_DELTA,
        EVENT_OUTPUT_TEXT_DONE,
        EVENT_RESPONSE_DONE,
    ]
    assert [e["delta"] for e in events if e["type"] == EVENT_OUTPUT_TEXT_DELTA] == ["Hello", " world"]
    assert events[3]["text"] == "Hello world"
    assert events[-1]["response"]["output_text"] == "Hello world"

    sequence_numbers = [e["sequence_number"] for e in events]
    assert len(set(sequence_numbers)) == len(events)


def test_created_event_reports_in_progress_response():
    adapter = ChatToResponsesStreamAdapter("m")
    created = adapter.start()

    assert len(created) == 1
    response = created[0]["response"]
    assert response["id"].startswith("resp_")
    assert response["object"] == "response"
    assert response["model"] == "m"
    assert response["output"] == []
    assert response["status"] == "in_progress"
    assert adapter.start() == []


def test_sequence_numbers_are_monotonic():
    adapter = ChatToResponsesStreamAdapter("m")
    events = _run(adapter, [_text_chunk("a"), _text_chunk("b"), _finish_chunk()])

    assert [e["sequence_number"] for e in events] == list(range(1, len(events) + 1))


def test_chunk_id_is_adopted():
    adapter = ChatToResponsesStreamAdapter("m", response_id="resp_local")
    events = _run(adapter, [_text_chunk("Hi", chunk_id="chatcmpl-9"), _finish_chunk(chunk_id="chatcmpl-9")])

    assert events[0]["response"]["id"] == "resp_local"
    assert events[1]["item_id"] == "msg_chatcmpl-9"
    assert events[-1]["response"]["id"] == "chatcmpl-9"


def test_tool_call_fragments():
    adapter = ChatToResponsesStreamAdapter("m")
    events = _run(adapter, [
        _tool_chunk(call_id="call_1", name="get_weather", arguments=""),
        _tool_chunk(arguments='{"loc":'),
        _tool_chunk(arguments='"NYC"}'),
        _finish_chunk("tool_calls"),
    ])

    types = [e["type"] for e in events]
    assert types == [
        EVENT_RESPONSE_CREATED,
        EVENT_FUNCTION_CALL_ARGS_START,
        EVENT_FUNCTION_CALL_ARGS_DELTA,
        EVENT_FUNCTION_CALL_ARGS_DELTA,
        EVENT_RESPONSE_DONE,
    ]

    start = events[1]
    assert start["item"] == {
        "id": "fc_call_1",
        "type": "function_call",
        "name": "get_weather",
        "call_id": "call_1",
        "status": "in_progress",
    }
    deltas = [e["delta"] for e in events if e["type"] == EVENT_FUNCTION_CALL_ARGS_DELTA]
    assert "".join(deltas) == '{"loc":"NYC"}'
    assert json.loads("".join(deltas)) == {"loc": "NYC"}

    output = events[-1]["response"]["output"]
    assert output == [{
        "id": "fc_call_1",
        "type": "function_call",
        "status": "completed",
        "name": "get_weather",
        "arguments": '{"loc":"NYC"}',
        "call_id": "call_1",
    }]


def test_first_tool_fragment_with_arguments_emits_start_and_delta():
    adapter = ChatToResponsesStreamAdapter("m")
    adapter.start()
    events = adapter.feed(_tool_chunk(call_id="call_1", name="f", arguments="{}"))

    assert [e["type"] for e in events] == [EVENT_FUNCTION_CALL_ARGS_START, EVENT_FUNCTION_CALL_ARGS_DELTA]


def test_late_tool_name_is_recorded_without_event():
    adapter = ChatToResponsesStreamAdapter("m")
    adapter.start()
    adapter.feed(_tool_chunk(call_id="call_1"))
    events = adapter.feed(_tool_chunk(name="late_name"))

    assert events == []
    done = adapter.finish()[-1]["response"]
    assert done["output"][0]["name"] == "late_name"


def test_text_and_tool_take_distinct_output_indices():
    adapter = ChatToResponsesStreamAdapter("m")
    events = _run(adapter, [
        _text_chunk("Checking."),
        _tool_chunk(call_id="call_1", name="f", arguments="{}"),
        _finish_chunk("tool_calls"),
    ])

    text_delta = next(e for e in events if e["type"] == EVENT_OUTPUT_TEXT_DELTA)
    tool_start = next(e for e in events if e["type"] == EVENT_FUNCTION_CALL_ARGS_START)
    assert text_delta["output_index"] == 0
    assert tool_start["output_index"] == 1
    assert [item["type"] for item in events[-1]["response"]["output"]] == ["message", "function_call"]


def test_malformed_chunk_is_skipped():
    adapter = ChatToResponsesStreamAdapter("m")
    events = _run(adapter, [
        _text_chunk("a"),
        "{not json",
        {"choices": "nope"},
        _text_chunk("b"),
        _finish_chunk(),
    ])

    deltas = [e["delta"] for e in events if e["type"] == EVENT_OUTPUT_TEXT_DELTA]
    assert deltas == ["a", "b"]
    assert events[-1]["response"]["output_text"] == "ab"


def test_non_zero_choices_are_ignored():
    adapter = ChatToResponsesStreamAdapter("m")
    events = _run(adapter, [
        {"id": "c", "choices": [{"index": 1, "delta": {"content": "other"}}]},
        _text_chunk("mine", chunk_id="c"),
    ])

    deltas = [e["delta"] for e in events if e["type"] == EVENT_OUTPUT_TEXT_DELTA]
    assert deltas == ["mine"]


def test_text_after_done_is_dropped():
    adapter = ChatToResponsesStreamAdapter("m")
    events = _run(adapter, [_text_chunk("a"), _finish_chunk(), _text_chunk("late")])

    assert [e["type"] for e in events].count(EVENT_OUTPUT_TEXT_DELTA) == 1
    assert events[-1]["response"]["output_text"] == "a"


def test_usage_is_reported_on_done():
    adapter = ChatToResponsesStreamAdapter("m")
    events = _run(adapter, [
        _text_chunk("a"),
        {"id": "chatcmpl-1", "choices": [], "usage": {"prompt_tokens": 7, "completion_tokens": 2}},
    ])

    assert events[-1]["response"]["usage"] == {"input_tokens": 7, "output_tokens": 2, "total_tokens": 9}


def test_finish_emits_once():
    adapter = ChatToResponsesStreamAdapter("m")
    adapter.start()
    first = adapter.finish()

    assert [e["type"] for e in first] == [EVENT_RESPONSE_DONE]
    assert adapter.finish() == []
    assert adapter.feed(_text_chunk("late")) == []


def test_done_sentinel_is_ignored():
    adapter = ChatToResponsesStreamAdapter("m")
    adapter.start()

    assert adapter.feed("[DONE]") == []
    assert adapter.feed(b"data: [DONE]") == []


@pytest.mark.asyncio
async def test_adapt_stream_encodes_sse_frames():
    chunks = [
        json.dumps(_text_chunk("Hello")),
        json.dumps(_finish_chunk()),
    ]

    body = b"".join([frame async for frame in adapt_chat_stream_to_responses("m", aiter_list(chunks))])
    events = parse_sse_frames(body)

    assert [e["event"] for e in events] == [
        EVENT_RESPONSE_CREATED,
        EVENT_OUTPUT_TEXT_DELTA,
        EVENT_OUTPUT_TEXT_DONE,
        EVENT_RESPONSE_DONE,
    ]
    assert all(e["event"] == e["data"]["type"] for e in events)


@pytest.mark.asyncio
async def test_disconnect_stops_without_terminal_event():
    adapter = ChatToResponsesStreamAdapter("m")
    calls = 0

    async def disconnected():
        nonlocal calls
        calls += 1
        return calls > 1

    chunks = [_text_chunk("a"), _text_chunk("b"), _finish_chunk()]
    frames = [frame async for frame in adapter.adapt_stream(aiter_list(chunks), disconnected)]
    events = parse_sse_frames(b"".join(frames))

    assert [e["event"] for e in events] == [EVENT_RESPONSE_CREATED, EVENT_OUTPUT_TEXT_DELTA]
