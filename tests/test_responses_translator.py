"""Tests for the Responses translator."""

from chatbridge.responses.translator import (
    MessageInput,
    ToolResultInput,
    chat_completion_to_response,
    collapse_content,
    convert_usage,
    parse_input_item,
    responses_to_chat_completions,
)


# =============================================================================
# Request normalization
# =============================================================================


def test_string_input_becomes_single_user_message():
    request = responses_to_chat_completions({"model": "m", "input": "2+2?"})

    assert request == {
        "model": "m",
        "messages": [{"role": "user", "content": "2+2?"}],
    }


def test_instructions_become_leading_system_message():
    request = responses_to_chat_completions({
        "model": "m",
        "instructions": "Be terse.",
        "input": "Hi",
    })

    assert request["messages"] == [
        {"role": "system", "content": "Be terse."},
        {"role": "user", "content": "Hi"},
    ]


def test_content_parts_are_collapsed_with_newlines():
    request = responses_to_chat_completions({
        "model": "m",
        "input": [{
            "type": "message",
            "role": "user",
            "content": [
                {"type": "input_text", "text": "first"},
                {"type": "input_image", "image_url": "https://example.com/cat.png"},
                {"type": "input_text", "text": "second"},
            ],
        }],
    })

    assert request["messages"] == [{"role": "user", "content": "first\nsecond"}]


def test_items_without_text_are_dropped():
    request = responses_to_chat_completions({
        "model": "m",
        "input": [
            {"type": "message", "role": "user", "content": [{"type": "input_image"}]},
            {"type": "message", "role": "user", "content": ""},
            {"type": "reasoning", "summary": []},
            "not an object",
            {"type": "message", "role": "user", "content": "kept"},
        ],
    })

    assert request["messages"] == [{"role": "user", "content": "kept"}]


def test_developer_role_maps_to_system_and_unknown_roles_drop():
    request = responses_to_chat_completions({
        "model": "m",
        "input": [
            {"role": "developer", "content": "rules"},
            {"role": "critic", "content": "ignored"},
            {"content": "no role"},
        ],
    })

    assert request["messages"] == [
        {"role": "system", "content": "rules"},
        {"role": "user", "content": "no role"},
    ]


def test_tool_result_item_becomes_tool_message():
    request = responses_to_chat_completions({
        "model": "m",
        "input": [
            {"type": "tool_result", "role": "user", "tool_call_id": "call_1", "output": "72F"},
            {"type": "function_call_output", "call_id": "call_2", "output": "sunny"},
        ],
    })

    assert request["messages"] == [
        {"role": "tool", "tool_call_id": "call_1", "content": "72F"},
        {"role": "tool", "tool_call_id": "call_2", "content": "sunny"},
    ]


def test_tool_result_with_empty_output_is_dropped():
    request = responses_to_chat_completions({
        "model": "m",
        "input": [{"type": "tool_result", "tool_call_id": "call_1", "output": ""}],
    })

    assert request["messages"] == []


def test_function_call_history_becomes_assistant_tool_call():
    request = responses_to_chat_completions({
        "model": "m",
        "input": [{
            "type": "function_call",
            "call_id": "call_1",
            "name": "get_weather",
            "arguments": '{"loc":"NYC"}',
        }],
    })

    assert request["messages"] == [{
        "role": "assistant",
        "content": None,
        "tool_calls": [{
            "id": "call_1",
            "type": "function",
            "function": {"name": "get_weather", "arguments": '{"loc":"NYC"}'},
        }],
    }]


def test_tools_without_named_function_are_dropped():
    request = responses_to_chat_completions({
        "model": "m",
        "input": "hi",
        "tools": [
            {"type": "function", "function": {"name": "get_weather", "description": "Weather"}},
            {"type": "function", "function": {"description": "no name"}},
            {"type": "web_search"},
        ],
    })

    assert request["tools"] == [{
        "type": "function",
        "function": {"name": "get_weather", "description": "Weather", "parameters": {}},
    }]


def test_tools_unset_when_none_survive():
    request = responses_to_chat_completions({
        "model": "m",
        "input": "hi",
        "tools": [{"type": "web_search"}],
    })

    assert "tools" not in request


def test_tool_choice_mapping():
    def choice(value):
        return responses_to_chat_completions({"model": "m", "input": "hi", "tool_choice": value}).get("tool_choice")

    assert choice("auto") == "auto"
    assert choice("required") == "required"
    assert choice("none") == "none"
    assert choice({"type": "function", "function": {"name": "f"}}) == {
        "type": "function",
        "function": {"name": "f"},
    }
    assert choice({"type": "function", "name": "g"}) == {"type": "function", "function": {"name": "g"}}
    assert choice("sometimes") is None
    assert choice({"type": "file_search"}) is None


def test_sampling_parameters_are_renamed():
    request = responses_to_chat_completions({
        "model": "m",
        "input": "hi",
        "max_output_tokens": 128,
        "temperature": 0.2,
        "top_p": None,
        "stream": True,
    })

    assert request["max_tokens"] == 128
    assert request["temperature"] == 0.2
    assert request["stream"] is True
    assert "top_p" not in request
    assert "max_output_tokens" not in request


def test_parse_input_item_variants():
    assert parse_input_item({"role": "user", "content": "hi"}) == MessageInput(role="user", content="hi")
    assert parse_input_item({"type": "tool_result", "tool_call_id": "c", "output": {"ok": True}}) == ToolResultInput(
        tool_call_id="c", content='{"ok": true}'
    )
    assert parse_input_item(42) is None
    assert parse_input_item({"type": "item_reference", "id": "x"}) is None


def test_collapse_content_ignores_empty_text_parts():
    assert collapse_content([{"type": "input_text", "text": ""}, {"type": "output_text", "text": "a"}]) == "a"
    assert collapse_content(None) == ""


# =============================================================================
# Response projection
# =============================================================================


def test_projects_text_completion():
    completion = {
        "id": "chatcmpl-1",
        "created": 1700000000,
        "model": "m",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": "4"}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 3, "completion_tokens": 1, "total_tokens": 99},
    }

    response = chat_completion_to_response(completion, "fallback")

    assert response["id"] == "chatcmpl-1"
    assert response["object"] == "response"
    assert response["created_at"] == 1700000000
    assert response["model"] == "m"
    assert response["status"] == "completed"
    assert response["output_text"] == "4"
    assert response["output"] == [{
        "id": "msg_chatcmpl-1",
        "type": "message",
        "role": "assistant",
        "status": "completed",
        "content": [{"type": "output_text", "text": "4", "annotations": []}],
    }]
    assert response["usage"] == {"input_tokens": 3, "output_tokens": 1, "total_tokens": 4}


def test_projects_tool_call_only_completion():
    completion = {
        "id": "chatcmpl-2",
        "model": "m",
        "choices": [{
            "index": 0,
            "message": {
                "role": "assistant",
                "content": None,
                "tool_calls": [{
                    "id": "call_9",
                    "type": "function",
                    "function": {"name": "get_weather", "arguments": '{"loc":"NYC"}'},
                }],
            },
            "finish_reason": "tool_calls",
        }],
    }

    response = chat_completion_to_response(completion, "fallback")

    assert response["output_text"] == ""
    assert response["output"] == [{
        "id": "fc_call_9",
        "type": "function_call",
        "status": "completed",
        "name": "get_weather",
        "arguments": '{"loc":"NYC"}',
        "call_id": "call_9",
    }]
    assert "usage" not in response


def test_last_choice_with_text_wins_output_text():
    completion = {
        "id": "chatcmpl-3",
        "choices": [
            {"index": 0, "message": {"content": "first"}},
            {"index": 1, "message": {"content": "second"}},
        ],
    }

    response = chat_completion_to_response(completion, "fallback")

    assert response["output_text"] == "second"
    assert [item["id"] for item in response["output"]] == ["msg_chatcmpl-3", "msg_chatcmpl-3_1"]


def test_model_falls_back_to_requested_model():
    response = chat_completion_to_response({"id": "x", "model": "", "choices": []}, "requested")

    assert response["model"] == "requested"
    assert response["output"] == []


def test_projection_is_deterministic():
    completion = {
        "id": "chatcmpl-4",
        "created": 1,
        "choices": [{"message": {"content": [{"type": "text", "text": "a"}, {"type": "text", "text": "b"}]}}],
    }

    assert chat_completion_to_response(completion, "m") == chat_completion_to_response(completion, "m")
    assert chat_completion_to_response(completion, "m")["output_text"] == "ab"


def test_convert_usage_carries_token_details():
    usage = convert_usage({
        "prompt_tokens": 10,
        "completion_tokens": 5,
        "prompt_tokens_details": {"cached_tokens": 4},
        "completion_tokens_details": {"reasoning_tokens": 2},
    })

    assert usage == {
        "input_tokens": 10,
        "output_tokens": 5,
        "total_tokens": 15,
        "input_tokens_details": {"cached_tokens": 4},
        "output_tokens_details": {"reasoning_tokens": 2},
    }
    assert convert_usage(None) is None
