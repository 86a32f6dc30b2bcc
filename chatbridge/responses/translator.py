"""Bidirectional translation between the Responses dialect and Chat Completions.

This module handles:
1. Converting Responses requests to canonical Chat Completions requests
2. Converting complete Chat Completions responses to Responses objects
3. Tool/function call translation
4. Usage statistics translation

Input items go through a parse step first: each raw item becomes one of the
`ParsedItem` variants or None. Unknown or empty items are dropped, never
reported as errors.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union
from uuid import uuid4

from ..types.chat import (
    ChatCompletionRequest,
    ChatMessage,
    ToolChoice,
    ToolDefinition,
)
from ..types.responses import (
    FunctionCallItem,
    MessageItem,
    OutputItem,
    ResponseObject,
    ResponseUsage,
)

logger = logging.getLogger("chatbridge")

_TEXT_PART_TYPES = ("input_text", "output_text")
_MESSAGE_ROLES = {"system": "system", "developer": "system", "user": "user", "assistant": "assistant"}
_TOOL_CHOICE_LITERALS = ("auto", "none", "required")


def generate_response_id() -> str:
    """Generate a unique response ID."""
    return f"resp_{uuid4().hex[:32]}"


def generate_call_id() -> str:
    """Generate a unique tool call ID."""
    return f"call_{uuid4().hex[:24]}"


def message_item_id(response_id: str, position: int = 0) -> str:
    """Item id for the message of the choice at position; the first has no suffix."""
    if position:
        return f"msg_{response_id}_{position}"
    return f"msg_{response_id}"


def function_call_item_id(call_id: str) -> str:
    return f"fc_{call_id}"


# =============================================================================
# Input item variants
# =============================================================================


@dataclass(frozen=True)
class MessageInput:
    role: str
    content: str


@dataclass(frozen=True)
class ToolResultInput:
    tool_call_id: str
    content: str


@dataclass(frozen=True)
class FunctionCallInput:
    call_id: str
    name: str
    arguments: str


ParsedItem = Union[MessageInput, ToolResultInput, FunctionCallInput]


def parse_input_item(item: Any) -> Optional[ParsedItem]:
    """Parse one raw input item into its variant.

    Returns:
        The parsed item, or None when the item carries nothing translatable
    """
    if not isinstance(item, Mapping):
        logger.debug(f"Translator: Dropping non-object input item: {item!r:.100}")
        return None

    item_type = item.get("type")

    if item_type == "tool_result" and _non_empty_str(item.get("tool_call_id")):
        output = item.get("output")
        if output is None:
            content = collapse_content(item.get("content"))
        else:
            content = output if isinstance(output, str) else json.dumps(output, ensure_ascii=False)
        if not content:
            logger.debug("Translator: Dropping tool_result with empty output")
            return None
        return ToolResultInput(tool_call_id=item["tool_call_id"], content=content)

    if item_type == "function_call_output":
        call_id = item.get("call_id")
        output = item.get("output")
        if not isinstance(output, str) and output is not None:
            output = json.dumps(output, ensure_ascii=False)
        if not _non_empty_str(call_id) or not output:
            logger.debug("Translator: Dropping function_call_output without call_id or output")
            return None
        return ToolResultInput(tool_call_id=call_id, content=output)

    if item_type == "function_call":
        call_id = item.get("call_id") or item.get("id")
        name = item.get("name")
        if not _non_empty_str(call_id) or not _non_empty_str(name):
            logger.debug("Translator: Dropping function_call item without call_id or name")
            return None
        arguments = item.get("arguments")
        return FunctionCallInput(
            call_id=call_id,
            name=name,
            arguments=arguments if isinstance(arguments, str) else "{}",
        )

    if item_type in (None, "message", "tool_result"):
        role = _MESSAGE_ROLES.get(item.get("role") or "user")
        if role is None:
            logger.debug(f"Translator: Dropping message with unsupported role: {item.get('role')}")
            return None
        content = collapse_content(item.get("content"))
        if not content:
            return None
        return MessageInput(role=role, content=content)

    logger.debug(f"Translator: Dropping unsupported item type: {item_type}")
    return None


def collapse_content(content: Any) -> str:
    """Reduce message content to plain text.

    Only text-bearing parts survive; their text is newline-joined in source
    order. Images and other parts cannot be carried and are discarded.
    """
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""
    texts = [
        part["text"]
        for part in content
        if isinstance(part, Mapping)
        and part.get("type") in _TEXT_PART_TYPES
        and _non_empty_str(part.get("text"))
    ]
    return "\n".join(texts)


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


# =============================================================================
# Responses → Chat Completions
# =============================================================================


def responses_to_chat_completions(payload: Mapping[str, Any]) -> ChatCompletionRequest:
    """Convert a Responses request to Chat Completions format.

    Args:
        payload: Responses request body

    Returns:
        Canonical Chat Completions request body
    """
    messages: list[ChatMessage] = []

    # 1. Instructions become the leading system message
    instructions = payload.get("instructions")
    if _non_empty_str(instructions):
        messages.append({"role": "system", "content": instructions})

    # 2. Convert input to messages
    input_ = payload.get("input")
    if isinstance(input_, str):
        messages.append({"role": "user", "content": input_})
    elif isinstance(input_, list):
        for item in input_:
            msg = _convert_item_to_message(parse_input_item(item))
            if msg:
                messages.append(msg)

    # 3. Build the request
    request: ChatCompletionRequest = {
        "model": payload.get("model", ""),
        "messages": messages,
    }

    tools = _convert_tools(payload.get("tools"))
    if tools:
        request["tools"] = tools

    tool_choice = _convert_tool_choice(payload.get("tool_choice"))
    if tool_choice is not None:
        request["tool_choice"] = tool_choice

    if payload.get("max_output_tokens") is not None:
        request["max_tokens"] = payload["max_output_tokens"]

    for key in ("temperature", "top_p", "stream"):
        if payload.get(key) is not None:
            request[key] = payload[key]

    return request


def _convert_item_to_message(item: Optional[ParsedItem]) -> Optional[ChatMessage]:
    """Convert a parsed input item to a Chat Completions message."""
    if isinstance(item, MessageInput):
        return {"role": item.role, "content": item.content}

    if isinstance(item, ToolResultInput):
        return {
            "role": "tool",
            "tool_call_id": item.tool_call_id,
            "content": item.content,
        }

    if isinstance(item, FunctionCallInput):
        return {
            "role": "assistant",
            "content": None,
            "tool_calls": [{
                "id": item.call_id,
                "type": "function",
                "function": {"name": item.name, "arguments": item.arguments},
            }],
        }

    return None


def _convert_tools(tools: Any) -> Optional[list[ToolDefinition]]:
    """Keep function tools that carry a named function block.

    Returns None rather than an empty list when nothing survives.
    """
    if not isinstance(tools, list):
        return None

    converted: list[ToolDefinition] = []
    for tool in tools:
        if not isinstance(tool, Mapping) or tool.get("type") != "function":
            continue
        function = tool.get("function")
        if not isinstance(function, Mapping) or not _non_empty_str(function.get("name")):
            continue

        definition: dict[str, Any] = {"name": function["name"]}
        if function.get("description") is not None:
            definition["description"] = function["description"]
        parameters = function.get("parameters")
        definition["parameters"] = parameters if isinstance(parameters, Mapping) else {}
        converted.append({"type": "function", "function": definition})

    return converted or None


def _convert_tool_choice(tool_choice: Any) -> Optional[ToolChoice]:
    """Map tool_choice; unrecognized shapes leave it unset."""
    if isinstance(tool_choice, str):
        return tool_choice if tool_choice in _TOOL_CHOICE_LITERALS else None

    if isinstance(tool_choice, Mapping) and tool_choice.get("type") == "function":
        function = tool_choice.get("function")
        name = function.get("name") if isinstance(function, Mapping) else tool_choice.get("name")
        if _non_empty_str(name):
            return {"type": "function", "function": {"name": name}}

    return None


# =============================================================================
# Chat Completions → Responses
# =============================================================================


def chat_completion_to_response(
    completion: Mapping[str, Any],
    fallback_model: str,
) -> ResponseObject:
    """Convert a complete Chat Completions response to a Responses object.

    Item ids are derived from the completion and tool call ids, so projecting
    the same completion twice gives the same result.

    Args:
        completion: The Chat Completions response
        fallback_model: Model to report when the completion names none,
            normally the model from the original request

    Returns:
        Responses object with status "completed"
    """
    response_id = completion.get("id") or generate_response_id()
    output: list[OutputItem] = []
    output_text = ""

    choices = completion.get("choices") or []
    for position, choice in enumerate(choices):
        if not isinstance(choice, Mapping):
            continue
        message = choice.get("message") or {}

        # Handle text content
        text = extract_text_content(message.get("content"))
        if text:
            # Last choice with text wins the flattened field
            output_text = text
            message_item: MessageItem = {
                "id": message_item_id(response_id, position),
                "type": "message",
                "role": "assistant",
                "status": "completed",
                "content": [{
                    "type": "output_text",
                    "text": text,
                    "annotations": [],
                }],
            }
            output.append(message_item)

        # Handle tool calls
        for tool_call in message.get("tool_calls") or []:
            if not isinstance(tool_call, Mapping):
                continue
            call_id = tool_call.get("id") or generate_call_id()
            function = tool_call.get("function") or {}
            arguments = function.get("arguments")
            function_call_item: FunctionCallItem = {
                "id": function_call_item_id(call_id),
                "type": "function_call",
                "status": "completed",
                "name": function.get("name") or "",
                "arguments": arguments if isinstance(arguments, str) else "{}",
                "call_id": call_id,
            }
            output.append(function_call_item)

    response: ResponseObject = {
        "id": response_id,
        "object": "response",
        "created_at": completion.get("created") or int(time.time()),
        "model": completion.get("model") or fallback_model,
        "output": output,
        "output_text": output_text,
        "status": "completed",
    }

    usage = convert_usage(completion.get("usage"))
    if usage is not None:
        response["usage"] = usage

    return response


def extract_text_content(content: Any) -> str:
    """Flatten assistant content: a string, or text parts concatenated."""
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""
    return "".join(
        part["text"]
        for part in content
        if isinstance(part, Mapping)
        and part.get("type") == "text"
        and isinstance(part.get("text"), str)
    )


def convert_usage(usage: Any) -> Optional[ResponseUsage]:
    """Convert Chat Completions usage to Responses format.

    The total is recomputed as input + output; an upstream total_tokens is
    ignored.

    Args:
        usage: Chat Completions usage object

    Returns:
        Responses usage object, or None when no usage was reported
    """
    if not isinstance(usage, Mapping) or not usage:
        return None

    input_tokens = usage.get("prompt_tokens") or 0
    output_tokens = usage.get("completion_tokens") or 0
    result: ResponseUsage = {
        "input_tokens": input_tokens,
        "output_tokens": output_tokens,
        "total_tokens": input_tokens + output_tokens,
    }

    prompt_details = usage.get("prompt_tokens_details")
    if isinstance(prompt_details, Mapping) and "cached_tokens" in prompt_details:
        result["input_tokens_details"] = {
            "cached_tokens": prompt_details["cached_tokens"],
        }

    completion_details = usage.get("completion_tokens_details")
    if isinstance(completion_details, Mapping) and "reasoning_tokens" in completion_details:
        result["output_tokens_details"] = {
            "reasoning_tokens": completion_details["reasoning_tokens"],
        }

    return result
