"""Messages dialect <-> Chat Completions translation.

Key mappings:
- top-level system -> leading system message
- text blocks -> newline-joined message content
- tool_use blocks -> assistant tool_calls
- tool_result blocks -> tool messages
- tools / tool_choice -> function tools / canonical tool_choice

Image, document and thinking blocks have no canonical form and are dropped.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union
from uuid import uuid4

from ..types.chat import (
    ChatCompletionRequest,
    ChatMessage,
    ToolCall,
    ToolChoice,
    ToolDefinition,
)
from ..types.messages import MessageObject, StopReason
from ..responses.translator import extract_text_content, generate_call_id

logger = logging.getLogger("chatbridge")

_MESSAGE_ROLES = ("user", "assistant")
_CLIENT_TOOL_TYPES = (None, "custom")


# =============================================================================
# Content block variants
# =============================================================================


@dataclass(frozen=True)
class TextBlock:
    text: str


@dataclass(frozen=True)
class ToolUseBlock:
    id: str
    name: str
    arguments: str


@dataclass(frozen=True)
class ToolResultBlock:
    tool_use_id: str
    content: str


ParsedBlock = Union[TextBlock, ToolUseBlock, ToolResultBlock]


def parse_content_block(block: Any) -> Optional[ParsedBlock]:
    """Parse one raw content block; None for blocks that are dropped."""
    if not isinstance(block, Mapping):
        return None

    block_type = block.get("type")

    if block_type == "text":
        text = block.get("text")
        return TextBlock(text) if isinstance(text, str) and text else None

    if block_type == "tool_use":
        name = block.get("name")
        if not isinstance(name, str) or not name:
            logger.debug("Translator: Dropping tool_use block without name")
            return None
        return ToolUseBlock(
            id=block.get("id") or generate_call_id(),
            name=name,
            arguments=_serialize_tool_input(block.get("input", {})),
        )

    if block_type == "tool_result":
        tool_use_id = block.get("tool_use_id")
        if not isinstance(tool_use_id, str) or not tool_use_id:
            logger.debug("Translator: Dropping tool_result block without tool_use_id")
            return None
        content = _text_of(block.get("content"))
        if not content:
            logger.debug(f"Translator: Dropping empty tool_result for {tool_use_id}")
            return None
        if block.get("is_error"):
            content = f"[Error] {content}"
        return ToolResultBlock(tool_use_id=tool_use_id, content=content)

    logger.debug(f"Translator: Dropping {block_type} block during translation")
    return None


def _text_of(content: Any) -> str:
    """Text of a string or a list of text blocks, newline-joined."""
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""
    return "\n".join(
        block.text
        for block in (parse_content_block(item) for item in content)
        if isinstance(block, TextBlock)
    )


def _serialize_tool_input(input_data: Any) -> str:
    """Serialize tool input to a JSON string for the canonical tool call."""
    if isinstance(input_data, str):
        return input_data
    return json.dumps(input_data, ensure_ascii=False)


# =============================================================================
# Messages → Chat Completions
# =============================================================================


def messages_to_chat_completions(payload: Mapping[str, Any]) -> ChatCompletionRequest:
    """Translate a Messages request to Chat Completions.

    Args:
        payload: Messages request body

    Returns:
        Canonical Chat Completions request body
    """
    messages: list[ChatMessage] = []

    system = _text_of(payload.get("system"))
    if system:
        messages.append({"role": "system", "content": system})

    for msg in payload.get("messages") or []:
        messages.extend(_convert_message(msg))

    request: ChatCompletionRequest = {
        "model": payload.get("model", ""),
        "messages": messages,
    }

    for param in ("max_tokens", "temperature", "top_p", "stream"):
        if payload.get(param) is not None:
            request[param] = payload[param]

    if payload.get("stop_sequences"):
        request["stop"] = payload["stop_sequences"]

    # top_k has no canonical counterpart
    if "top_k" in payload:
        logger.debug(f"top_k={payload['top_k']} is not supported, ignoring")

    tools = _convert_tools(payload.get("tools"))
    if tools:
        request["tools"] = tools

    tool_choice = _convert_tool_choice(payload.get("tool_choice"))
    if tool_choice is not None:
        request["tool_choice"] = tool_choice

    metadata = payload.get("metadata")
    if isinstance(metadata, Mapping) and isinstance(metadata.get("user_id"), str):
        request["user"] = metadata["user_id"]

    return request


def _convert_message(msg: Any) -> list[ChatMessage]:
    """Convert one Messages turn; may yield zero, one or several messages."""
    if not isinstance(msg, Mapping):
        return []

    role = msg.get("role", "user")
    if role not in _MESSAGE_ROLES:
        logger.debug(f"Translator: Dropping message with unsupported role: {role}")
        return []

    content = msg.get("content")
    if isinstance(content, str):
        return [{"role": role, "content": content}] if content else []
    if not isinstance(content, list):
        return []

    blocks = [b for b in (parse_content_block(item) for item in content) if b is not None]
    converted: list[ChatMessage] = []

    # Tool results come first, as they answer the previous assistant turn
    for block in blocks:
        if isinstance(block, ToolResultBlock):
            converted.append({
                "role": "tool",
                "tool_call_id": block.tool_use_id,
                "content": block.content,
            })

    text = "\n".join(b.text for b in blocks if isinstance(b, TextBlock))
    tool_calls: list[ToolCall] = []
    if role == "assistant":
        tool_calls = [
            {
                "id": b.id,
                "type": "function",
                "function": {"name": b.name, "arguments": b.arguments},
            }
            for b in blocks
            if isinstance(b, ToolUseBlock)
        ]

    if tool_calls:
        converted.append({"role": "assistant", "content": text or None, "tool_calls": tool_calls})
    elif text:
        converted.append({"role": role, "content": text})

    return converted


def _convert_tool_choice(tool_choice: Any) -> Optional[ToolChoice]:
    """Convert Messages tool_choice to the canonical directive.

    Messages: "auto" | "any" | "none" | {"type": "tool", "name": "..."}
    Canonical: "auto" | "required" | "none" | {"type": "function", "function": {"name": "..."}}
    """
    if isinstance(tool_choice, Mapping):
        if tool_choice.get("type") == "tool":
            name = tool_choice.get("name")
            if isinstance(name, str) and name:
                return {"type": "function", "function": {"name": name}}
            return None
        tool_choice = tool_choice.get("type")

    if tool_choice == "any":
        return "required"
    if tool_choice in ("auto", "none"):
        return tool_choice
    return None


def _convert_tools(tools: Any) -> Optional[list[ToolDefinition]]:
    """Convert client tools to function tools; server tools are dropped.

    Messages: {"name": "...", "description": "...", "input_schema": {...}}
    Canonical: {"type": "function", "function": {"name": "...", "description": "...", "parameters": {...}}}
    """
    if not isinstance(tools, list):
        return None

    converted: list[ToolDefinition] = []
    for tool in tools:
        if not isinstance(tool, Mapping) or tool.get("type") not in _CLIENT_TOOL_TYPES:
            continue
        name = tool.get("name")
        if not isinstance(name, str) or not name:
            continue
        definition: dict[str, Any] = {"name": name}
        if tool.get("description") is not None:
            definition["description"] = tool["description"]
        schema = tool.get("input_schema")
        definition["parameters"] = schema if isinstance(schema, Mapping) else {}
        converted.append({"type": "function", "function": definition})

    return converted or None


# =============================================================================
# Chat Completions → Messages
# =============================================================================


def convert_stop_reason(finish_reason: Optional[str]) -> StopReason:
    """Convert a canonical finish_reason to a Messages stop_reason.

    Canonical: stop, length, tool_calls, content_filter, function_call
    Messages: end_turn, max_tokens, stop_sequence, tool_use, refusal
    """
    mapping: dict[str, StopReason] = {
        "stop": "end_turn",
        "length": "max_tokens",
        "tool_calls": "tool_use",
        "function_call": "tool_use",
        "content_filter": "refusal",
    }
    return mapping.get(finish_reason or "", "end_turn")


def parse_tool_arguments(arguments: str) -> dict[str, Any]:
    """Decode complete tool call arguments into a tool_use input object.

    Payloads that are not a JSON object are wrapped as {"raw": arguments}.
    """
    if not arguments:
        return {}
    try:
        parsed = json.loads(arguments)
    except json.JSONDecodeError:
        return {"raw": arguments}
    return parsed if isinstance(parsed, dict) else {"raw": arguments}


def generate_message_id() -> str:
    """Generate a unique message ID."""
    return f"msg_{uuid4().hex[:24]}"


def message_id_from(completion_id: str) -> str:
    return f"msg_{completion_id.replace('chatcmpl-', '')}"


def chat_completion_to_messages(
    completion: Mapping[str, Any],
    fallback_model: str,
) -> MessageObject:
    """Translate a complete Chat Completions response to a Messages object.

    Only the first choice is translated; the dialect has no notion of choices.

    Args:
        completion: Chat Completions response body
        fallback_model: Model to report when the completion names none

    Returns:
        Messages response body
    """
    choices = completion.get("choices") or []
    choice = choices[0] if choices and isinstance(choices[0], Mapping) else {}
    message = choice.get("message") or {}

    content: list[dict[str, Any]] = []
    text = extract_text_content(message.get("content"))
    if text:
        content.append({"type": "text", "text": text})

    for call in message.get("tool_calls") or []:
        if not isinstance(call, Mapping):
            continue
        function = call.get("function") or {}
        arguments = function.get("arguments")
        content.append({
            "type": "tool_use",
            "id": call.get("id") or generate_call_id(),
            "name": function.get("name") or "",
            "input": parse_tool_arguments(arguments if isinstance(arguments, str) else ""),
        })

    if not content:
        content = [{"type": "text", "text": ""}]

    usage = completion.get("usage")
    if not isinstance(usage, Mapping):
        usage = {}
    completion_id = completion.get("id")

    return {
        "id": message_id_from(completion_id) if completion_id else generate_message_id(),
        "type": "message",
        "role": "assistant",
        "content": content,
        "model": completion.get("model") or fallback_model,
        "stop_reason": convert_stop_reason(choice.get("finish_reason")),
        "stop_sequence": None,
        "usage": {
            "input_tokens": usage.get("prompt_tokens") or 0,
            "output_tokens": usage.get("completion_tokens") or 0,
        },
    }
