"""Canonical chat completions shapes.

Every dialect is translated to and from these types. They follow the OpenAI
Chat Completions JSON layout so a canonical request can be posted to the
backend as-is:
- Request types: messages, tools and tool choice sent to the backend
- Response types: complete completions and streamed chunks coming back
"""

from typing import Any, Literal, Union
from typing_extensions import TypedDict


Role = Literal["system", "user", "assistant", "tool"]
"""Canonical message roles."""


# =============================================================================
# Request Types
# =============================================================================


class ContentPart(TypedDict, total=False):
    """A typed fragment of a structured message body.

    Attributes:
        type: "text" or "image_url".
        text: Text content (for "text" parts).
        image_url: Image reference (for "image_url" parts), with a "url" key.
    """
    type: str
    text: str | None
    image_url: dict[str, Any] | None


class FunctionCall(TypedDict, total=False):
    """The function half of a tool call.

    Attributes:
        name: Function name. Streamed follow-up fragments usually omit it.
        arguments: Serialized JSON arguments. Opaque to the translator: a
            streamed fragment is not valid JSON until fully accumulated.
    """
    name: str | None
    arguments: str | None


class ToolCall(TypedDict, total=False):
    """A backend-issued request to invoke a function.

    Attributes:
        id: Backend-assigned identifier, unique within a response.
        type: Always "function".
        function: Name and arguments.
        index: Position of the call, only present on streamed fragments.
    """
    id: str
    type: str
    function: FunctionCall
    index: int


class ChatMessage(TypedDict, total=False):
    """A canonical message.

    Attributes:
        role: One of system, user, assistant, tool.
        content: Plain text or ordered content parts. None when an assistant
            message only carries tool calls.
        tool_calls: Tool calls issued by an assistant turn.
        tool_call_id: The call a tool-result message answers. Always set on
            role "tool".
    """
    role: Role
    content: str | list[ContentPart] | None
    tool_calls: list[ToolCall] | None
    tool_call_id: str | None


class FunctionDefinition(TypedDict, total=False):
    """Function schema offered to the model."""
    name: str
    description: str
    parameters: dict[str, Any]


class ToolDefinition(TypedDict):
    """A function-kind tool definition."""
    type: Literal["function"]
    function: FunctionDefinition


class NamedFunction(TypedDict):
    name: str


class PinnedToolChoice(TypedDict):
    """Forces the model to call one named function."""
    type: Literal["function"]
    function: NamedFunction


ToolChoice = Union[Literal["auto", "none", "required"], PinnedToolChoice]


class ChatCompletionRequest(TypedDict, total=False):
    """A canonical request, ready to be posted to the backend.

    Optional fields are left out entirely rather than set to None, because
    backends treat a missing field and an explicit null differently.
    """
    model: str
    messages: list[ChatMessage]
    tools: list[ToolDefinition]
    tool_choice: ToolChoice
    max_tokens: int
    temperature: float
    top_p: float
    stream: bool
    stop: str | list[str]
    user: str


# =============================================================================
# Response Types
# =============================================================================


class Usage(TypedDict, total=False):
    """Token usage reported by the backend.

    Attributes:
        prompt_tokens: Tokens in the prompt.
        completion_tokens: Tokens in the completion.
        total_tokens: Reported total. Never trusted by the projectors.
        prompt_tokens_details: Breakdown, e.g. {"cached_tokens": n}.
        completion_tokens_details: Breakdown, e.g. {"reasoning_tokens": n}.
    """
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    prompt_tokens_details: dict[str, int] | None
    completion_tokens_details: dict[str, int] | None


class Delta(TypedDict, total=False):
    """Incremental update of one choice in a streamed chunk.

    Attributes:
        role: Usually "assistant" on the first chunk only.
        content: Text increment.
        tool_calls: Tool call fragments, keyed by their "index".
    """
    role: str | None
    content: str | None
    tool_calls: list[ToolCall] | None


class Choice(TypedDict, total=False):
    """A choice in a completion or chunk.

    Attributes:
        index: Position of the choice.
        message: Complete assistant message (non-streaming).
        delta: Incremental update (streaming).
        finish_reason: "stop", "length", "tool_calls", "content_filter" or
            "function_call"; set on the terminal delta of a choice.
    """
    index: int
    message: ChatMessage | None
    delta: Delta | None
    finish_reason: str | None


class ChatCompletionResponse(TypedDict, total=False):
    """A complete (non-streaming) canonical response."""
    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]
    usage: Usage | None


class ChatCompletionChunk(TypedDict, total=False):
    """One partial-update record of a streamed response.

    The id may change mid-stream; the last non-empty value wins.
    """
    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]
    usage: Usage | None
