"""Types for the Responses dialect (/v1/responses).

Requests arrive as item-based input and are normalized into canonical chat
completions; canonical responses are projected back into the output shapes
below, and streams into the `response.*` event taxonomy.
"""

from typing import Any, Literal, Union
from typing_extensions import TypedDict


# =============================================================================
# Output Types
# =============================================================================

ItemStatus = Literal["in_progress", "completed"]

ResponseStatus = Literal["in_progress", "completed"]
"""Status of the overall response.

- in_progress: only seen on streaming lifecycle events
- completed: every projected or finished response
"""


class OutputText(TypedDict, total=False):
    """Text output content."""
    type: Literal["output_text"]
    text: str
    annotations: list[dict[str, Any]]


class MessageItem(TypedDict, total=False):
    """An assistant message in the output list."""
    id: str
    type: Literal["message"]
    role: Literal["assistant"]
    status: ItemStatus
    content: list[OutputText]


class FunctionCallItem(TypedDict, total=False):
    """A function call in the output list."""
    id: str
    type: Literal["function_call"]
    status: ItemStatus
    name: str
    arguments: str  # JSON string, never parsed
    call_id: str


OutputItem = Union[MessageItem, FunctionCallItem]


class InputTokensDetails(TypedDict, total=False):
    cached_tokens: int


class OutputTokensDetails(TypedDict, total=False):
    reasoning_tokens: int


class ResponseUsage(TypedDict, total=False):
    """Token usage. total_tokens is always input + output."""
    input_tokens: int
    output_tokens: int
    total_tokens: int
    input_tokens_details: InputTokensDetails
    output_tokens_details: OutputTokensDetails


class ResponseObject(TypedDict, total=False):
    """Response body for POST /v1/responses."""
    id: str
    object: Literal["response"]
    created_at: int
    model: str
    output: list[OutputItem]
    output_text: str
    usage: ResponseUsage
    status: ResponseStatus


# =============================================================================
# Event Type Constants
# =============================================================================

EVENT_RESPONSE_CREATED = "response.created"
EVENT_OUTPUT_TEXT_DELTA = "response.output_text.delta"
EVENT_OUTPUT_TEXT_DONE = "response.output_text.done"
EVENT_FUNCTION_CALL_ARGS_START = "response.function_call_arguments.start"
EVENT_FUNCTION_CALL_ARGS_DELTA = "response.function_call_arguments.delta"
EVENT_RESPONSE_DONE = "response.done"
