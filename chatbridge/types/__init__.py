"""Type definitions for the canonical model and both dialects."""

from .chat import (
    ChatCompletionChunk,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    Choice,
    ContentPart,
    Delta,
    FunctionCall,
    ToolCall,
    ToolChoice,
    ToolDefinition,
    Usage,
)

__all__ = [
    "ChatCompletionChunk",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ChatMessage",
    "Choice",
    "ContentPart",
    "Delta",
    "FunctionCall",
    "ToolCall",
    "ToolChoice",
    "ToolDefinition",
    "Usage",
]
