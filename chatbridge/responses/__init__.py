"""Responses dialect support.

Key components:
- translator: Responses request -> Chat Completions, and complete
  Chat Completions responses -> Responses objects
- stream_adapter: Chat Completions chunks -> Responses streaming events
"""

from .translator import (
    chat_completion_to_response,
    convert_usage,
    responses_to_chat_completions,
)
from .stream_adapter import ChatToResponsesStreamAdapter, adapt_chat_stream_to_responses

__all__ = [
    "responses_to_chat_completions",
    "chat_completion_to_response",
    "convert_usage",
    "ChatToResponsesStreamAdapter",
    "adapt_chat_stream_to_responses",
]
