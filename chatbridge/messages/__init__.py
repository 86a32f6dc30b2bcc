"""Messages dialect support.

Key components:
- translator: Messages request -> Chat Completions, and complete
  Chat Completions responses -> Messages objects
- stream_adapter: Chat Completions chunks -> Messages streaming events
"""

from .translator import (
    chat_completion_to_messages,
    convert_stop_reason,
    messages_to_chat_completions,
)
from .stream_adapter import ChatToMessagesStreamAdapter, adapt_chat_stream_to_messages

__all__ = [
    "messages_to_chat_completions",
    "chat_completion_to_messages",
    "convert_stop_reason",
    "ChatToMessagesStreamAdapter",
    "adapt_chat_stream_to_messages",
]
