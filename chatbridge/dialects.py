"""Dialect dispatch for the translation engine.

Callers that do not care which dialect they are serving go through these
three functions instead of importing the per-dialect translators directly.
"""

import json
from enum import Enum
from typing import Any, Callable, Mapping, Union

from .core.exceptions import InvalidRequestError
from .core.stream import StreamAdapter
from .messages import (
    ChatToMessagesStreamAdapter,
    chat_completion_to_messages,
    messages_to_chat_completions,
)
from .responses import (
    ChatToResponsesStreamAdapter,
    chat_completion_to_response,
    responses_to_chat_completions,
)
from .types.chat import ChatCompletionRequest


class Dialect(str, Enum):
    RESPONSES = "responses"
    MESSAGES = "messages"


_NORMALIZERS: dict[Dialect, Callable[[Mapping[str, Any]], ChatCompletionRequest]] = {
    Dialect.RESPONSES: responses_to_chat_completions,
    Dialect.MESSAGES: messages_to_chat_completions,
}

_PROJECTORS: dict[Dialect, Callable[[Mapping[str, Any], str], dict[str, Any]]] = {
    Dialect.RESPONSES: chat_completion_to_response,
    Dialect.MESSAGES: chat_completion_to_messages,
}

_SEQUENCERS: dict[Dialect, Callable[[str], StreamAdapter]] = {
    Dialect.RESPONSES: ChatToResponsesStreamAdapter,
    Dialect.MESSAGES: ChatToMessagesStreamAdapter,
}


def decode_request(raw: Union[bytes, str, Mapping[str, Any]]) -> Mapping[str, Any]:
    """Decode a request body into a JSON object.

    Raises:
        InvalidRequestError: If the body is not JSON or not a JSON object
    """
    if isinstance(raw, Mapping):
        return raw

    try:
        payload = json.loads(raw or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidRequestError("Invalid JSON payload", code="invalid_json") from exc

    if not isinstance(payload, dict):
        raise InvalidRequestError(
            "Request body must be a JSON object", code="invalid_request_body"
        )
    return payload


def normalize_request(
    dialect: Dialect, raw: Union[bytes, str, Mapping[str, Any]]
) -> ChatCompletionRequest:
    """Translate a dialect request body into a canonical request.

    Raises:
        InvalidRequestError: Only when the body is not a JSON object
    """
    return _NORMALIZERS[Dialect(dialect)](decode_request(raw))


def project_response(
    dialect: Dialect, response: Mapping[str, Any], fallback_model: str
) -> dict[str, Any]:
    """Translate a complete canonical response into the dialect's shape."""
    return _PROJECTORS[Dialect(dialect)](response, fallback_model)


def create_sequencer(dialect: Dialect, model: str) -> StreamAdapter:
    """Create a fresh stream adapter for one streaming exchange."""
    return _SEQUENCERS[Dialect(dialect)](model)
