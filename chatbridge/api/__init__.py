"""API module for the bridge."""

from .routes import messages_endpoint, responses_endpoint

__all__ = [
    "messages_endpoint",
    "responses_endpoint",
]
