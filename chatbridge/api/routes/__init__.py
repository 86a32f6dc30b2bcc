"""API routes for the bridge."""

from .messages import messages_endpoint
from .responses import responses_endpoint

__all__ = [
    "messages_endpoint",
    "responses_endpoint",
]
