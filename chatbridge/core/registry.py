"""Backend client registry for breaking circular imports.

This module holds the client instance so that routes can import it
without causing circular imports with the main module.
"""

from typing import Optional

from .backend import BackendClient

# Global client instance - set by main.create_app during initialization
client: Optional[BackendClient] = None


def set_client(client_instance: Optional[BackendClient]) -> None:
    """Set the global backend client instance."""
    global client
    client = client_instance


def get_client() -> BackendClient:
    """Get the global backend client instance."""
    if client is None:
        raise RuntimeError("Backend client not initialized. Did you call set_client?")
    return client
