"""Core exceptions for the bridge."""

from typing import Optional


class BridgeError(Exception):
    """Base exception for bridge errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(BridgeError):
    """Raised when there's an issue with the configuration."""
    pass


class InvalidRequestError(BridgeError):
    """Raised when an incoming request body is not a JSON object."""

    def __init__(self, message: str, code: str = "invalid_request") -> None:
        super().__init__(message)
        self.code = code


class BackendError(BridgeError):
    """Raised when the backend call fails at the transport level or
    answers with an error status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[bytes] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
