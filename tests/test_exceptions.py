"""Tests for the exceptions module."""

import pytest

from chatbridge.core.exceptions import (
    BackendError,
    BridgeError,
    ConfigurationError,
    InvalidRequestError,
)


class TestBridgeError:
    """Tests for the base BridgeError exception."""

    def test_creates_error_with_message(self):
        """Test that error is created with message."""
        error = BridgeError("test error message")
        assert error.message == "test error message"
        assert str(error) == "test error message"

    @pytest.mark.parametrize("cls", [ConfigurationError, InvalidRequestError, BackendError])
    def test_subclasses_share_base(self, cls):
        assert issubclass(cls, BridgeError)


class TestInvalidRequestError:
    def test_default_code(self):
        assert InvalidRequestError("bad").code == "invalid_request"

    def test_custom_code(self):
        assert InvalidRequestError("bad", code="invalid_json").code == "invalid_json"


class TestBackendError:
    def test_creates_error_with_message(self):
        error = BackendError("down")
        assert error.message == "down"
        assert error.status_code is None
        assert error.body is None

    def test_carries_status_and_body(self):
        error = BackendError("down", status_code=503, body=b"oops")
        assert error.status_code == 503
        assert error.body == b"oops"
