"""
Tests for the roulette error handling module.
"""

import asyncio
import logging

from errors import (
    ErrorCode,
    RouletteError,
    ProfileSwitchError,
    RestoreIncompleteError,
    HostUnavailableError,
    ValidationError,
    NotFoundError,
    error_response,
    success_response,
    handle_async_errors,
    log_error,
)


class TestErrorCodes:
    """Test error code enum."""

    def test_error_codes_are_strings(self):
        """Error codes should be string values."""
        assert ErrorCode.SWITCH_REJECTED.value == "SWITCH_REJECTED"
        assert ErrorCode.RESTORE_INCOMPLETE.value == "RESTORE_INCOMPLETE"

    def test_error_codes_have_categories(self):
        """Error codes should follow category naming convention."""
        host_codes = [c for c in ErrorCode if c.value.startswith("HOST_")]
        assert len(host_codes) >= 3

        validation_codes = [c for c in ErrorCode if c.value.startswith("VALIDATION_")]
        assert len(validation_codes) >= 2


class TestRouletteError:
    """Test base RouletteError exception."""

    def test_basic_creation(self):
        err = RouletteError("Test error")
        assert err.message == "Test error"
        assert err.details is None
        assert err.code == ErrorCode.INTERNAL_UNEXPECTED
        assert err.recoverable is False

    def test_with_context(self):
        err = RouletteError("Test error", foo="bar", count=42)
        assert err.context == {"foo": "bar", "count": 42}

    def test_str_representation(self):
        """String representation includes message and details."""
        assert str(RouletteError("Test error", details="More info")) == "Test error - More info"
        assert str(RouletteError("Test error")) == "Test error"

    def test_to_dict(self):
        err = RouletteError("Test error", details="More info", key="value")
        d = err.to_dict()
        assert d["code"] == ErrorCode.INTERNAL_UNEXPECTED.value
        assert d["details"] == "More info"
        assert d["recoverable"] is False
        assert d["context"] == {"key": "value"}


class TestSubclasses:
    def test_switch_rejected_and_unavailable(self):
        rejected = ProfileSwitchError("Rejected", profile_name="Claude")
        assert rejected.code == ErrorCode.SWITCH_REJECTED
        assert rejected.context == {"profile_name": "Claude"}

        unavailable = ProfileSwitchError("Down", unavailable=True)
        assert unavailable.code == ErrorCode.SWITCH_UNAVAILABLE

    def test_restore_incomplete_always_reports_rollback(self):
        err = RestoreIncompleteError("Mismatch")
        assert err.context == {"rolled_back": False}

        err = RestoreIncompleteError("Mismatch", mismatched=["api_mode"], rolled_back=True)
        assert err.context == {"mismatched": ["api_mode"], "rolled_back": True}

    def test_host_unavailable_error_types(self):
        assert HostUnavailableError("x").code == ErrorCode.HOST_UNREACHABLE
        assert HostUnavailableError("x", error_type="timeout").code == ErrorCode.HOST_TIMEOUT
        err = HostUnavailableError("x", error_type="response", status_code=502)
        assert err.code == ErrorCode.HOST_BAD_RESPONSE
        assert err.context["status_code"] == 502

    def test_validation_error_types(self):
        assert ValidationError("x").code == ErrorCode.VALIDATION_INVALID_FORMAT
        assert ValidationError("x", error_type="type").code == ErrorCode.VALIDATION_INVALID_TYPE
        err = ValidationError(
            "Invalid value", error_type="range", parameter="chance_percent", expected="0-100", received="150"
        )
        assert err.code == ErrorCode.VALIDATION_OUT_OF_RANGE
        assert err.recoverable is True
        assert err.context == {"parameter": "chance_percent", "expected": "0-100", "received": "150"}

    def test_not_found_resource_types(self):
        assert NotFoundError("x").code == ErrorCode.NOT_FOUND_PROFILE
        assert NotFoundError("x", resource_type="signal").code == ErrorCode.NOT_FOUND_SIGNAL


class TestErrorResponse:
    """Test error_response function."""

    def test_roulette_error_response(self):
        err = ProfileSwitchError("Host rejected switch", details="busy", profile_name="Claude")
        resp = error_response(err, action="spin")

        assert resp["success"] is False
        assert resp["error"]["code"] == "SWITCH_REJECTED"
        assert resp["error"]["details"] == "busy"
        assert resp["error"]["action"] == "spin"
        assert resp["error"]["recoverable"] is True
        assert resp["error"]["context"] == {"profile_name": "Claude"}

    def test_generic_exception_response(self):
        resp = error_response(ValueError("Bad value"), action="test")
        assert resp["error"]["code"] == "INTERNAL_UNEXPECTED"
        assert resp["error"]["message"] == "Bad value"
        assert resp["error"]["recoverable"] is False

    def test_without_context(self):
        err = NotFoundError("Missing", resource_id="p-1")
        assert error_response(err, include_context=False)["error"]["context"] is None


class TestSuccessResponse:
    def test_basic_success(self):
        assert success_response() == {"success": True}

    def test_with_data_and_kwargs(self):
        resp = success_response({"count": 2}, profile="Claude")
        assert resp == {"success": True, "count": 2, "profile": "Claude"}


class TestHandleAsyncErrors:
    """Test handle_async_errors decorator."""

    def test_success_passthrough(self):
        @handle_async_errors("test")
        async def my_func():
            return 42

        assert asyncio.run(my_func()) == 42

    def test_roulette_error_returns_default(self, caplog):
        @handle_async_errors("test", default="fallback")
        async def my_func():
            raise ProfileSwitchError("Rejected")

        with caplog.at_level(logging.WARNING):
            assert asyncio.run(my_func()) == "fallback"

        assert "SWITCH_REJECTED" in caplog.text

    def test_unexpected_error_logged_as_error(self, caplog):
        @handle_async_errors("test")
        async def my_func():
            raise ValueError("Bad value")

        with caplog.at_level(logging.ERROR):
            assert asyncio.run(my_func()) is None

        assert "Unexpected error: Bad value" in caplog.text

    def test_preserves_function_metadata(self):
        @handle_async_errors("test")
        async def my_func():
            """My docstring."""

        assert my_func.__name__ == "my_func"
        assert my_func.__doc__ == "My docstring."
        assert asyncio.iscoroutinefunction(my_func)


class TestLogError:
    def test_includes_code_and_context(self, caplog):
        logger = logging.getLogger("tests.errors")
        err = ProfileSwitchError("Rejected", profile_name="Claude")

        with caplog.at_level(logging.WARNING):
            log_error(logger, err, context="spin", include_traceback=False, level=logging.WARNING)

        assert "SWITCH_REJECTED" in caplog.text
        assert "spin" in caplog.text
