"""
Custom exception hierarchy for Profile Roulette.

All exceptions inherit from RouletteError and include:
- code: ErrorCode for categorization
- message: Human-readable error message
- details: Optional additional context
- recoverable: Whether the user can retry/fix the issue
- context: Additional key-value pairs for debugging
"""

from typing import Any, Optional
from .codes import ErrorCode


class RouletteError(Exception):
    """Base exception for all Profile Roulette errors.

    Attributes:
        code: The ErrorCode categorizing this error
        message: Human-readable error message
        details: Optional additional context for the user
        recoverable: Whether the error can be resolved by user action
        context: Additional debugging information
    """

    code: ErrorCode = ErrorCode.INTERNAL_UNEXPECTED
    recoverable: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        code: Optional[ErrorCode] = None,
        recoverable: Optional[bool] = None,
        **context: Any,
    ):
        self.message = message
        self.details = details
        self.context = context if context else None

        # Allow overriding class defaults
        if code is not None:
            self.code = code
        if recoverable is not None:
            self.recoverable = recoverable

        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message

    def to_dict(self) -> dict:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
            "context": self.context,
        }


class ProfileSwitchError(RouletteError):
    """The host rejected or could not perform a profile switch."""

    code = ErrorCode.SWITCH_REJECTED
    recoverable = True

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        profile_name: Optional[str] = None,
        unavailable: bool = False,
        **context: Any,
    ):
        code = ErrorCode.SWITCH_UNAVAILABLE if unavailable else ErrorCode.SWITCH_REJECTED

        ctx = {**context}
        if profile_name:
            ctx["profile_name"] = profile_name
        super().__init__(message, details, code=code, **ctx)


class RestoreIncompleteError(RouletteError):
    """A saved snapshot could not be fully re-applied."""

    code = ErrorCode.RESTORE_INCOMPLETE
    recoverable = False

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        mismatched: Optional[list] = None,
        rolled_back: bool = False,
        **context: Any,
    ):
        ctx = {**context}
        if mismatched:
            ctx["mismatched"] = mismatched
        ctx["rolled_back"] = rolled_back
        super().__init__(message, details, **ctx)


class HostUnavailableError(RouletteError):
    """Error talking to the host application."""

    code = ErrorCode.HOST_UNREACHABLE
    recoverable = True

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        error_type: Optional[str] = None,
        status_code: Optional[int] = None,
        **context: Any,
    ):
        if error_type == "timeout":
            code = ErrorCode.HOST_TIMEOUT
        elif error_type == "response":
            code = ErrorCode.HOST_BAD_RESPONSE
        else:
            code = ErrorCode.HOST_UNREACHABLE

        ctx = {**context}
        if status_code:
            ctx["status_code"] = status_code
        super().__init__(message, details, code=code, **ctx)


class ValidationError(RouletteError):
    """A settings value was rejected during input validation."""

    code = ErrorCode.VALIDATION_INVALID_FORMAT
    recoverable = True

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        error_type: Optional[str] = None,
        parameter: Optional[str] = None,
        expected: Optional[str] = None,
        received: Optional[str] = None,
        **context: Any,
    ):
        if error_type == "type":
            code = ErrorCode.VALIDATION_INVALID_TYPE
        elif error_type == "range":
            code = ErrorCode.VALIDATION_OUT_OF_RANGE
        else:
            code = ErrorCode.VALIDATION_INVALID_FORMAT

        ctx = {**context}
        if parameter:
            ctx["parameter"] = parameter
        if expected:
            ctx["expected"] = expected
        if received:
            ctx["received"] = received
        super().__init__(message, details, code=code, **ctx)


class NotFoundError(RouletteError):
    """Error when a required resource is not found."""

    code = ErrorCode.NOT_FOUND_PROFILE
    recoverable = True

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        **context: Any,
    ):
        if resource_type == "signal":
            code = ErrorCode.NOT_FOUND_SIGNAL
        else:
            code = ErrorCode.NOT_FOUND_PROFILE

        ctx = {**context}
        if resource_type:
            ctx["resource_type"] = resource_type
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message, details, code=code, **ctx)
