"""
Profile Roulette Error Handling Module

Provides standardized error codes, exceptions, and response builders
for consistent error handling across the application.

Usage:
    from errors import (
        # Error codes
        ErrorCode,

        # Exceptions
        RouletteError,
        ProfileSwitchError,
        RestoreIncompleteError,
        HostUnavailableError,
        ValidationError,
        NotFoundError,

        # Response builders
        error_response,
        success_response,

        # Decorators
        handle_async_errors,
        log_error,
    )

Example:
    from errors import handle_async_errors, ProfileSwitchError

    @handle_async_errors("spin")
    async def spin(host, target):
        try:
            await host.switch_profile_by_name(target.name)
        except Exception as exc:
            raise ProfileSwitchError(
                "Host rejected switch",
                details=str(exc),
                profile_name=target.name,
            ) from exc
"""

from .codes import ErrorCode
from .exceptions import (
    RouletteError,
    ProfileSwitchError,
    RestoreIncompleteError,
    HostUnavailableError,
    ValidationError,
    NotFoundError,
)
from .response import (
    error_response,
    success_response,
)
from .handlers import (
    handle_async_errors,
    log_error,
)

__all__ = [
    # Error codes
    "ErrorCode",
    # Exceptions
    "RouletteError",
    "ProfileSwitchError",
    "RestoreIncompleteError",
    "HostUnavailableError",
    "ValidationError",
    "NotFoundError",
    # Response builders
    "error_response",
    "success_response",
    # Decorators
    "handle_async_errors",
    "log_error",
]
