"""
Standard error response builders for Profile Roulette.

Provides consistent response formats for the HTTP surface and the
orchestrator's status reporting.
"""

from typing import Any, Optional
from .codes import ErrorCode
from .exceptions import RouletteError


def error_response(error: RouletteError | Exception, action: Optional[str] = None, include_context: bool = True) -> dict:
    """Build a standard error response dictionary.

    Args:
        error: The exception to convert to a response
        action: Optional action name for context (e.g. "spin", "restore")
        include_context: Whether to include the context dict

    Returns:
        Standard error response dict with success=False

    Example:
        >>> from errors import ProfileSwitchError, error_response
        >>> err = ProfileSwitchError("Host rejected switch", profile_name="Claude")
        >>> error_response(err, action="spin")
        {
            "success": False,
            "error": {
                "code": "SWITCH_REJECTED",
                "message": "Host rejected switch",
                "details": None,
                "action": "spin",
                "recoverable": True,
                "context": {"profile_name": "Claude"}
            }
        }
    """
    if isinstance(error, RouletteError):
        return {
            "success": False,
            "error": {
                "code": error.code.value,
                "message": error.message,
                "details": error.details,
                "action": action,
                "recoverable": error.recoverable,
                "context": error.context if include_context else None,
            },
        }

    # Fallback for foreign exceptions
    return {
        "success": False,
        "error": {
            "code": ErrorCode.INTERNAL_UNEXPECTED.value,
            "message": str(error),
            "details": None,
            "action": action,
            "recoverable": False,
            "context": None,
        },
    }


def success_response(data: Optional[dict] = None, **kwargs: Any) -> dict:
    """Build a standard success response dictionary.

    Args:
        data: Optional data dict to include in response
        **kwargs: Additional key-value pairs to include at top level

    Returns:
        Standard success response dict with success=True

    Example:
        >>> success_response(profile="Claude")
        {"success": True, "profile": "Claude"}
    """
    response = {"success": True}

    if data:
        response.update(data)
    if kwargs:
        response.update(kwargs)

    return response
