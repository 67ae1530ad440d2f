"""
Error codes for Profile Roulette.

Provides a standardized taxonomy of error codes organized by category.
Use these codes consistently across all error responses.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Standardized error codes for Profile Roulette.

    Categories:
    - SWITCH_*: Profile switch failures reported by the host
    - RESTORE_*: Snapshot / profile restoration failures
    - HOST_*: Host transport errors
    - VALIDATION_*: Input validation errors
    - NOT_FOUND_*: Resource not found errors
    - INTERNAL_*: Internal/unexpected errors
    """

    # Profile switching
    SWITCH_REJECTED = "SWITCH_REJECTED"
    SWITCH_UNAVAILABLE = "SWITCH_UNAVAILABLE"

    # Restoration
    RESTORE_INCOMPLETE = "RESTORE_INCOMPLETE"

    # Host transport
    HOST_UNREACHABLE = "HOST_UNREACHABLE"
    HOST_TIMEOUT = "HOST_TIMEOUT"
    HOST_BAD_RESPONSE = "HOST_BAD_RESPONSE"

    # Validation errors (input checking)
    VALIDATION_INVALID_TYPE = "VALIDATION_INVALID_TYPE"
    VALIDATION_OUT_OF_RANGE = "VALIDATION_OUT_OF_RANGE"
    VALIDATION_INVALID_FORMAT = "VALIDATION_INVALID_FORMAT"

    # Not found errors (missing resources)
    NOT_FOUND_PROFILE = "NOT_FOUND_PROFILE"
    NOT_FOUND_SIGNAL = "NOT_FOUND_SIGNAL"

    # Internal errors (unexpected failures)
    INTERNAL_UNEXPECTED = "INTERNAL_UNEXPECTED"
