"""
Error handling decorators and utilities for Profile Roulette.

Lifecycle handlers must never raise into the host's generation pipeline,
so they are wrapped with handle_async_errors.
"""

import logging
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from .exceptions import RouletteError

# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., Any])


def handle_async_errors(action: str, logger: Optional[logging.Logger] = None, default: Any = None):
    """Decorator that logs exceptions from an async handler and returns a default.

    Args:
        action: Name of the action for log context
        logger: Optional logger instance (defaults to an action-specific logger)
        default: Value returned when the wrapped coroutine raises

    Returns:
        Decorated async function that never raises

    Example:
        >>> @handle_async_errors("generation_started")
        ... async def on_generation_started(self, kind):
        ...     ...
    """

    def decorator(func: F) -> F:
        log = logger or logging.getLogger(f"roulette.{action}")

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except RouletteError as e:
                log.warning(f"[{action}] {e.code.value}: {e.message}", exc_info=True)
                return default
            except Exception as e:
                log.error(f"[{action}] Unexpected error: {e}", exc_info=True)
                return default

        return wrapper  # type: ignore

    return decorator


def log_error(
    logger: logging.Logger,
    error: Exception,
    context: Optional[str] = None,
    include_traceback: bool = True,
    level: int = logging.ERROR,
) -> None:
    """Log an error with consistent formatting.

    Args:
        logger: Logger instance to use
        error: The exception to log
        context: Optional context string to prefix the message
        include_traceback: Whether to include the full stack trace
        level: Log level (switch/restore failures are warnings)

    Example:
        >>> log_error(logger, err, context="restore", level=logging.WARNING)
        # Logs: "[restore] SWITCH_REJECTED: Host rejected switch"
    """
    if isinstance(error, RouletteError):
        message = f"{error.code.value}: {error.message}"
    else:
        message = str(error)

    if context:
        message = f"[{context}] {message}"

    logger.log(level, message, exc_info=include_traceback)
