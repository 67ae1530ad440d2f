"""
Profile Roulette Logging Configuration - Color-Coded Logs

Provides:
- ColorFormatter: ANSI color-coded log output
- Helper functions: log_rotation, log_restore, log_drift, log_spin
- setup_logging(): Configure application logging
- set_debug(): Toggle verbose logging for the roulette core

Usage:
    from logging_config import setup_logging, log_rotation
    setup_logging()
    logger = logging.getLogger(__name__)
    log_rotation(logger, "swipe", "Claude Opus", seq=3)
"""

import logging
import sys

# ANSI color codes
COLORS = {
    "RESET": "\033[0m",
    "BOLD": "\033[1m",
    "DIM": "\033[2m",
    # Event colors
    "ROTATE": "\033[96m",  # Cyan - rotation away from the active profile
    "RESTORE": "\033[92m",  # Green - restore back to the saved profile
    "DRIFT": "\033[95m",  # Magenta - external configuration change
    "SPIN": "\033[93m",  # Yellow - manual spin
    "ERROR": "\033[91m",  # Red - errors
    "WARN": "\033[33m",  # Orange/Yellow - warnings
    "DEBUG": "\033[90m",  # Gray - debug info
}

# Loggers owned by the roulette core (toggled by the debug setting)
CORE_LOGGERS = ("roulette", "services.host_client")


class ColorFormatter(logging.Formatter):
    """Custom formatter with colors for different log levels."""

    LEVEL_COLORS = {
        logging.DEBUG: COLORS["DEBUG"],
        logging.INFO: COLORS["RESET"],
        logging.WARNING: COLORS["WARN"],
        logging.ERROR: COLORS["ERROR"],
        logging.CRITICAL: COLORS["ERROR"] + COLORS["BOLD"],
    }

    def format(self, record: logging.LogRecord) -> str:
        # Apply level-based color
        color = self.LEVEL_COLORS.get(record.levelno, COLORS["RESET"])

        # Format: timestamp [LEVEL] message (no module name for compactness)
        timestamp = self.formatTime(record, "%H:%M:%S")
        level = record.levelname[:4]

        formatted = (
            f"{COLORS['DIM']}{timestamp}{COLORS['RESET']} "
            f"[{color}{level}{COLORS['RESET']}] "
            f"{record.getMessage()}"
        )

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted


def setup_logging(level: int = logging.INFO, debug: bool = False) -> None:
    """Configure colored logging for the application."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColorFormatter())

    # Configure root logger
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]

    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    set_debug(debug)


def set_debug(enabled: bool) -> None:
    """Raise or lower the roulette core loggers between DEBUG and INFO."""
    for name in CORE_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if enabled else logging.NOTSET)


# =============================================================================
# COLORED LOG HELPER FUNCTIONS
# =============================================================================


def log_rotation(logger: logging.Logger, kind: str, profile_name: str, **context) -> None:
    """Log a rotation away from the active profile.

    Args:
        logger: Logger instance
        kind: Session kind ('swipe' or 'message')
        profile_name: Name of the profile switched to
        **context: Additional context (seq, weight, etc.)
    """
    ctx = " ".join(f"{k}={v}" for k, v in context.items())
    logger.info(f"{COLORS['ROTATE']}>>> ROTATE{COLORS['RESET']} [{kind}] {profile_name} {ctx}".rstrip())


def log_restore(logger: logging.Logger, kind: str, profile_name: str, **context) -> None:
    """Log a restore back to the saved profile.

    Args:
        logger: Logger instance
        kind: Session kind ('swipe' or 'message')
        profile_name: Name of the restored profile (or the none sentinel)
        **context: Additional context
    """
    ctx = " ".join(f"{k}={v}" for k, v in context.items())
    logger.info(f"{COLORS['RESTORE']}<<< RESTORE{COLORS['RESET']} [{kind}] {profile_name} {ctx}".rstrip())


def log_drift(logger: logging.Logger, reason: str, expected: str = None, actual: str = None) -> None:
    """Log a detected configuration drift.

    Args:
        logger: Logger instance
        reason: What triggered the drift check
        expected: Expected active profile id
        actual: Observed active profile id
    """
    logger.info(
        f"{COLORS['DRIFT']}~~~ DRIFT{COLORS['RESET']} "
        f"reason={reason} expected={expected} actual={actual}"
    )


def log_spin(logger: logging.Logger, profile_name: str, candidates: int = 0) -> None:
    """Log a manual spin result.

    Args:
        logger: Logger instance
        profile_name: Name of the profile drawn
        candidates: Pool size the draw was made from
    """
    logger.info(f"{COLORS['SPIN']}*** SPIN{COLORS['RESET']} {profile_name} (pool={candidates})")
