"""Rotation notices shown while a rotated profile is active."""

import logging
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def show_rotation(self, profile_name: str) -> None:
        ...

    def dismiss(self) -> None:
        ...


class LogNotifier:
    """
    Default notifier: records the current notice and logs it.

    At most one notice is active; showing a new one replaces the previous.
    The enabled callable is consulted on every show so the
    show_notifications setting applies without rewiring.
    """

    def __init__(self, enabled: Optional[Callable[[], bool]] = None):
        self._enabled = enabled or (lambda: True)
        self.current: Optional[str] = None

    def show_rotation(self, profile_name: str) -> None:
        if not self._enabled():
            return
        self.dismiss()
        self.current = profile_name
        logger.info(f"Rotation notice: {profile_name}")

    def dismiss(self) -> None:
        if self.current is None:
            return
        logger.debug(f"Rotation notice dismissed: {self.current}")
        self.current = None
