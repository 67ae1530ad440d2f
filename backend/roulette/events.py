"""
Lifecycle signals from the host and an in-process bus to deliver them.

The host reports generation lifecycle and configuration changes; the
orchestrator subscribes to them through LifecycleBus.on().
"""

import logging
from collections import defaultdict
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Union

from errors import NotFoundError

logger = logging.getLogger(__name__)

Handler = Callable[..., Awaitable[Any]]


class Signal(str, Enum):
    GENERATION_STARTED = "generation_started"
    MESSAGE_RECEIVED = "message_received"
    GENERATION_STOPPED = "generation_stopped"
    GENERATION_ENDED = "generation_ended"
    CHAT_CHANGED = "chat_changed"
    PROFILE_CATALOG_CHANGED = "profile_catalog_changed"
    CONFIGURATION_CHANGED = "configuration_changed"


class GenerationType(str, Enum):
    """Request kind carried by generation and message signals."""
    NORMAL = "normal"
    SWIPE = "swipe"
    QUIET = "quiet"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Union[str, "GenerationType", None]) -> "GenerationType":
        """Map a host-provided type string; unknown kinds (continue, impersonate...) become OTHER."""
        if isinstance(value, GenerationType):
            return value
        if not value:
            return cls.NORMAL
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.OTHER


def parse_signal(name: Union[str, Signal]) -> Signal:
    if isinstance(name, Signal):
        return name
    try:
        return Signal(name)
    except ValueError:
        raise NotFoundError(
            f"Unknown lifecycle signal: {name}",
            details=f"Valid signals: {', '.join(s.value for s in Signal)}",
            resource_type="signal",
            resource_id=str(name),
        )


class LifecycleBus:
    """Registry of async handlers keyed by lifecycle signal."""

    def __init__(self) -> None:
        self._handlers: Dict[Signal, List[Handler]] = defaultdict(list)

    def on(self, signal: Union[str, Signal], handler: Handler) -> None:
        self._handlers[parse_signal(signal)].append(handler)

    async def emit(self, signal: Union[str, Signal], **payload: Any) -> int:
        """Deliver a signal to its handlers in registration order; returns handler count."""
        sig = parse_signal(signal)
        handlers = list(self._handlers.get(sig, []))
        logger.debug(f"Signal {sig.value} -> {len(handlers)} handler(s) {payload or ''}")
        for handler in handlers:
            await handler(**payload)
        return len(handlers)
