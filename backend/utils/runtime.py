"""Host, bus and orchestrator singletons shared by the app and routers."""

import logging
from typing import Optional

from config import settings
from roulette.events import LifecycleBus
from roulette.host import ProfileHost
from roulette.orchestrator import GenerationOrchestrator
from services.host_client import HttpProfileHost

logger = logging.getLogger(__name__)

_host: Optional[ProfileHost] = None
_bus: Optional[LifecycleBus] = None
_orchestrator: Optional[GenerationOrchestrator] = None


def get_host() -> ProfileHost:
    """Get the profile host (HTTP client against ROULETTE_HOST_URL by default)."""
    global _host
    if _host is None:
        _host = HttpProfileHost(base_url=settings.host_url, timeout=settings.host_timeout)
        logger.debug(f"Profile host client created for {settings.host_url}")
    return _host


def get_bus() -> LifecycleBus:
    global _bus
    if _bus is None:
        _bus = LifecycleBus()
    return _bus


def get_orchestrator() -> GenerationOrchestrator:
    """Get the orchestrator, building it and subscribing it to the bus on first use."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = GenerationOrchestrator(get_host(), settings)
        _orchestrator.register(get_bus())
    return _orchestrator


def install(host: Optional[ProfileHost] = None, orchestrator: Optional[GenerationOrchestrator] = None) -> None:
    """
    Replace the singletons (embedding and tests).

    A fresh bus is created and the orchestrator, given or built from the
    host, is subscribed to it.
    """
    global _host, _bus, _orchestrator
    _host = host if host is not None else (orchestrator.host if orchestrator is not None else None)
    _bus = LifecycleBus()
    _orchestrator = orchestrator
    if _orchestrator is None and _host is not None:
        _orchestrator = GenerationOrchestrator(_host, settings)
    if _orchestrator is not None:
        _orchestrator.register(_bus)


async def shutdown() -> None:
    """Close the HTTP client (if any) and forget all singletons."""
    global _host, _bus, _orchestrator
    if isinstance(_host, HttpProfileHost):
        await _host.aclose()
    _host = None
    _bus = None
    _orchestrator = None
