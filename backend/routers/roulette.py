"""
Roulette Router - settings, status, manual spin and lifecycle ingestion.

The host forwards its generation lifecycle to POST /api/roulette/events;
the orchestrator subscribed to the bus does the rest.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, HTTPException

from config import settings
from errors import RouletteError, error_response, success_response
from logging_config import set_debug
from roulette.events import parse_signal
from utils.runtime import get_bus, get_orchestrator

from .models import EventRequest, SettingsUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/roulette", tags=["roulette"])


@router.get("/status")
async def get_status() -> Dict[str, Any]:
    """Sessions, swipe counter, candidate shares and last spin."""
    orchestrator = get_orchestrator()
    try:
        await orchestrator.host.refresh()
    except RouletteError as e:
        logger.warning(f"Status refresh failed: {e}")
        raise HTTPException(status_code=503, detail=error_response(e, action="status"))
    return success_response(status=orchestrator.status())


@router.get("/settings")
async def get_settings() -> Dict[str, Any]:
    return success_response(settings=settings.to_dict())


@router.put("/settings")
async def update_settings(update: SettingsUpdate) -> Dict[str, Any]:
    """
    Update roulette settings.

    Changes take effect on the next lifecycle signal and are persisted.
    """
    updates = {k: v for k, v in update.model_dump().items() if v is not None}
    if not updates:
        return success_response(updated=[], message="No changes")

    result = settings.update(**updates)
    rejected = result["rejected"]

    if rejected and not result["updated"]:
        first = next(iter(rejected.values()))
        raise HTTPException(status_code=400, detail=error_response(first, action="settings"))

    if "debug" in result["updated"]:
        set_debug(settings.debug)
    if result["updated"]:
        settings.save_overrides()

    return success_response(
        updated=result["updated"],
        ignored=result["ignored"],
        rejected={key: err.to_dict() for key, err in rejected.items()},
        update_count=result["update_count"],
    )


@router.post("/settings/reset")
async def reset_settings() -> Dict[str, Any]:
    """Reset settings to environment defaults."""
    result = settings.reset_to_defaults()
    set_debug(settings.debug)
    return success_response(changes=result["changes"])


@router.post("/spin")
async def spin() -> Dict[str, Any]:
    """Pick a profile by weight and switch to it for good."""
    result = await get_orchestrator().spin()

    if result.status == "busy":
        raise HTTPException(status_code=409, detail="A spin is already in progress")
    if result.status == "failed":
        raise HTTPException(status_code=502, detail=f"Spin failed: {result.error}")

    profile = {"id": result.profile.id, "name": result.profile.name} if result.profile else None
    return success_response(status=result.status, profile=profile)


@router.post("/events")
async def ingest_event(event: EventRequest) -> Dict[str, Any]:
    """Deliver a host lifecycle signal to the orchestrator."""
    try:
        signal = parse_signal(event.signal)
    except RouletteError as e:
        raise HTTPException(status_code=404, detail=error_response(e, action="events"))

    payload: Dict[str, Any] = {"dry_run": event.dry_run}
    if event.type is not None:
        payload["kind"] = event.type
    if event.topic is not None:
        payload["topic"] = event.topic
    if event.message_id is not None:
        payload["message_id"] = event.message_id

    get_orchestrator()
    handled = await get_bus().emit(signal, **payload)
    return success_response(signal=signal.value, handlers=handled)
