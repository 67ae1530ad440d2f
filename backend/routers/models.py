"""
Pydantic models for roulette API requests.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel


class SettingsUpdate(BaseModel):
    """Settings update request. Unset fields are left unchanged."""

    # Swipe rotation
    enabled: Optional[bool] = None
    swipe_threshold: Optional[int] = None
    # Candidates
    profile_ids: Optional[List[str]] = None
    profile_weights: Optional[Dict[str, int]] = None
    # Per-message routing
    message_routing_enabled: Optional[bool] = None
    message_restore_mode: Optional[str] = None
    # Overall chance gate
    chance_enabled: Optional[bool] = None
    chance_percent: Optional[int] = None
    chance_change_only: Optional[bool] = None
    # Presentation
    show_notifications: Optional[bool] = None
    debug: Optional[bool] = None


class EventRequest(BaseModel):
    """A lifecycle signal forwarded by the host."""

    signal: str
    type: Optional[str] = None
    dry_run: bool = False
    topic: Optional[str] = None
    message_id: Optional[int] = None
