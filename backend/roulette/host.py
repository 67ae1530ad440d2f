"""
Host interface - the application that owns connection profiles.

The roulette core never persists profiles or performs the switch itself.
It reads the host's live state through ProfileHost and asks it to switch.
InMemoryHost is a complete implementation used for embedding and tests.
"""

import asyncio
import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, MutableMapping, Optional, Protocol, Set, runtime_checkable

from errors import ProfileSwitchError

logger = logging.getLogger(__name__)

# Name the host understands as "no connection profile"
PROFILE_NONE_SENTINEL = "<None>"

# Provider field groups
CHAT_GROUP = "chat"
TEXT_GROUP = "text"
FIELD_GROUPS = (CHAT_GROUP, TEXT_GROUP)


@dataclass(frozen=True)
class Profile:
    """A named connection profile (model/provider endpoint selection)."""
    id: str
    name: str


@runtime_checkable
class ProfileHost(Protocol):
    """Collaborator contract for the host application."""

    def list_profiles(self) -> List[Profile]:
        ...

    def get_active_profile_id(self) -> Optional[str]:
        ...

    def get_profile_definition(self, profile_id: str) -> Optional[Dict[str, Any]]:
        ...

    def read_api_mode(self) -> Optional[str]:
        ...

    def read_provider_fields(self, group: str) -> Optional[MutableMapping[str, Any]]:
        """Live provider settings for a field group, or None if unavailable."""
        ...

    async def switch_profile_by_name(self, name: str) -> None:
        ...

    async def set_api_mode(self, mode: Optional[str]) -> None:
        ...

    async def commit_provider_fields(self, group: str) -> None:
        """Persist in-place edits made to read_provider_fields(group)."""
        ...

    async def refresh(self) -> None:
        ...


@dataclass
class StoredProfile:
    """Host-side profile definition: which api mode and fields it selects."""
    id: str
    name: str
    api_mode: Optional[str] = None
    chat_fields: Dict[str, Any] = field(default_factory=dict)
    text_fields: Dict[str, Any] = field(default_factory=dict)

    def definition(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "api_mode": self.api_mode,
            "chat_fields": copy.deepcopy(self.chat_fields),
            "text_fields": copy.deepcopy(self.text_fields),
        }


class InMemoryHost:
    """
    In-process host with switchable profiles and live provider settings.

    Switching to a profile applies its stored api mode and fields on top of
    the live settings, the way a connection manager would. Failures can be
    injected per profile name, and an optional delay makes switches yield to
    the event loop so interleavings can be exercised.
    """

    def __init__(
        self,
        profiles: Optional[List[StoredProfile]] = None,
        api_mode: Optional[str] = "openai",
        chat_fields: Optional[Dict[str, Any]] = None,
        text_fields: Optional[Dict[str, Any]] = None,
        active_profile_id: Optional[str] = None,
        switch_delay: float = 0.0,
    ):
        self._profiles: Dict[str, StoredProfile] = {p.id: p for p in (profiles or [])}
        self._api_mode = api_mode
        self._fields: Dict[str, Optional[Dict[str, Any]]] = {
            CHAT_GROUP: dict(chat_fields or {}),
            TEXT_GROUP: dict(text_fields or {}),
        }
        self._active_profile_id = active_profile_id
        self.switch_delay = switch_delay
        self.failing_names: Set[str] = set()
        self.switch_log: List[str] = []
        self.commit_count = 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_profiles(self) -> List[Profile]:
        return [Profile(id=p.id, name=p.name) for p in self._profiles.values()]

    def get_active_profile_id(self) -> Optional[str]:
        return self._active_profile_id

    def get_profile_definition(self, profile_id: str) -> Optional[Dict[str, Any]]:
        stored = self._profiles.get(profile_id)
        return stored.definition() if stored else None

    def read_api_mode(self) -> Optional[str]:
        return self._api_mode

    def read_provider_fields(self, group: str) -> Optional[MutableMapping[str, Any]]:
        return self._fields.get(group)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def switch_profile_by_name(self, name: str) -> None:
        if self.switch_delay:
            await asyncio.sleep(self.switch_delay)
        if name in self.failing_names:
            raise ProfileSwitchError("Host rejected profile switch", profile_name=name)

        self.switch_log.append(name)
        if name == PROFILE_NONE_SENTINEL:
            self._active_profile_id = None
            return

        stored = next((p for p in self._profiles.values() if p.name == name), None)
        if stored is None:
            raise ProfileSwitchError("Unknown profile", profile_name=name)

        self._active_profile_id = stored.id
        if stored.api_mode is not None:
            self._api_mode = stored.api_mode
        for group, values in ((CHAT_GROUP, stored.chat_fields), (TEXT_GROUP, stored.text_fields)):
            target = self._fields.get(group)
            if target is not None:
                target.update(copy.deepcopy(values))

    async def set_api_mode(self, mode: Optional[str]) -> None:
        self._api_mode = mode

    async def commit_provider_fields(self, group: str) -> None:
        self.commit_count += 1

    async def refresh(self) -> None:
        return None

    # ------------------------------------------------------------------
    # Host-side edits (what a user or another extension would do)
    # ------------------------------------------------------------------

    def add_profile(self, profile: StoredProfile) -> None:
        self._profiles[profile.id] = profile

    def remove_profile(self, profile_id: str) -> None:
        self._profiles.pop(profile_id, None)

    def select_profile(self, profile_id: Optional[str]) -> None:
        """Set the active profile id directly, bypassing switch semantics."""
        self._active_profile_id = profile_id

    def set_field(self, group: str, key: str, value: Any) -> None:
        target = self._fields.get(group)
        if target is not None:
            target[key] = value

    def set_group_available(self, group: str, available: bool) -> None:
        if available:
            if self._fields.get(group) is None:
                self._fields[group] = {}
        else:
            self._fields[group] = None
