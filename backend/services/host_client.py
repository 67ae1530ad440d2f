"""
HTTP Host Client - ProfileHost backed by the host application's REST API.

Reads are served from a local cache so signature computation stays
synchronous; refresh() pulls the host's current state and every write
goes to the host first, then updates the cache.

Endpoints:
    GET  /api/connection-profiles          {"profiles": [...], "selected": id}
    POST /api/connection-profiles/switch   {"name": ...}
    GET  /api/settings/connection          {"api_mode": ..., "chat": {...}, "text": {...}}
    PUT  /api/settings/api-mode            {"api_mode": ...}
    PUT  /api/settings/provider/{group}    {...fields}

Usage:
    from services.host_client import HttpProfileHost

    host = HttpProfileHost(base_url="http://localhost:8000")
    await host.refresh()
    await host.switch_profile_by_name("Claude Opus")
"""

import copy
import logging
from typing import Any, Dict, List, MutableMapping, Optional

import httpx

from errors import HostUnavailableError, ProfileSwitchError
from roulette.host import CHAT_GROUP, FIELD_GROUPS, TEXT_GROUP, Profile

logger = logging.getLogger(__name__)


class HttpProfileHost:
    """
    ProfileHost implementation over HTTP.

    The cache starts empty; call refresh() before first use (the
    orchestrator refreshes at the start of every lifecycle handler).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._profiles: Dict[str, Dict[str, Any]] = {}
        self._order: List[str] = []
        self._active_id: Optional[str] = None
        self._api_mode: Optional[str] = None
        self._fields: Dict[str, Optional[Dict[str, Any]]] = {CHAT_GROUP: None, TEXT_GROUP: None}

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """Send a request and decode the JSON body, mapping transport errors."""
        client = self._get_client()
        try:
            response = await client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise HostUnavailableError(
                f"Host timed out on {method} {path}", details=str(e), error_type="timeout"
            ) from e
        except httpx.HTTPStatusError as e:
            raise HostUnavailableError(
                f"Host returned {e.response.status_code} for {method} {path}",
                details=e.response.text[:200],
                error_type="response",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise HostUnavailableError(f"Host unreachable: {method} {path}", details=str(e)) from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise HostUnavailableError(
                f"Host sent invalid JSON for {method} {path}", details=str(e), error_type="response"
            ) from e

    # ------------------------------------------------------------------
    # Cached reads
    # ------------------------------------------------------------------

    def list_profiles(self) -> List[Profile]:
        return [Profile(id=pid, name=self._profiles[pid]["name"]) for pid in self._order]

    def get_active_profile_id(self) -> Optional[str]:
        return self._active_id

    def get_profile_definition(self, profile_id: str) -> Optional[Dict[str, Any]]:
        definition = self._profiles.get(profile_id)
        return copy.deepcopy(definition) if definition is not None else None

    def read_api_mode(self) -> Optional[str]:
        return self._api_mode

    def read_provider_fields(self, group: str) -> Optional[MutableMapping[str, Any]]:
        return self._fields.get(group)

    # ------------------------------------------------------------------
    # Host round-trips
    # ------------------------------------------------------------------

    async def refresh(self) -> None:
        catalog = await self._request("GET", "/api/connection-profiles") or {}
        profiles: Dict[str, Dict[str, Any]] = {}
        order: List[str] = []
        for entry in catalog.get("profiles", []):
            if not isinstance(entry, dict):
                continue
            pid, name = entry.get("id"), entry.get("name")
            if isinstance(pid, str) and isinstance(name, str) and pid not in profiles:
                profiles[pid] = entry
                order.append(pid)
        self._profiles = profiles
        self._order = order
        selected = catalog.get("selected")
        self._active_id = selected if isinstance(selected, str) and selected else None

        connection = await self._request("GET", "/api/settings/connection") or {}
        self._api_mode = connection.get("api_mode")
        for group in FIELD_GROUPS:
            values = connection.get(group)
            self._fields[group] = dict(values) if isinstance(values, dict) else None

    async def switch_profile_by_name(self, name: str) -> None:
        try:
            await self._request("POST", "/api/connection-profiles/switch", json={"name": name})
        except HostUnavailableError as e:
            raise ProfileSwitchError(
                "Host could not switch profile",
                details=str(e),
                profile_name=name,
                unavailable="status_code" not in (e.context or {}),
            ) from e
        logger.debug(f"Host switched to profile {name!r}")
        await self.refresh()

    async def set_api_mode(self, mode: Optional[str]) -> None:
        await self._request("PUT", "/api/settings/api-mode", json={"api_mode": mode})
        self._api_mode = mode

    async def commit_provider_fields(self, group: str) -> None:
        values = self._fields.get(group)
        if values is None:
            return
        await self._request("PUT", f"/api/settings/provider/{group}", json=values)
