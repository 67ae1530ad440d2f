"""
Restorable context snapshots.

Restoring a profile by name is not always enough: provider fields can be
edited in place while a rotation is open. A RestorableSnapshot captures the
api mode and tracked provider fields so restore can put them back exactly.
"""

import copy
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from errors import RestoreIncompleteError
from roulette.host import CHAT_GROUP, FIELD_GROUPS, TEXT_GROUP, ProfileHost
from roulette.signature import ProviderFieldSets

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class RestorableSnapshot:
    """Immutable copy of the restorable slice of configuration."""
    profile_id: Optional[str]
    api_mode: Optional[str]
    chat_fields: Mapping[str, Any]
    text_fields: Mapping[str, Any]

    @classmethod
    def build(
        cls,
        profile_id: Optional[str],
        api_mode: Optional[str],
        chat_fields: Dict[str, Any],
        text_fields: Dict[str, Any],
    ) -> "RestorableSnapshot":
        return cls(
            profile_id=profile_id,
            api_mode=api_mode,
            chat_fields=MappingProxyType(copy.deepcopy(chat_fields)),
            text_fields=MappingProxyType(copy.deepcopy(text_fields)),
        )

    def fields(self, group: str) -> Mapping[str, Any]:
        return self.chat_fields if group == CHAT_GROUP else self.text_fields

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RestorableSnapshot):
            return NotImplemented
        return (
            self.profile_id == other.profile_id
            and self.api_mode == other.api_mode
            and dict(self.chat_fields) == dict(other.chat_fields)
            and dict(self.text_fields) == dict(other.text_fields)
        )

    __hash__ = None  # type: ignore[assignment]


@dataclass(frozen=True)
class ApplyResult:
    """Outcome of applying a snapshot to the live configuration."""
    changed: bool
    complete: bool
    missing_groups: tuple = ()


class SnapshotManager:
    """Captures and re-applies RestorableSnapshots against a host."""

    def __init__(self, host: ProfileHost, field_sets: Optional[ProviderFieldSets] = None):
        self.host = host
        self.field_sets = field_sets or ProviderFieldSets()

    def capture(self) -> RestorableSnapshot:
        return RestorableSnapshot.build(
            profile_id=self.host.get_active_profile_id(),
            api_mode=self.host.read_api_mode(),
            chat_fields=self.field_sets.extract(CHAT_GROUP, self.host.read_provider_fields(CHAT_GROUP)),
            text_fields=self.field_sets.extract(TEXT_GROUP, self.host.read_provider_fields(TEXT_GROUP)),
        )

    async def _write(self, snapshot: RestorableSnapshot) -> ApplyResult:
        """Write the snapshot's api mode and fields into the live configuration."""
        changed = False
        missing: List[str] = []

        if self.host.read_api_mode() != snapshot.api_mode:
            await self.host.set_api_mode(snapshot.api_mode)
            changed = True

        for group in FIELD_GROUPS:
            live = self.host.read_provider_fields(group)
            if live is None:
                missing.append(group)
                continue

            wanted = snapshot.fields(group)
            group_changed = False
            for key in self.field_sets.tracked_keys(group, wanted, live):
                if key in wanted:
                    if key not in live or live[key] != wanted[key]:
                        live[key] = copy.deepcopy(wanted[key])
                        group_changed = True
                elif key in live:
                    del live[key]
                    group_changed = True

            if group_changed:
                await self.host.commit_provider_fields(group)
                changed = True

        return ApplyResult(changed=changed, complete=not missing, missing_groups=tuple(missing))

    def _mismatches(self, snapshot: RestorableSnapshot, skip_groups: tuple) -> List[str]:
        current = self.capture()
        mismatched = []
        if current.api_mode != snapshot.api_mode:
            mismatched.append("api_mode")
        for group in FIELD_GROUPS:
            if group in skip_groups:
                continue
            if dict(current.fields(group)) != dict(snapshot.fields(group)):
                mismatched.append(f"{group}_fields")
        return mismatched

    async def apply(self, snapshot: RestorableSnapshot) -> ApplyResult:
        """
        Re-apply a snapshot to the live configuration.

        Unavailable field groups are skipped and reported as incomplete.
        If the written groups still differ from the snapshot afterwards, the
        configuration is rolled back to what was live before the call and
        RestoreIncompleteError is raised.
        """
        fallback = self.capture()
        result = await self._write(snapshot)

        mismatched = self._mismatches(snapshot, result.missing_groups)
        if mismatched:
            logger.warning(
                f"Snapshot re-apply mismatch on {', '.join(mismatched)}; "
                "rolling back to pre-restore configuration"
            )
            rolled_back = True
            try:
                await self._write(fallback)
            except Exception as e:
                rolled_back = False
                logger.error(f"Rollback after snapshot mismatch failed: {e}", exc_info=True)
            raise RestoreIncompleteError(
                "Snapshot could not be fully re-applied",
                mismatched=mismatched,
                rolled_back=rolled_back,
            )

        if not result.complete:
            logger.warning(
                f"Snapshot applied partially; unavailable field groups: {', '.join(result.missing_groups)}"
            )
        return result
