"""
Rotation sessions - temporary profile switch with guaranteed restore.

One RotationSessionController exists per session kind (swipe, message).
Each controller owns a single RotationSession record:

    IDLE --begin()--> OPEN --restore()--> RESTORING --> IDLE
      ^                                                   |
      +--------------------- reset() ---------------------+

The sequence number is the staleness guard: every begin() and reset()
bumps it, and a restore only finalizes the session if the number it
captured on entry is still current when it completes.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from errors import log_error
from logging_config import log_restore, log_rotation
from roulette.host import PROFILE_NONE_SENTINEL, Profile, ProfileHost
from roulette.notify import LogNotifier, Notifier
from roulette.signature import SignatureTracker
from roulette.snapshot import RestorableSnapshot, SnapshotManager

logger = logging.getLogger(__name__)


class SessionKind(str, Enum):
    SWIPE = "swipe"
    MESSAGE = "message"


class SessionState(str, Enum):
    IDLE = "idle"
    OPEN = "open"
    RESTORING = "restoring"


@dataclass
class RotationSession:
    """Bookkeeping for one open rotation awaiting restoration."""
    kind: SessionKind
    sequence: int = 0
    active: bool = False
    saved_profile_id: Optional[str] = None
    saved_snapshot: Optional[RestorableSnapshot] = None
    restoring: bool = False
    # Profile the host landed on for `target_sequence`, once rotate_to() completes
    target_name: Optional[str] = None
    target_sequence: int = 0

    @property
    def state(self) -> SessionState:
        if self.restoring:
            return SessionState.RESTORING
        if self.active:
            return SessionState.OPEN
        return SessionState.IDLE

    def clear(self) -> None:
        self.active = False
        self.saved_profile_id = None
        self.saved_snapshot = None
        self.target_name = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "state": self.state.value,
            "sequence": self.sequence,
            "saved_profile_id": self.saved_profile_id,
        }


class RotationSessionController:
    """Drives the lifecycle of one RotationSession against the host."""

    def __init__(
        self,
        kind: SessionKind,
        host: ProfileHost,
        snapshots: SnapshotManager,
        tracker: SignatureTracker,
        notifier: Optional[Notifier] = None,
    ):
        self.kind = kind
        self.host = host
        self.snapshots = snapshots
        self.tracker = tracker
        self.notifier = notifier or LogNotifier()
        self.session = RotationSession(kind=kind)
        # Identifies the restore call that currently holds the restoring latch
        self._restore_owner: Optional[object] = None

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def is_open(self) -> bool:
        return self.session.state == SessionState.OPEN

    def begin(self, current_profile_id: Optional[str]) -> int:
        """
        Open (or re-open) the session and return its sequence token.

        The profile and snapshot are only saved when no rotation of this
        kind is active, so stacked rotations still restore to the original.
        """
        s = self.session
        s.sequence += 1
        if not s.active:
            s.saved_profile_id = current_profile_id
            s.saved_snapshot = self.snapshots.capture()
        s.active = True
        logger.debug(f"[{self.kind.value}] session begin seq={s.sequence} saved={s.saved_profile_id}")
        return s.sequence

    def abandon(self, token: int) -> None:
        """Return to IDLE after a failed switch, unless a newer begin() owns the session."""
        s = self.session
        if s.sequence != token:
            logger.debug(f"[{self.kind.value}] abandon for stale seq={token} ignored (current={s.sequence})")
            return
        s.clear()

    async def rotate_to(self, target: Profile) -> bool:
        """Open the session and switch the host to target; abandon on failure."""
        token = self.begin(self.host.get_active_profile_id())
        try:
            with self.tracker.internal_switch():
                await self.host.switch_profile_by_name(target.name)
        except Exception as e:
            log_error(logger, e, context=f"{self.kind.value} rotation to {target.name}",
                      include_traceback=False, level=logging.WARNING)
            self.abandon(token)
            return False

        if self.session.sequence == token:
            self.session.target_name = target.name
            self.session.target_sequence = token
            self.tracker.capture_expectation()
        log_rotation(logger, self.kind.value, target.name, seq=token)
        return True

    async def restore(self) -> bool:
        """
        Switch back to the saved profile and re-apply the saved snapshot.

        Returns True only when the restore succeeded and was still current on
        completion. Failures are logged; the session always ends closed.
        """
        s = self.session
        if not s.active or s.restoring:
            return False

        owner = object()
        self._restore_owner = owner
        s.restoring = True
        seq = s.sequence
        saved_id = s.saved_profile_id
        snapshot = s.saved_snapshot

        original = None
        if saved_id is not None:
            original = next((p for p in self.host.list_profiles() if p.id == saved_id), None)
        target_name = original.name if original else PROFILE_NONE_SENTINEL

        succeeded = False
        try:
            with self.tracker.internal_switch():
                await self.host.switch_profile_by_name(target_name)
                if s.sequence != seq:
                    await self._reclaim_superseded(seq)
                elif snapshot is not None:
                    await self.snapshots.apply(snapshot)
            succeeded = True
        except Exception as e:
            log_error(logger, e, context=f"{self.kind.value} restore to {target_name}",
                      include_traceback=False, level=logging.WARNING)
        finally:
            current = s.sequence == seq
            if current:
                s.clear()
                self.tracker.capture_expectation()
                self.notifier.dismiss()
            else:
                logger.debug(f"[{self.kind.value}] skipping stale restore cleanup seq={seq} current={s.sequence}")
            if self._restore_owner is owner:
                s.restoring = False
                self._restore_owner = None

        if succeeded and current:
            log_restore(logger, self.kind.value, target_name, seq=seq)
            return True
        return False

    async def _reclaim_superseded(self, seq: int) -> None:
        """
        A newer begin() or reset() ran while this restore's switch was in flight.

        The saved snapshot is no longer ours to apply. If the newer rotation
        already landed, our late switch overwrote it, so put it back.
        """
        s = self.session
        logger.debug(f"[{self.kind.value}] restore seq={seq} superseded by seq={s.sequence}, skipping snapshot")
        if s.active and s.target_name is not None and s.target_sequence == s.sequence:
            await self.host.switch_profile_by_name(s.target_name)
            self.tracker.capture_expectation()
            logger.debug(f"[{self.kind.value}] re-applied newer rotation to {s.target_name}")

    def reset(self) -> None:
        """Force IDLE, invalidating any rotation or restore in flight."""
        s = self.session
        s.sequence += 1
        s.clear()
        s.restoring = False
        self._restore_owner = None
        self.notifier.dismiss()
        logger.debug(f"[{self.kind.value}] session reset seq={s.sequence}")
