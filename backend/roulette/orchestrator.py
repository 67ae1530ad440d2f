"""
Generation Lifecycle Orchestrator.

Subscribes to host lifecycle signals and sequences drift detection, gating,
candidate selection and the two rotation sessions:

- generation_started: drift check, recover stale sessions, then either
  message routing (normal), swipe rotation (swipe) or nothing (quiet/other)
- message_received: restore the session matching the message kind
- generation_stopped / generation_ended: restore both sessions
- chat_changed: restore, hard-reset both sessions, re-capture expectation
- configuration_changed / profile_catalog_changed: drift check, arm the
  one-shot swipe bypass on a confirmed manual change

Handlers never raise into the host; failures are logged and the
affected session is left closed.
"""

import logging
import random
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from errors import handle_async_errors, log_error
from logging_config import log_rotation, log_spin
from roulette.events import GenerationType, LifecycleBus, Signal
from roulette.gating import GatingPolicy
from roulette.host import Profile, ProfileHost
from roulette.notify import LogNotifier, Notifier
from roulette.selector import build_candidate_pool, weight_shares, weighted_draw
from roulette.session import RotationSessionController, SessionKind
from roulette.signature import Drift, ProviderFieldSets, SignatureTracker
from roulette.snapshot import SnapshotManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpinResult:
    """Outcome of a manual spin: switched, empty, busy or failed."""
    status: str
    profile: Optional[Profile] = None
    error: Optional[str] = None

    @property
    def switched(self) -> bool:
        return self.status == "switched"


class GenerationOrchestrator:
    """Drives profile rotation from host lifecycle signals."""

    def __init__(
        self,
        host: ProfileHost,
        settings,
        rng: Callable[[], float] = random.random,
        notifier: Optional[Notifier] = None,
        field_sets: Optional[ProviderFieldSets] = None,
        persist: Optional[Callable[[], None]] = None,
    ):
        self.host = host
        self.settings = settings
        self.rng = rng
        self.field_sets = field_sets or ProviderFieldSets()
        self.notifier = notifier or LogNotifier(enabled=lambda: bool(settings.show_notifications))
        self.tracker = SignatureTracker(host, self.field_sets)
        self.snapshots = SnapshotManager(host, self.field_sets)
        self.gating = GatingPolicy(settings, rng)
        self.swipe = RotationSessionController(
            SessionKind.SWIPE, host, self.snapshots, self.tracker, self.notifier
        )
        self.message = RotationSessionController(
            SessionKind.MESSAGE, host, self.snapshots, self.tracker, self.notifier
        )
        self._persist = persist or getattr(settings, "save_overrides", None) or (lambda: None)
        self._spin_in_flight = False

    @property
    def controllers(self):
        return (self.swipe, self.message)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def start(self, prune: bool = True) -> None:
        """
        Capture the initial expectation, pruning stale selections first.

        Pass prune=False when the host catalog could not be loaded; an empty
        cache would otherwise drop every saved selection.
        """
        if prune:
            self.prune_stale_selections()
        self.tracker.capture_expectation()
        logger.info(
            f"Roulette orchestrator started (active={self.host.get_active_profile_id()}, "
            f"selected={len(self.settings.profile_ids)})"
        )

    def register(self, bus: LifecycleBus) -> None:
        bus.on(Signal.GENERATION_STARTED, self.on_generation_started)
        bus.on(Signal.MESSAGE_RECEIVED, self.on_message_received)
        bus.on(Signal.GENERATION_STOPPED, self.on_generation_stopped)
        bus.on(Signal.GENERATION_ENDED, self.on_generation_ended)
        bus.on(Signal.CHAT_CHANGED, self.on_chat_changed)
        bus.on(Signal.PROFILE_CATALOG_CHANGED, self.on_profile_catalog_changed)
        bus.on(Signal.CONFIGURATION_CHANGED, self.on_configuration_changed)

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def detect_drift(self, reason: str, reset_swipes: bool = True, close_sessions: bool = True) -> Optional[Drift]:
        """Run drift detection and apply its consequences."""
        drift = self.tracker.detect_drift(reason)
        if drift is None:
            return None

        self.gating.reset_change_tracking()
        if reset_swipes:
            self.gating.reset_swipes()
        if close_sessions:
            for controller in self.controllers:
                if controller.session.active:
                    logger.info(f"Closing {controller.kind.value} session without restore after manual change")
                    controller.reset()
        return drift

    async def restore_all(self) -> None:
        for controller in self.controllers:
            await controller.restore()

    def prune_stale_selections(self) -> bool:
        existing = [p.id for p in self.host.list_profiles()]
        if not self.settings.prune(existing):
            return False
        self._persist()
        logger.debug("Pruned stale profile selections")
        return True

    def _weight(self, profile: Profile) -> int:
        return self.settings.weight_for(profile.id)

    async def _switch_untracked(self, target: Profile, kind: str) -> bool:
        """Switch without opening a session (the new profile stays active)."""
        try:
            with self.tracker.internal_switch():
                await self.host.switch_profile_by_name(target.name)
        except Exception as e:
            log_error(logger, e, context=f"{kind} switch to {target.name}",
                      include_traceback=False, level=logging.WARNING)
            return False
        self.tracker.capture_expectation()
        log_rotation(logger, kind, target.name, mode="keep")
        return True

    # ------------------------------------------------------------------
    # Generation turns
    # ------------------------------------------------------------------

    async def _route_message(self) -> None:
        if not self.settings.message_routing_enabled:
            return

        active_id = self.host.get_active_profile_id()
        pool = build_candidate_pool(self.host.list_profiles(), self.settings.profile_ids)
        target = weighted_draw(pool, self._weight, self.rng)
        if target is None:
            logger.debug("Message routing: no candidates selected")
            return
        if target.id == active_id:
            logger.debug(f"Message routing drew the active profile {target.name}, keeping it")
            return

        if self.settings.restore_after_response:
            if await self.message.rotate_to(target):
                self.notifier.show_rotation(target.name)
        else:
            await self._switch_untracked(target, kind="message")

    async def _rotate_swipe(self) -> None:
        if not self.settings.enabled:
            return
        if self.gating.consume_bypass():
            logger.debug("Skipping swipe rotation once after manual configuration change")
            return

        self.gating.register_swipe()
        if not self.gating.threshold_passed():
            return
        if not self.gating.chance_passed(self.tracker.compute()):
            logger.debug("Overall chance gate declined rotation")
            return

        active_id = self.host.get_active_profile_id()
        pool = build_candidate_pool(self.host.list_profiles(), self.settings.profile_ids, exclude_id=active_id)
        target = weighted_draw(pool, self._weight, self.rng)
        if target is None:
            logger.debug("No rotation candidates available")
            return
        if target.id == active_id:
            logger.debug(f"Selected profile already active, skipping rotation: {target.name}")
            return

        if await self.swipe.rotate_to(target):
            self.notifier.show_rotation(target.name)

    @handle_async_errors("generation_started")
    async def on_generation_started(self, kind: Any = None, dry_run: bool = False, **_: Any) -> None:
        if dry_run:
            return
        kind = GenerationType.parse(kind)
        await self.host.refresh()

        drift = self.detect_drift(f"generation_started:{kind.value}")
        if kind is GenerationType.SWIPE and drift is not None:
            logger.debug("Manual change detected before swipe, skipping rotation this turn")
            return

        if kind is not GenerationType.QUIET:
            for controller in self.controllers:
                if controller.is_open:
                    logger.debug(f"Recovering stale {controller.kind.value} rotation before {kind.value} generation")
                    await controller.restore()

        if kind is GenerationType.SWIPE:
            await self._rotate_swipe()
        elif kind is GenerationType.NORMAL:
            self.gating.reset_swipes()
            await self._route_message()
        elif kind is GenerationType.OTHER:
            self.gating.reset_swipes()

    @handle_async_errors("message_received")
    async def on_message_received(self, kind: Any = None, **_: Any) -> None:
        kind = GenerationType.parse(kind)
        await self.host.refresh()
        if kind is GenerationType.SWIPE:
            await self.swipe.restore()
        elif kind is GenerationType.NORMAL:
            await self.message.restore()

    @handle_async_errors("generation_stopped")
    async def on_generation_stopped(self, **_: Any) -> None:
        await self.host.refresh()
        await self.restore_all()

    @handle_async_errors("generation_ended")
    async def on_generation_ended(self, **_: Any) -> None:
        await self.host.refresh()
        await self.restore_all()

    @handle_async_errors("chat_changed")
    async def on_chat_changed(self, **_: Any) -> None:
        await self.host.refresh()
        await self.restore_all()
        for controller in self.controllers:
            controller.reset()
        self.gating.reset_swipes()
        self.gating.reset_change_tracking()
        self.gating.consume_bypass()
        self.tracker.capture_expectation()

    @handle_async_errors("configuration_changed")
    async def on_configuration_changed(self, topic: Optional[str] = None, **_: Any) -> None:
        await self.host.refresh()
        if self.detect_drift(f"configuration_changed:{topic or 'settings'}") is not None:
            self.gating.arm_bypass()

    @handle_async_errors("profile_catalog_changed")
    async def on_profile_catalog_changed(self, **_: Any) -> None:
        await self.host.refresh()
        self.prune_stale_selections()
        if self.detect_drift("profile_catalog_changed") is not None:
            self.gating.arm_bypass()

    # ------------------------------------------------------------------
    # Manual spin
    # ------------------------------------------------------------------

    async def spin(self) -> SpinResult:
        """Draw from all selected profiles and switch to the result for good."""
        if self._spin_in_flight:
            return SpinResult(status="busy")
        self._spin_in_flight = True

        try:
            await self.host.refresh()
            pool = build_candidate_pool(self.host.list_profiles(), self.settings.profile_ids)
            target = weighted_draw(pool, self._weight, self.rng)
            if target is None:
                logger.info("Spin: no profiles selected")
                return SpinResult(status="empty")

            # An explicit pick must not be reverted by a pending restore
            for controller in self.controllers:
                if controller.session.active:
                    controller.reset()

            with self.tracker.internal_switch():
                await self.host.switch_profile_by_name(target.name)
            self.tracker.capture_expectation()
            self.gating.reset_swipes()
            self.gating.reset_change_tracking()

            self.settings.last_spin_profile_id = target.id
            self._persist()
            log_spin(logger, target.name, candidates=len(pool))
            return SpinResult(status="switched", profile=target)
        except Exception as e:
            log_error(logger, e, context="spin", include_traceback=False, level=logging.WARNING)
            return SpinResult(status="failed", error=str(e))
        finally:
            self._spin_in_flight = False

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def status(self) -> Dict[str, Any]:
        profiles = self.host.list_profiles()
        names = {p.id: p.name for p in profiles}
        selected = [pid for pid in self.settings.profile_ids if pid in names]
        shares = weight_shares(selected, self.settings.weight_for)
        last_spin = self.settings.last_spin_profile_id

        return {
            "enabled": self.settings.enabled,
            "active_profile_id": self.host.get_active_profile_id(),
            "swipes_used": self.gating.swipes_used,
            "threshold": self.settings.threshold,
            "bypass_armed": self.gating.bypass_armed,
            "sessions": {c.kind.value: c.session.to_dict() for c in self.controllers},
            "candidates": [
                {
                    "id": p.id,
                    "name": p.name,
                    "weight": self.settings.weight_for(p.id),
                    "share": shares.get(p.id, 0),
                }
                for p in build_candidate_pool(profiles, selected)
            ],
            "last_spin": {"id": last_spin, "name": names.get(last_spin)} if last_spin else None,
            "notice": getattr(self.notifier, "current", None),
        }
