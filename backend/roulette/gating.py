"""
Gating policy - whether a swipe rotation happens this turn.

Two layers, consulted only for swipe rotations:
- threshold: rotation starts once swipes_used exceeds swipe_threshold
- overall chance: roll in [0, 100) must be below chance_percent; with
  chance_change_only the result is cached per connection signature and only
  re-rolled when the signature changes

Also holds the one-shot bypass armed after a confirmed manual change.
"""

import logging
import math
import random
from typing import Callable, Optional

from roulette.signature import ConnectionSignature

logger = logging.getLogger(__name__)


class GatingPolicy:
    """Threshold, chance gate and bypass flag for swipe rotation."""

    def __init__(self, settings, rng: Callable[[], float] = random.random):
        """
        Args:
            settings: Object exposing swipe_threshold, chance_enabled,
                chance_percent and chance_change_only (read on every check)
            rng: Uniform [0, 1) generator
        """
        self.settings = settings
        self.rng = rng
        self.swipes_used = 0
        self._bypass_armed = False
        self._last_signature: Optional[ConnectionSignature] = None
        self._last_result: Optional[bool] = None

    # Threshold ---------------------------------------------------------

    def register_swipe(self) -> int:
        self.swipes_used += 1
        return self.swipes_used

    def reset_swipes(self) -> None:
        self.swipes_used = 0

    def threshold_passed(self) -> bool:
        threshold = self.settings.threshold
        if self.swipes_used <= threshold:
            logger.debug(f"Swipe within threshold, skipping rotation (used={self.swipes_used}, threshold={threshold})")
            return False
        return True

    # Overall chance ------------------------------------------------------

    def _roll(self) -> bool:
        roll = math.floor(self.rng() * 100)
        percent = self.settings.chance_percent
        passed = roll < percent
        logger.debug(f"Chance gate roll={roll} percent={percent} passed={passed}")
        return passed

    def chance_passed(self, signature: Optional[ConnectionSignature] = None) -> bool:
        if not self.settings.chance_enabled:
            return True

        if not self.settings.chance_change_only:
            return self._roll()

        if self._last_result is not None and signature == self._last_signature:
            logger.debug(f"Chance gate reusing cached result passed={self._last_result}")
            return self._last_result

        self._last_signature = signature
        self._last_result = self._roll()
        return self._last_result

    def reset_change_tracking(self) -> None:
        self._last_signature = None
        self._last_result = None

    # One-shot bypass -----------------------------------------------------

    @property
    def bypass_armed(self) -> bool:
        return self._bypass_armed

    def arm_bypass(self) -> None:
        self._bypass_armed = True

    def consume_bypass(self) -> bool:
        armed = self._bypass_armed
        self._bypass_armed = False
        return armed
