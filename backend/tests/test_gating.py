"""
Tests for swipe gating: threshold, overall chance gate and bypass.
"""

from conftest import SequenceRng
from roulette.gating import GatingPolicy
from roulette.signature import ConnectionSignature


class TestThreshold:
    def test_rotation_starts_after_threshold(self, settings):
        settings.swipe_threshold = 2
        gating = GatingPolicy(settings)

        results = []
        for _ in range(3):
            gating.register_swipe()
            results.append(gating.threshold_passed())

        assert results == [False, False, True]

    def test_zero_threshold_passes_first_swipe(self, settings):
        gating = GatingPolicy(settings)
        gating.register_swipe()
        assert gating.threshold_passed() is True

    def test_threshold_is_sanitized(self, settings):
        settings.swipe_threshold = "1.9"
        gating = GatingPolicy(settings)
        gating.register_swipe()
        assert gating.threshold_passed() is False
        gating.register_swipe()
        assert gating.threshold_passed() is True

    def test_reset_swipes(self, settings):
        settings.swipe_threshold = 1
        gating = GatingPolicy(settings)
        gating.register_swipe()
        gating.register_swipe()
        gating.reset_swipes()
        gating.register_swipe()
        assert gating.threshold_passed() is False


class TestChanceGate:
    def test_disabled_gate_never_rolls(self, settings):
        rng = SequenceRng()
        gating = GatingPolicy(settings, rng)
        assert gating.chance_passed() is True
        assert rng.calls == 0

    def test_roll_must_be_below_percent(self, settings):
        settings.chance_enabled = True
        settings.chance_percent = 30
        gating = GatingPolicy(settings, SequenceRng(0.29, 0.30))
        assert gating.chance_passed() is True
        assert gating.chance_passed() is False

    def test_zero_and_hundred_percent(self, settings):
        settings.chance_enabled = True
        settings.chance_percent = 0
        gating = GatingPolicy(settings, SequenceRng(default=0.0))
        assert not any(gating.chance_passed() for _ in range(20))

        settings.chance_percent = 100
        gating = GatingPolicy(settings, SequenceRng(default=0.999))
        assert all(gating.chance_passed() for _ in range(20))

    def test_change_only_reuses_result_for_same_signature(self, settings):
        settings.chance_enabled = True
        settings.chance_percent = 50
        settings.chance_change_only = True
        rng = SequenceRng(0.9, 0.1)
        gating = GatingPolicy(settings, rng)
        sig_a = ConnectionSignature("a")

        assert gating.chance_passed(sig_a) is False
        assert gating.chance_passed(sig_a) is False
        assert rng.calls == 1

        # New signature re-rolls
        assert gating.chance_passed(ConnectionSignature("b")) is True
        assert rng.calls == 2

    def test_reset_change_tracking_forces_reroll(self, settings):
        settings.chance_enabled = True
        settings.chance_percent = 50
        settings.chance_change_only = True
        rng = SequenceRng(0.9, 0.1)
        gating = GatingPolicy(settings, rng)
        sig = ConnectionSignature("a")

        gating.chance_passed(sig)
        gating.reset_change_tracking()
        assert gating.chance_passed(sig) is True


class TestBypass:
    def test_bypass_is_one_shot(self, settings):
        gating = GatingPolicy(settings)
        assert gating.consume_bypass() is False
        gating.arm_bypass()
        assert gating.bypass_armed is True
        assert gating.consume_bypass() is True
        assert gating.consume_bypass() is False
