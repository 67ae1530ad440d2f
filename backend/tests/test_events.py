"""
Tests for lifecycle signals and the in-process bus.
"""

import asyncio

import pytest

from errors import ErrorCode, NotFoundError
from roulette.events import GenerationType, LifecycleBus, Signal, parse_signal


class TestParsing:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            (None, GenerationType.NORMAL),
            ("", GenerationType.NORMAL),
            ("normal", GenerationType.NORMAL),
            ("SWIPE", GenerationType.SWIPE),
            ("quiet", GenerationType.QUIET),
            ("continue", GenerationType.OTHER),
            ("impersonate", GenerationType.OTHER),
        ],
    )
    def test_generation_type(self, raw, expected):
        assert GenerationType.parse(raw) is expected

    def test_known_signal(self):
        assert parse_signal("chat_changed") is Signal.CHAT_CHANGED

    def test_unknown_signal(self):
        with pytest.raises(NotFoundError) as exc_info:
            parse_signal("app_ready")
        assert exc_info.value.code == ErrorCode.NOT_FOUND_SIGNAL
        assert exc_info.value.context["resource_id"] == "app_ready"


class TestLifecycleBus:
    def test_handlers_run_in_registration_order(self):
        bus = LifecycleBus()
        calls = []

        async def first(**payload):
            calls.append(("first", payload))

        async def second(**payload):
            calls.append(("second", payload))

        bus.on(Signal.GENERATION_ENDED, first)
        bus.on("generation_ended", second)

        count = asyncio.run(bus.emit("generation_ended", reason="done"))

        assert count == 2
        assert calls == [("first", {"reason": "done"}), ("second", {"reason": "done"})]

    def test_emit_without_handlers(self):
        assert asyncio.run(LifecycleBus().emit(Signal.CHAT_CHANGED)) == 0
