"""
Shared pytest fixtures for roulette tests.
"""

import os
import tempfile
from pathlib import Path

# Keep the settings singleton away from the working tree; config reads this on import
os.environ.setdefault(
    "ROULETTE_SETTINGS_PATH",
    str(Path(tempfile.mkdtemp(prefix="roulette-tests-")) / "roulette_settings.json"),
)

import pytest

from config import RouletteSettings
from roulette.host import InMemoryHost, StoredProfile

ALPHA_CHAT = {"chat_completion_source": "openai", "openai_model": "gpt-4o"}
BRAVO_CHAT = {"chat_completion_source": "claude", "claude_model": "claude-3-opus"}
CHARLIE_TEXT = {"type": "ollama", "ollama_model": "llama3"}


class SequenceRng:
    """Deterministic stand-in for random.random: replays values, then repeats the default."""

    def __init__(self, *values, default=0.0):
        self.values = list(values)
        self.default = default
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.values:
            return self.values.pop(0)
        return self.default


def make_profiles():
    return [
        StoredProfile("p-alpha", "Alpha", api_mode="openai", chat_fields=dict(ALPHA_CHAT)),
        StoredProfile("p-bravo", "Bravo", api_mode="openai", chat_fields=dict(BRAVO_CHAT)),
        StoredProfile("p-charlie", "Charlie", api_mode="textgen", text_fields=dict(CHARLIE_TEXT)),
    ]


def make_host(**kwargs):
    """Host with three profiles, Alpha active."""
    kwargs.setdefault("active_profile_id", "p-alpha")
    return InMemoryHost(
        profiles=make_profiles(),
        api_mode="openai",
        chat_fields=dict(ALPHA_CHAT),
        text_fields={"type": "vllm", "vllm_model": "mistral-7b"},
        **kwargs,
    )


@pytest.fixture
def host():
    return make_host()


@pytest.fixture
def settings(tmp_path):
    """Isolated settings record with all three profiles selected and rotation enabled."""
    return RouletteSettings(
        enabled=True,
        swipe_threshold=0,
        profile_ids=["p-alpha", "p-bravo", "p-charlie"],
        chance_enabled=False,
        _overrides_path=tmp_path / "roulette_settings.json",
    )
