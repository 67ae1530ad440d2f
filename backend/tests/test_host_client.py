"""
Tests for the HTTP profile host, using httpx.MockTransport as the host app.
"""

import asyncio
import copy
import json

import httpx
import pytest

from config import RouletteSettings
from errors import ErrorCode, HostUnavailableError, ProfileSwitchError
from roulette.host import CHAT_GROUP, TEXT_GROUP, ProfileHost
from roulette.orchestrator import GenerationOrchestrator
from services.host_client import HttpProfileHost


class FakeHostApp:
    """Minimal host REST API with switch semantics."""

    def __init__(self):
        self.profiles = [
            {"id": "p-alpha", "name": "Alpha", "api_mode": "openai",
             "chat": {"chat_completion_source": "openai", "openai_model": "gpt-4o"}},
            {"id": "p-bravo", "name": "Bravo", "api_mode": "openai",
             "chat": {"chat_completion_source": "claude", "claude_model": "claude-3-opus"}},
        ]
        self.selected = "p-alpha"
        self.api_mode = "openai"
        self.fields = {
            "chat": {"chat_completion_source": "openai", "openai_model": "gpt-4o"},
            "text": {"type": "ollama", "ollama_model": "llama3"},
        }
        self.rejected_names = set()
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((request.method, request.url.path))
        path = request.url.path

        if request.method == "GET" and path == "/api/connection-profiles":
            return httpx.Response(200, json={"profiles": self.profiles, "selected": self.selected})

        if request.method == "GET" and path == "/api/settings/connection":
            return httpx.Response(200, json={"api_mode": self.api_mode, **self.fields})

        if request.method == "POST" and path == "/api/connection-profiles/switch":
            name = json.loads(request.content)["name"]
            profile = next((p for p in self.profiles if p["name"] == name), None)
            if name in self.rejected_names or profile is None:
                return httpx.Response(400, json={"detail": f"cannot switch to {name}"})
            self.selected = profile["id"]
            self.api_mode = profile["api_mode"]
            self.fields["chat"].update(copy.deepcopy(profile["chat"]))
            return httpx.Response(204)

        if request.method == "PUT" and path == "/api/settings/api-mode":
            self.api_mode = json.loads(request.content)["api_mode"]
            return httpx.Response(204)

        if request.method == "PUT" and path.startswith("/api/settings/provider/"):
            group = path.rsplit("/", 1)[-1]
            self.fields[group] = json.loads(request.content)
            return httpx.Response(204)

        return httpx.Response(404)


def make_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://host.test")


class TestHttpProfileHost:
    def setup_method(self):
        self.app = FakeHostApp()
        self.host = HttpProfileHost("http://host.test", client=make_client(self.app))

    def test_satisfies_protocol(self):
        assert isinstance(self.host, ProfileHost)

    def test_refresh_populates_cache(self):
        asyncio.run(self.host.refresh())

        assert [p.name for p in self.host.list_profiles()] == ["Alpha", "Bravo"]
        assert self.host.get_active_profile_id() == "p-alpha"
        assert self.host.read_api_mode() == "openai"
        assert self.host.read_provider_fields(TEXT_GROUP)["ollama_model"] == "llama3"
        assert self.host.get_profile_definition("p-bravo")["api_mode"] == "openai"
        assert self.host.get_profile_definition("missing") is None

    def test_missing_group_reads_as_unavailable(self):
        del self.app.fields["text"]
        asyncio.run(self.host.refresh())
        assert self.host.read_provider_fields(TEXT_GROUP) is None

    def test_switch_posts_then_refreshes(self):
        asyncio.run(self.host.refresh())
        asyncio.run(self.host.switch_profile_by_name("Bravo"))

        assert self.host.get_active_profile_id() == "p-bravo"
        assert self.host.read_provider_fields(CHAT_GROUP)["claude_model"] == "claude-3-opus"
        assert ("POST", "/api/connection-profiles/switch") in self.app.requests

    def test_rejected_switch(self):
        self.app.rejected_names.add("Bravo")
        with pytest.raises(ProfileSwitchError) as exc_info:
            asyncio.run(self.host.switch_profile_by_name("Bravo"))
        assert exc_info.value.code == ErrorCode.SWITCH_REJECTED
        assert exc_info.value.context["profile_name"] == "Bravo"

    def test_commit_sends_edited_group(self):
        asyncio.run(self.host.refresh())
        self.host.read_provider_fields(CHAT_GROUP)["openai_model"] = "o1"

        asyncio.run(self.host.commit_provider_fields(CHAT_GROUP))

        assert self.app.fields["chat"]["openai_model"] == "o1"

    def test_set_api_mode(self):
        asyncio.run(self.host.set_api_mode("textgen"))
        assert self.app.api_mode == "textgen"
        assert self.host.read_api_mode() == "textgen"


class TestTransportErrors:
    def _host(self, exc_type):
        def handler(request):
            raise exc_type("boom", request=request)

        return HttpProfileHost("http://host.test", client=make_client(handler))

    def test_connect_error(self):
        with pytest.raises(HostUnavailableError) as exc_info:
            asyncio.run(self._host(httpx.ConnectError).refresh())
        assert exc_info.value.code == ErrorCode.HOST_UNREACHABLE

    def test_timeout(self):
        with pytest.raises(HostUnavailableError) as exc_info:
            asyncio.run(self._host(httpx.ReadTimeout).refresh())
        assert exc_info.value.code == ErrorCode.HOST_TIMEOUT

    def test_switch_while_unreachable(self):
        with pytest.raises(ProfileSwitchError) as exc_info:
            asyncio.run(self._host(httpx.ConnectError).switch_profile_by_name("Alpha"))
        assert exc_info.value.code == ErrorCode.SWITCH_UNAVAILABLE

    def test_invalid_json(self):
        host = HttpProfileHost(
            "http://host.test",
            client=make_client(lambda request: httpx.Response(200, content=b"<html>")),
        )
        with pytest.raises(HostUnavailableError) as exc_info:
            asyncio.run(host.refresh())
        assert exc_info.value.code == ErrorCode.HOST_BAD_RESPONSE


class TestOrchestratorOverHttp:
    def test_swipe_rotation_round_trip(self, tmp_path):
        app = FakeHostApp()
        host = HttpProfileHost("http://host.test", client=make_client(app))
        settings = RouletteSettings(
            enabled=True,
            profile_ids=["p-alpha", "p-bravo"],
            _overrides_path=tmp_path / "roulette_settings.json",
        )
        orchestrator = GenerationOrchestrator(host, settings, rng=lambda: 0.0)

        async def turn():
            await host.refresh()
            orchestrator.start()
            await orchestrator.on_generation_started(kind="swipe")
            rotated_to = app.selected
            await orchestrator.on_message_received(kind="swipe")
            return rotated_to

        assert asyncio.run(turn()) == "p-bravo"
        assert app.selected == "p-alpha"
        assert "claude_model" not in app.fields["chat"]
        assert app.fields["chat"]["openai_model"] == "gpt-4o"
