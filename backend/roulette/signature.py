"""
Connection signature tracking.

A ConnectionSignature is a canonical fingerprint of "what is currently
active": api mode, active profile id and definition, and the provider
fields of both field groups. SignatureTracker keeps the last expected
signature and reports drift when the host's state moves without us.

Provider field names are matched two ways:
- a declared list per field group
- a pluggable predicate (default: *model, *source, *preset, *url, api_server_*)
so fields added by new providers are tracked without a code change.
"""

import copy
import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Sequence, Tuple

from logging_config import log_drift
from roulette.host import CHAT_GROUP, TEXT_GROUP, ProfileHost

logger = logging.getLogger(__name__)

FieldPredicate = Callable[[str], bool]

CHAT_COMPLETION_FIELDS: Tuple[str, ...] = (
    "chat_completion_source",
    "openai_model",
    "claude_model",
    "openrouter_model",
    "mistralai_model",
    "google_model",
    "custom_model",
    "custom_url",
    "reverse_proxy",
    "proxy_password",
    "openai_max_context",
    "openai_max_tokens",
    "temp_openai",
)

TEXT_COMPLETION_FIELDS: Tuple[str, ...] = (
    "type",
    "server_urls",
    "preset",
    "custom_model",
    "ollama_model",
    "vllm_model",
    "tabby_model",
    "togetherai_model",
    "openrouter_model",
    "max_context",
)

_PROVIDER_SUFFIXES = ("model", "source", "preset", "url")
_PROVIDER_PREFIXES = ("api_server_",)


def looks_like_provider_field(name: str) -> bool:
    """Default predicate for provider/model fields not on the declared lists."""
    lowered = name.lower()
    return lowered.endswith(_PROVIDER_SUFFIXES) or lowered.startswith(_PROVIDER_PREFIXES)


@dataclass(frozen=True)
class ProviderFieldSets:
    """Declared fields per group plus the dynamic name predicate."""
    chat_fields: Sequence[str] = CHAT_COMPLETION_FIELDS
    text_fields: Sequence[str] = TEXT_COMPLETION_FIELDS
    predicate: FieldPredicate = looks_like_provider_field

    def declared(self, group: str) -> Sequence[str]:
        return self.chat_fields if group == CHAT_GROUP else self.text_fields

    def tracked_keys(self, group: str, *sources: Optional[Mapping[str, Any]]) -> list:
        """Declared fields plus any predicate match found in the given mappings."""
        keys = dict.fromkeys(self.declared(group))
        for source in sources:
            if not source:
                continue
            for key in source:
                if key not in keys and self.predicate(key):
                    keys[key] = None
        return list(keys)

    def extract(self, group: str, live: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """Deep copy of the tracked fields present in a live mapping."""
        if live is None:
            return {}
        return {
            key: copy.deepcopy(live[key])
            for key in self.tracked_keys(group, live)
            if key in live
        }


def _canonical(value: Any) -> str:
    """Order-independent serialization used for structural comparison."""
    return json.dumps(value, sort_keys=True, default=repr, separators=(",", ":"))


@dataclass(frozen=True)
class ConnectionSignature:
    """Opaque fingerprint of the active connection configuration."""
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Drift:
    """A detected difference between expected and observed configuration."""
    reason: str
    expected_profile_id: Optional[str]
    actual_profile_id: Optional[str]
    profile_changed: bool
    signature_changed: bool


def compute_signature(host: ProfileHost, field_sets: ProviderFieldSets) -> ConnectionSignature:
    """Build the signature for the host's current state."""
    active_id = host.get_active_profile_id()
    definition = host.get_profile_definition(active_id) if active_id else None
    payload = {
        "api_mode": host.read_api_mode(),
        "profile_id": active_id,
        "profile": definition,
        "chat": field_sets.extract(CHAT_GROUP, host.read_provider_fields(CHAT_GROUP)),
        "text": field_sets.extract(TEXT_GROUP, host.read_provider_fields(TEXT_GROUP)),
    }
    return ConnectionSignature(_canonical(payload))


@dataclass
class SignatureTracker:
    """
    Tracks the expected connection signature and detects drift.

    Internal switches (rotations, restores, spins) run inside
    internal_switch(); drift detection is suppressed while any are in
    flight so our own writes are never mistaken for a manual change.
    """

    host: ProfileHost
    field_sets: ProviderFieldSets = field(default_factory=ProviderFieldSets)
    expected_profile_id: Optional[str] = None
    expected_signature: Optional[ConnectionSignature] = None
    _switch_depth: int = field(default=0, repr=False)

    def compute(self) -> ConnectionSignature:
        return compute_signature(self.host, self.field_sets)

    def capture_expectation(self) -> None:
        """Record the current state as the expected one."""
        self.expected_profile_id = self.host.get_active_profile_id()
        self.expected_signature = self.compute()

    @property
    def switch_in_flight(self) -> bool:
        return self._switch_depth > 0

    @contextmanager
    def internal_switch(self) -> Iterator[None]:
        """Mark a self-initiated configuration write for the duration of the block."""
        self._switch_depth += 1
        try:
            yield
        finally:
            self._switch_depth -= 1

    def detect_drift(self, reason: str) -> Optional[Drift]:
        """
        Compare the live state with the expectation.

        On a difference the expectation is moved to the observed state and a
        Drift is returned. Returns None when nothing changed or while an
        internal switch is in flight.
        """
        if self.switch_in_flight:
            logger.debug(f"Drift check '{reason}' suppressed: internal switch in flight")
            return None

        actual_id = self.host.get_active_profile_id()
        actual_signature = self.compute()
        profile_changed = actual_id != self.expected_profile_id
        signature_changed = actual_signature != self.expected_signature
        if not (profile_changed or signature_changed):
            return None

        drift = Drift(
            reason=reason,
            expected_profile_id=self.expected_profile_id,
            actual_profile_id=actual_id,
            profile_changed=profile_changed,
            signature_changed=signature_changed,
        )
        log_drift(logger, reason, expected=self.expected_profile_id, actual=actual_id)

        self.expected_profile_id = actual_id
        self.expected_signature = actual_signature
        return drift
