"""
Runtime Configuration for Profile Roulette.

Provides a singleton RouletteSettings record holding the rotation settings
(enabled flag, threshold, selected profiles and weights, message routing,
overall chance gate, notifications, last spin result). Values default from
environment variables, can be changed at runtime via update(), and are
persisted as JSON overrides.

Usage:
    from config import settings
    settings.update(enabled=True, swipe_threshold=2)
    weight = settings.weight_for(profile_id)
"""

import json
import math
import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, List, Optional
from threading import Lock

from errors import ValidationError
from roulette.selector import normalize_weight

logger = logging.getLogger(__name__)

RESTORE_MODES = ("keep", "restore")


def _env_bool(key: str, default: str = "false") -> bool:
    return os.environ.get(key, default).strip().lower() == "true"


def _env_list(key: str) -> List[str]:
    raw = os.environ.get(key, "")
    return [p.strip() for p in raw.split(",") if p.strip()]


def sanitize_threshold(value) -> int:
    """Coerce a threshold input into a non-negative integer (invalid -> 0)."""
    if isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return max(0, math.floor(number))


def _parse_int(value) -> Optional[int]:
    """Integer from an int, a finite float or a numeric string; None otherwise."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _env_percent(key: str, default: int = 100) -> int:
    raw = os.environ.get(key)
    if raw is None:
        return default
    value = _parse_int(raw)
    if value is None or not (0 <= value <= 100):
        logger.warning(f"{key}={raw!r} is not a percentage (0-100), using {default}")
        return default
    return value


@dataclass
class RouletteSettings:
    """
    Singleton settings record for the rotation engine.

    Persisted fields are saved to the overrides file; host_url and
    host_timeout are environment-only.
    """

    # Swipe rotation
    enabled: bool = field(default_factory=lambda: _env_bool("ROULETTE_ENABLED"))
    swipe_threshold: int = field(
        default_factory=lambda: sanitize_threshold(os.environ.get("ROULETTE_SWIPE_THRESHOLD", "0"))
    )

    # Candidate selection
    profile_ids: List[str] = field(default_factory=lambda: _env_list("ROULETTE_PROFILE_IDS"))
    profile_weights: Dict[str, int] = field(default_factory=dict)

    # Per-message routing
    message_routing_enabled: bool = field(default_factory=lambda: _env_bool("ROULETTE_MESSAGE_ROUTING"))
    message_restore_mode: str = field(
        default_factory=lambda: os.environ.get("ROULETTE_MESSAGE_RESTORE_MODE", "keep").strip().lower() or "keep"
    )  # keep = routed profile stays active, restore = switch back after the response

    # Overall chance gate
    chance_enabled: bool = field(default_factory=lambda: _env_bool("ROULETTE_CHANCE_ENABLED"))
    chance_percent: int = field(default_factory=lambda: _env_percent("ROULETTE_CHANCE_PERCENT"))
    chance_change_only: bool = field(default_factory=lambda: _env_bool("ROULETTE_CHANCE_CHANGE_ONLY"))

    # Presentation
    show_notifications: bool = field(default_factory=lambda: _env_bool("ROULETTE_SHOW_NOTIFICATIONS", "true"))
    last_spin_profile_id: Optional[str] = None
    debug: bool = field(default_factory=lambda: _env_bool("ROULETTE_DEBUG"))

    # Host connection (env-only)
    host_url: str = field(
        default_factory=lambda: os.environ.get("ROULETTE_HOST_URL", "http://localhost:8000").rstrip("/")
    )
    host_timeout: float = field(default_factory=lambda: float(os.environ.get("ROULETTE_HOST_TIMEOUT", "10")))

    # Internal state
    _update_count: int = field(default=0, repr=False, compare=False)
    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)
    _overrides_path: Path = field(
        default_factory=lambda: Path(os.environ.get(
            "ROULETTE_SETTINGS_PATH", "data/config/roulette_settings.json"
        )),
        repr=False, compare=False,
    )

    # Validation ranges for numeric fields
    _VALIDATION_RANGES = {
        "chance_percent": (0, 100),
        "host_timeout": (0.5, 120.0),
    }

    _ENV_ONLY_FIELDS = frozenset({"host_url", "host_timeout"})

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def threshold(self) -> int:
        return sanitize_threshold(self.swipe_threshold)

    @property
    def restore_after_response(self) -> bool:
        return self.message_restore_mode == "restore"

    def weight_for(self, profile_id: str) -> int:
        """Normalized weight for a profile id (missing/invalid -> default)."""
        return normalize_weight(self.profile_weights.get(profile_id))

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def _field_names(self) -> frozenset:
        from dataclasses import fields as dataclass_fields

        return frozenset(f.name for f in dataclass_fields(self))

    def _coerce(self, key: str, value: Any) -> Any:
        """Normalize a single incoming value; raises ValidationError when it cannot be accepted."""
        if key == "swipe_threshold":
            return sanitize_threshold(value)

        if key == "message_restore_mode":
            mode = str(value).strip().lower()
            if mode not in RESTORE_MODES:
                raise ValidationError(
                    f"Invalid value for {key}", parameter=key,
                    expected=" or ".join(RESTORE_MODES), received=str(value),
                )
            return mode

        if key == "profile_ids":
            if not isinstance(value, (list, tuple)):
                raise ValidationError(
                    f"Invalid type for {key}", error_type="type", parameter=key,
                    expected="list of profile ids", received=type(value).__name__,
                )
            return list(dict.fromkeys(str(v) for v in value))

        if key == "profile_weights":
            if not isinstance(value, dict):
                raise ValidationError(
                    f"Invalid type for {key}", error_type="type", parameter=key,
                    expected="mapping of profile id to weight", received=type(value).__name__,
                )
            return {str(k): normalize_weight(v) for k, v in value.items()}

        if key == "chance_percent":
            percent = _parse_int(value)
            if percent is None:
                raise ValidationError(
                    f"Invalid type for {key}", error_type="type", parameter=key,
                    expected="integer", received=repr(value),
                )
            value = percent

        if key in self._VALIDATION_RANGES:
            lo, hi = self._VALIDATION_RANGES[key]
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValidationError(
                    f"Invalid type for {key}", error_type="type", parameter=key,
                    expected="number", received=repr(value),
                )
            if not (lo <= value <= hi):
                raise ValidationError(
                    f"Value out of range for {key}", error_type="range", parameter=key,
                    expected=f"{lo}-{hi}", received=str(value),
                )

        if key == "host_url" and isinstance(value, str):
            cleaned = value.strip()
            if not cleaned.startswith(("http://", "https://")):
                raise ValidationError(
                    f"Invalid value for {key}", parameter=key,
                    expected="http:// or https:// URL", received=cleaned,
                )
            return cleaned.rstrip("/")

        return value

    def update(self, **kwargs) -> Dict[str, Any]:
        """
        Update settings at runtime.

        Args:
            **kwargs: Key-value pairs to update (e.g., swipe_threshold=2)

        Returns:
            Dict with 'updated' (changed keys), 'ignored' (unknown or rejected keys)
            and 'rejected' (ValidationError per rejected key)
        """
        updated = []
        ignored = []
        rejected: Dict[str, ValidationError] = {}

        with self._lock:
            for key, value in kwargs.items():
                if key.startswith("_") or key not in self._field_names():
                    ignored.append(key)
                    logger.warning(f"Settings ignored unknown key: {key}")
                    continue

                try:
                    value = self._coerce(key, value)
                except ValidationError as e:
                    ignored.append(key)
                    rejected[key] = e
                    logger.warning(f"Settings rejected {key}={value!r} ({e})")
                    continue

                old_value = getattr(self, key)
                setattr(self, key, value)
                updated.append(key)
                logger.info(f"Settings updated: {key} = {value} (was {old_value})")

            self._update_count += 1

        return {
            "updated": updated,
            "ignored": ignored,
            "rejected": rejected,
            "update_count": self._update_count,
        }

    def set_weight(self, profile_id: str, weight: Any) -> int:
        """Store a normalized weight for one profile and return it."""
        normalized = normalize_weight(weight)
        with self._lock:
            self.profile_weights[profile_id] = normalized
        return normalized

    def prune(self, existing_ids) -> bool:
        """Drop selections, weights and the spin result for profiles that no longer exist."""
        existing = set(existing_ids)
        dirty = False
        with self._lock:
            filtered = [pid for pid in self.profile_ids if pid in existing]
            if len(filtered) != len(self.profile_ids):
                self.profile_ids = filtered
                dirty = True

            for key in list(self.profile_weights):
                if key not in existing:
                    del self.profile_weights[key]
                    dirty = True

            if self.last_spin_profile_id and self.last_spin_profile_id not in existing:
                self.last_spin_profile_id = None
                dirty = True
        return dirty

    def to_dict(self) -> Dict[str, Any]:
        """Export current settings as dict (excludes internal fields)."""
        from dataclasses import fields as dataclass_fields

        result = {}
        for field_info in dataclass_fields(self):
            if not field_info.name.startswith("_"):
                result[field_info.name] = getattr(self, field_info.name)
        return result

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save_overrides(self) -> None:
        """Save non-default values to persistent storage."""
        defaults = RouletteSettings()
        overrides = {}

        current = self.to_dict()
        default_dict = defaults.to_dict()

        for key, value in current.items():
            if key in self._ENV_ONLY_FIELDS:
                continue
            if value != default_dict.get(key):
                overrides[key] = value

        try:
            self._overrides_path.parent.mkdir(parents=True, exist_ok=True)
            self._overrides_path.write_text(
                json.dumps(overrides, indent=2, default=str),
                encoding="utf-8",
            )
            logger.debug(f"Settings saved: {len(overrides)} values to {self._overrides_path}")
        except OSError as e:
            logger.error(f"Failed to save settings: {e}")

    def load_overrides(self) -> Dict[str, Any]:
        """Load overrides from persistent storage."""
        if not self._overrides_path.exists():
            return {}

        try:
            overrides = json.loads(self._overrides_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load settings: {e}")
            return {}

        if not isinstance(overrides, dict):
            return {}

        accepted = {k: v for k, v in overrides.items() if k not in self._ENV_ONLY_FIELDS}
        result = self.update(**accepted)
        if result["updated"]:
            logger.info(f"Settings loaded: {', '.join(result['updated'])}")
        return {"applied": result["updated"], "total": len(overrides)}

    def reset_to_defaults(self) -> Dict[str, Any]:
        """Reset all values to environment defaults and clear overrides."""
        defaults = RouletteSettings()
        changes = {}

        with self._lock:
            for key in self.to_dict().keys():
                old_value = getattr(self, key)
                new_value = getattr(defaults, key)
                if old_value != new_value:
                    setattr(self, key, new_value)
                    changes[key] = {"old": old_value, "new": new_value}
                    logger.info(f"Settings reset: {key} = {new_value}")

            self._update_count += 1

        try:
            if self._overrides_path.exists():
                self._overrides_path.write_text("{}", encoding="utf-8")
                logger.info("Settings overrides file cleared")
        except OSError as e:
            logger.error(f"Failed to clear settings file: {e}")

        return {"reset": True, "changes": changes, "update_count": self._update_count}


# Singleton instance
settings = RouletteSettings()

# Load persisted overrides on startup
settings.load_overrides()


def get_settings() -> RouletteSettings:
    """Get the singleton settings instance."""
    return settings
