"""
Roulette - weighted connection-profile rotation with guaranteed restore.

- selector: weighted draw and candidate pools
- signature: connection fingerprints and drift detection
- snapshot: restorable configuration snapshots
- session: per-kind rotation session state machine
- gating: threshold / chance gate / bypass
- orchestrator: lifecycle signal handling
"""

from .events import GenerationType, LifecycleBus, Signal
from .host import PROFILE_NONE_SENTINEL, InMemoryHost, Profile, ProfileHost, StoredProfile
from .orchestrator import GenerationOrchestrator, SpinResult
from .session import RotationSessionController, SessionKind, SessionState

__all__ = [
    "GenerationType",
    "LifecycleBus",
    "Signal",
    "PROFILE_NONE_SENTINEL",
    "InMemoryHost",
    "Profile",
    "ProfileHost",
    "StoredProfile",
    "GenerationOrchestrator",
    "SpinResult",
    "RotationSessionController",
    "SessionKind",
    "SessionState",
]
