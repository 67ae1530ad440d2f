"""
Profile Roulette - weighted connection-profile rotation service
FastAPI backend driven by host lifecycle signals
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
import logging
import uuid

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from routers import roulette
from logging_config import setup_logging
from config import settings
from errors import RouletteError
from utils.runtime import get_host, get_orchestrator, shutdown

setup_logging(debug=settings.debug)
logger = logging.getLogger(__name__)


@dataclass
class StartupHealth:
    """Tracks component health through startup phases."""
    phase: str = "initializing"
    host: str = "pending"
    startup_complete: bool = False


_startup_health = StartupHealth()

# Instance ID - changes on every startup, used by the host to detect restarts
INSTANCE_ID = str(uuid.uuid4())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown events"""
    _startup_health.phase = "host"

    # First refresh is best-effort: the host may start after us
    try:
        await get_host().refresh()
        _startup_health.host = "healthy"
        logger.info(f"Connected to host at {settings.host_url}")
    except RouletteError as e:
        _startup_health.host = "unreachable"
        logger.warning(f"Host not reachable at startup: {e} (will retry on first signal)")

    orchestrator = get_orchestrator()
    orchestrator.start(prune=_startup_health.host == "healthy")

    _startup_health.startup_complete = _startup_health.host == "healthy"
    _startup_health.phase = "ready" if _startup_health.startup_complete else "degraded"
    logger.info(
        f"Profile Roulette ready (enabled={settings.enabled}, "
        f"threshold={settings.threshold}, selected={len(settings.profile_ids)})"
    )
    yield

    await shutdown()
    logger.info("Profile Roulette stopped")


app = FastAPI(
    title="Profile Roulette",
    description="Weighted connection-profile rotation with guaranteed restore",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS - the host UI runs on localhost
app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Roulette router (already has /api/roulette prefix)
app.include_router(roulette.router, tags=["roulette"])


@app.get("/health")
async def health():
    """Health check - pings the host."""
    checks = {}

    try:
        await get_host().refresh()
        checks["host"] = "ok"
    except RouletteError:
        checks["host"] = "down"

    all_ok = all(v == "ok" for v in checks.values())
    return {
        "status": "healthy" if all_ok else "degraded",
        "service": "profile-roulette",
        "instance_id": INSTANCE_ID,
        "checks": checks,
        "startup_phase": _startup_health.phase,
        "startup_complete": _startup_health.startup_complete,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8100)
