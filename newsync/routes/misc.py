"""
Miscellaneous routes: health check.
"""

from fastapi import APIRouter

from .. import __version__
from ..config import state

router = APIRouter(tags=["misc"])


@router.get("/status")
async def health_check() -> dict:
    """API health check, including the primary store's circuit state."""
    gateway = state.gateway
    if gateway is None:
        return {"status": "starting", "version": __version__}

    health = gateway.health
    return {
        "status": "ok",
        "version": __version__,
        "store": gateway.store.name,
        "store_connected": health.is_connected,
        "consecutive_failures": health.consecutive_failures,
        "circuit_open": health.circuit_open(gateway.max_retries),
        "last_fetch_at": gateway.state.last_fetch_at or None,
    }
