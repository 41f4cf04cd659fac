"""Health check endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from barangay_identity import __version__

router = APIRouter()

# Track startup time
_startup_time = datetime.now(timezone.utc)


@router.get("/health")
async def health_check(request: Request):
    """
    Basic health check endpoint.
    Returns 200 if the service is running.
    """
    now = datetime.now(timezone.utc)
    return {
        "status": "healthy",
        "service": "barangay-identity",
        "version": __version__,
        "backend_configured": getattr(request.app.state, "backend", None) is not None,
        "timestamp": now.isoformat(),
        "uptime_seconds": (now - _startup_time).total_seconds(),
    }


@router.get("/live")
async def liveness_check():
    """
    Liveness check for Kubernetes.
    Returns 200 if the process is alive.
    """
    return {"status": "alive"}
