"""
Health check endpoints.
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from config import asset_host_configured

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """
    Health check endpoint.
    Returns overall system health status.
    """
    health_status = {
        "status": "healthy",
        "api": "up",
        "database": "unknown",
        "asset_host": "configured" if asset_host_configured() else "disabled",
    }

    database = getattr(request.app.state, "database", None)
    if database is None or not database.connected:
        health_status["database"] = "not connected"
        health_status["status"] = "degraded"
        return health_status

    try:
        await database.ping()
        health_status["database"] = "up"
    except Exception as e:
        health_status["database"] = f"down: {str(e)}"
        health_status["status"] = "degraded"

    return health_status


@router.get("/health/ready")
async def readiness_check(request: Request):
    """Kubernetes-style readiness probe."""
    database = getattr(request.app.state, "database", None)
    if database is None or not database.connected:
        return JSONResponse(
            status_code=503,
            content={"ready": False, "missing": ["database"]},
        )
    return {"ready": True}


@router.get("/health/live")
async def liveness_check():
    """Kubernetes-style liveness probe."""
    return {"alive": True}
