"""
Health check endpoints.
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from config import settings
from routers.responses import api_response

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
    }

    # Check database connection
    database = getattr(request.app.state, "database", None)
    try:
        if database is None:
            raise RuntimeError("not connected")
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
    if database is None or not database.is_connected:
        return JSONResponse(
            status_code=503,
            content={"ready": False, "missing": ["database"]},
        )
    return {"ready": True}


@router.get("/health/live")
async def liveness_check():
    """Kubernetes-style liveness probe."""
    return {"alive": True}


@router.get(f"{settings.API_PREFIX}/healthcheck")
async def healthcheck():
    return api_response({"message": "All O.K"}, "OK")
