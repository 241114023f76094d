"""
Vida Mais Backend — Health Check and Banner Routes
==================================================

What:  GET /health for monitoring probes and GET / as a service banner.
How:   /health runs `SELECT 1` through the storage adapter. The service is
       only "healthy" when the store answers; otherwise it returns 503.
Who:   Docker health checks, load balancers, humans poking at the API.
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from vidamais import __version__
from vidamais.schemas.patient import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()

ENDPOINTS = {
    "health": "GET /health",
    "register_patient": "POST /api/patients",
    "get_patient": "GET /api/patients/{patient_id}",
    "list_patients": "GET /api/patients",
    "search_patients": "GET /api/patients/search?name=example",
    "support": "POST /api/support",
}


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request) -> JSONResponse:
    database = getattr(request.app.state, "database", None)
    connected = database is not None and await database.ping()
    if not connected:
        logger.warning("Health check: database unreachable")

    body = HealthResponse(
        status="healthy" if connected else "unhealthy",
        version=__version__,
        database="connected" if connected else "disconnected",
        timestamp=datetime.now(timezone.utc),
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return JSONResponse(
        status_code=200 if connected else 503,
        content=body.model_dump(mode="json"),
    )


@router.get("/", summary="Service banner", include_in_schema=False)
async def root() -> dict:
    return {
        "success": True,
        "message": "Vida Mais Clinic - Patient Management API",
        "version": __version__,
        "endpoints": ENDPOINTS,
        "documentation": "/docs",
    }
