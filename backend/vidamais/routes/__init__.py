# Routes package init
"""
Vida Mais Backend — API Routes Package
======================================

What:  HTTP route handlers. They stay thin: pull raw values out of the
       request, call a service, and map the returned ResultEnvelope to a
       status code.

Route Inventory:
    - patients.py: POST /api/patients              (register)
                   GET  /api/patients              (list with pagination)
                   GET  /api/patients/search       (search by name)
                   GET  /api/patients/{patient_id} (get by id)
    - support.py:  POST /api/support               (order-status assistant)
    - health.py:   GET  /health                    (service health check)
                   GET  /                          (service banner)
"""

from typing import Dict

from fastapi.responses import JSONResponse

from vidamais.schemas.patient import ResultEnvelope, ResultKind

DEFAULT_STATUS: Dict[ResultKind, int] = {
    ResultKind.OK: 200,
    ResultKind.INVALID: 400,
    ResultKind.CONFLICT: 400,
    ResultKind.NOT_FOUND: 404,
    ResultKind.INTERNAL: 500,
}


def envelope_response(
    result: ResultEnvelope, success_status: int = 200, headers: Dict[str, str] = None
) -> JSONResponse:
    """Serialize an envelope with the status its kind maps to."""
    status = success_status if result.success else DEFAULT_STATUS[result.kind]
    return JSONResponse(
        status_code=status,
        content=result.model_dump(mode="json"),
        headers=headers,
    )
