"""
Vida Mais Backend — Patient Route Handlers
==========================================

What:  HTTP surface of the registration workflow.
How:   Values are passed to PatientService exactly as received (body dict,
       raw query strings, raw path segment) so the workflow's own rules
       decide what is valid. The envelope kind picks the status code.

Status mapping:
    POST /api/patients              201 | 400 invalid or duplicate | 500
    GET  /api/patients              200 | 400 bad paging           | 500
    GET  /api/patients/search       200 | 400 missing name/paging  | 500
    GET  /api/patients/{patient_id} 200 | 400 bad id | 404         | 500

/search is declared before /{patient_id} so it is not captured as an id.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import JSONResponse

from vidamais.database import Database, get_database
from vidamais.routes import envelope_response
from vidamais.schemas.patient import ResultEnvelope, ResultKind
from vidamais.services.patient_service import patient_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/patients", tags=["Patients"])

_ENVELOPE_RESPONSES = {
    400: {"description": "Invalid input or duplicate patient", "model": ResultEnvelope},
    500: {"description": "Server error", "model": ResultEnvelope},
}


@router.post(
    "",
    status_code=201,
    responses={201: {"description": "Patient registered", "model": ResultEnvelope}, **_ENVELOPE_RESPONSES},
    summary="Register a new patient",
    description=(
        "Sanitizes and validates the patient data, rejects duplicate email or "
        "phone, and stores the patient. All validation errors are reported together."
    ),
)
async def register_patient(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    db: Database = Depends(get_database),
) -> JSONResponse:
    if not payload:
        result = ResultEnvelope.failure(
            ResultKind.INVALID,
            "Patient data is required",
            ["Request body must not be empty"],
        )
        return envelope_response(result)

    result = await patient_service.register(db, payload)
    return envelope_response(result, success_status=201)


@router.get(
    "",
    responses={200: {"description": "Page of patients", "model": ResultEnvelope}, **_ENVELOPE_RESPONSES},
    summary="List patients with pagination",
    description="Most recently registered first. `limit` must be between 1 and 100.",
)
async def list_patients(
    page: Optional[str] = Query(default=None, description="Page number, starting at 1"),
    limit: Optional[str] = Query(default=None, description="Items per page (1-100, default 10)"),
    db: Database = Depends(get_database),
) -> JSONResponse:
    result = await patient_service.list_patients(db, page=page, limit=limit)
    if result.success:
        total = result.data["pagination"]["total"]
        return envelope_response(result, headers={"X-Total-Count": str(total)})
    return envelope_response(result)


@router.get(
    "/search",
    responses={200: {"description": "Matching patients", "model": ResultEnvelope}, **_ENVELOPE_RESPONSES},
    summary="Search patients by name",
    description="Substring match on the patient name, ordered alphabetically.",
)
async def search_patients(
    name: Optional[str] = Query(default=None, description="Part of the patient name"),
    page: Optional[str] = Query(default=None, description="Page number, starting at 1"),
    limit: Optional[str] = Query(default=None, description="Items per page (1-100, default 10)"),
    db: Database = Depends(get_database),
) -> JSONResponse:
    if not name:
        result = ResultEnvelope.failure(
            ResultKind.INVALID,
            "Query parameter 'name' is required",
            ["Name must be provided in the query string"],
        )
        return envelope_response(result)

    result = await patient_service.search_by_name(db, name, page=page, limit=limit)
    return envelope_response(result)


@router.get(
    "/{patient_id}",
    responses={
        200: {"description": "Patient details", "model": ResultEnvelope},
        404: {"description": "Patient not found", "model": ResultEnvelope},
        **_ENVELOPE_RESPONSES,
    },
    summary="Get a single patient by ID",
)
async def get_patient(
    patient_id: str,
    db: Database = Depends(get_database),
) -> JSONResponse:
    result = await patient_service.get_by_id(db, patient_id)
    return envelope_response(result)
