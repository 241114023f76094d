"""
Vida Mais Backend — Support Route Handler
=========================================

What:  POST /api/support, the order-status assistant.
How:   Validates that `text` is present and delegates to OrderStatusService.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse

from vidamais.routes import envelope_response
from vidamais.schemas.patient import ResultEnvelope, ResultKind
from vidamais.services.order_status_service import order_status_service

router = APIRouter(prefix="/api", tags=["Support"])


@router.post(
    "/support",
    responses={
        200: {"description": "Assistant reply", "model": ResultEnvelope},
        400: {"description": "Missing text", "model": ResultEnvelope},
    },
    summary="Ask about an order",
    description="Free-text enquiry. Mention 'order 1001' to get that order's status.",
)
async def support(payload: Optional[Dict[str, Any]] = Body(default=None)) -> JSONResponse:
    payload = payload or {}
    text = payload.get("text")
    if not isinstance(text, str) or not text.strip():
        result = ResultEnvelope.failure(ResultKind.INVALID, "Field 'text' is required")
        return envelope_response(result)

    session_id = payload.get("session_id")
    reply = order_status_service.reply(
        text, session_id=str(session_id) if session_id else None
    )
    return envelope_response(ResultEnvelope.ok("Reply generated", reply.model_dump()))
