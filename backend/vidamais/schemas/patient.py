"""
Vida Mais Backend — Pydantic Schemas and the Result Envelope
============================================================

What:  Pydantic models for patient records, pagination, health and support
       replies, plus the `ResultEnvelope` every workflow operation returns.
How:   The record store turns row mappings into `PatientRecord` instances;
       the workflow wraps outcomes in `ResultEnvelope`; routes serialize
       the envelope and pick the HTTP status from its `kind`.

Envelope shape (all patient endpoints):
    {
        "success": false,
        "message": "Invalid patient data",
        "errors": ["Name is required", "Age must be between 0 and 150"],
        "data": null
    }
"""

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Patient Records
# ══════════════════════════════════════════════════════════════════════════


class PatientRecord(BaseModel):
    """A persisted patient exactly as the store returns it."""

    id: int = Field(gt=0, description="Store-assigned identifier")
    name: str
    age: int
    gender: str
    phone: str
    email: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class Pagination(BaseModel):
    """
    Offset pagination state for GET /api/patients.

    total_pages = ceil(total / limit); has_next = page * limit < total.
    """

    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class PatientPage(BaseModel):
    """One page of patients together with its pagination state."""

    records: List[PatientRecord]
    pagination: Pagination


class ValidationResult(BaseModel):
    """Outcome of the entity rules: every violation, in evaluation order."""

    valid: bool
    errors: List[str] = Field(default_factory=list)


# ══════════════════════════════════════════════════════════════════════════
# Result Envelope
# ══════════════════════════════════════════════════════════════════════════


class ResultKind(str, Enum):
    """Tag routes use to choose an HTTP status. Never serialized."""

    OK = "ok"
    INVALID = "invalid"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"


class ResultEnvelope(BaseModel):
    """Uniform success/error/data shape returned by every workflow operation."""

    success: bool
    message: str
    errors: List[str] = Field(default_factory=list)
    data: Optional[Any] = None
    kind: ResultKind = Field(default=ResultKind.OK, exclude=True)

    @classmethod
    def ok(cls, message: str, data: Any = None) -> "ResultEnvelope":
        return cls(success=True, message=message, errors=[], data=data, kind=ResultKind.OK)

    @classmethod
    def failure(
        cls, kind: ResultKind, message: str, errors: Optional[List[str]] = None
    ) -> "ResultEnvelope":
        return cls(
            success=False,
            message=message,
            errors=list(errors) if errors else [message],
            data=None,
            kind=kind,
        )


# ══════════════════════════════════════════════════════════════════════════
# Health & Support
# ══════════════════════════════════════════════════════════════════════════


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring and load balancer checks."""

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    timestamp: datetime = Field(description="Server time of the check (UTC)")
    uptime_seconds: float = Field(description="Seconds since service started")


class SupportReply(BaseModel):
    """Reply produced by the order-status assistant."""

    session_id: str
    reply: str
