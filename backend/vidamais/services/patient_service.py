"""
Vida Mais Backend — Patient Registration Workflow
=================================================

What:  The orchestration layer behind every patient endpoint.
How:   Sequences the pure entity rules and the record store, and turns every
       outcome into a `ResultEnvelope`. Validation failures and business
       conflicts are ordinary results; only storage failures travel as
       exceptions, and each entry point converts them (and any other
       unexpected exception) into the generic internal-error envelope at
       its boundary. Ids beyond the store's INTEGER range are "not found"
       without a query.
Who:   Called by the patient route handlers with the request's Database.

Registration Flow (register):
    ┌──────────┐   ┌──────────┐   ┌─────────────┐   ┌─────────────┐   ┌─────────┐
    │ sanitize │──▶│ validate │──▶│ email taken?│──▶│ phone taken?│──▶│ persist │
    └──────────┘   └────┬─────┘   └──────┬──────┘   └──────┬──────┘   └────┬────┘
                        │ invalid        │ conflict        │ conflict      │ late duplicate email
                        ▼                ▼                 ▼               ▼
                    400 envelope     400 envelope      400 envelope    same as email conflict

    The email/phone pre-checks are best effort: two concurrent requests can
    both pass them. UNIQUE(email) in the store decides, and its late
    rejection is reported with the same envelope as the pre-check.
"""

import logging
from typing import Any, Mapping, Optional

from vidamais.config import settings
from vidamais.database import SQLITE_MAX_INTEGER, Database
from vidamais.exceptions import DuplicateEmailError, StorageError
from vidamais.schemas.patient import ResultEnvelope, ResultKind
from vidamais.services import patient_repository, patient_rules

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def _duplicate_email() -> ResultEnvelope:
    return ResultEnvelope.failure(
        ResultKind.CONFLICT,
        "Email already registered",
        ["Email is already in use by another patient"],
    )


def _duplicate_phone() -> ResultEnvelope:
    return ResultEnvelope.failure(
        ResultKind.CONFLICT,
        "Phone already registered",
        ["Phone is already in use by another patient"],
    )


def _patient_not_found() -> ResultEnvelope:
    return ResultEnvelope.failure(
        ResultKind.NOT_FOUND,
        "Patient not found",
        ["No patient found with the given ID"],
    )


def _internal_error(detail: str) -> ResultEnvelope:
    return ResultEnvelope.failure(ResultKind.INTERNAL, INTERNAL_ERROR_MESSAGE, [detail])


def _parse_int(value: Any) -> Optional[int]:
    """Accept ints, integral floats and integer strings; anything else is None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


class PatientService:
    """
    Stateless workflow for patient operations.

    Responsibilities:
        - register():       sanitize → validate → duplicate checks → persist
        - get_by_id():      id validation, then lookup
        - list_patients():  pagination validation, then a page of patients
        - search_by_name(): term + pagination validation, then substring search
    """

    def _check_pagination(self, page: Any, limit: Any):
        """Return (page, limit, None) or (None, None, failure envelope)."""
        page_num = 1 if page is None or page == "" else _parse_int(page)
        limit_num = settings.default_page_size if limit is None or limit == "" else _parse_int(limit)

        if page_num is None or page_num < 1:
            return None, None, ResultEnvelope.failure(
                ResultKind.INVALID, "Invalid page", ["Page must be a positive integer"]
            )
        if limit_num is None or not 1 <= limit_num <= settings.max_page_size:
            return None, None, ResultEnvelope.failure(
                ResultKind.INVALID,
                "Invalid limit",
                [f"Limit must be an integer between 1 and {settings.max_page_size}"],
            )
        return page_num, limit_num, None

    async def register(self, db: Database, data: Optional[Mapping[str, Any]]) -> ResultEnvelope:
        """
        Register a new patient.

        Returns:
            success envelope with the stored patient (id, canonical fields,
            timestamps), or a failure envelope tagged invalid / conflict /
            internal. No storage access happens when validation fails.
        """
        candidate = patient_rules.sanitize(data)
        validation = patient_rules.validate(candidate)
        if not validation.valid:
            logger.info("Patient registration rejected: %d validation error(s)", len(validation.errors))
            return ResultEnvelope.failure(
                ResultKind.INVALID, "Invalid patient data", validation.errors
            )

        try:
            if await patient_repository.email_exists(db, candidate["email"]):
                return _duplicate_email()

            if await patient_repository.phone_exists(db, candidate["phone"]):
                return _duplicate_phone()

            created = await patient_repository.create(db, candidate)

        except DuplicateEmailError:
            # Another request stored the same email after our pre-check
            logger.info("Late duplicate email detected on insert")
            return _duplicate_email()
        except StorageError as e:
            logger.error(
                "Storage failure while registering patient: %s | Context: %s",
                e.message, e.context, exc_info=True,
            )
            return _internal_error("An unexpected error occurred while registering the patient")
        except Exception:
            logger.exception("Unexpected failure while registering patient")
            return _internal_error("An unexpected error occurred while registering the patient")

        return ResultEnvelope.ok("Patient registered successfully", created.model_dump())

    async def get_by_id(self, db: Database, patient_id: Any) -> ResultEnvelope:
        """Fetch one patient. Invalid ids fail before any query is issued."""
        parsed = _parse_int(patient_id)
        if parsed is None or parsed <= 0:
            return ResultEnvelope.failure(
                ResultKind.INVALID, "Invalid patient ID", ["ID must be a positive integer"]
            )
        if parsed > SQLITE_MAX_INTEGER:
            return _patient_not_found()

        try:
            record = await patient_repository.find_by_id(db, parsed)
        except StorageError as e:
            logger.error("Storage failure fetching patient %s: %s", parsed, e.message, exc_info=True)
            return _internal_error("An unexpected error occurred while fetching the patient")
        except Exception:
            logger.exception("Unexpected failure fetching patient %s", parsed)
            return _internal_error("An unexpected error occurred while fetching the patient")

        if record is None:
            return _patient_not_found()
        return ResultEnvelope.ok("Patient found", record.model_dump())

    async def list_patients(self, db: Database, page: Any = None, limit: Any = None) -> ResultEnvelope:
        """List patients, newest first. Out-of-range paging is rejected, not clamped."""
        page_num, limit_num, failure = self._check_pagination(page, limit)
        if failure is not None:
            return failure

        try:
            result = await patient_repository.find_all(db, page=page_num, limit=limit_num)
        except StorageError as e:
            logger.error("Storage failure listing patients: %s", e.message, exc_info=True)
            return _internal_error("An unexpected error occurred while listing patients")
        except Exception:
            logger.exception("Unexpected failure listing patients")
            return _internal_error("An unexpected error occurred while listing patients")

        return ResultEnvelope.ok(
            "Patients listed successfully",
            {
                "patients": [record.model_dump() for record in result.records],
                "pagination": result.pagination.model_dump(),
            },
        )

    async def search_by_name(
        self, db: Database, name: Any, page: Any = None, limit: Any = None
    ) -> ResultEnvelope:
        """Substring search on name. A blank name is a validation failure."""
        if not isinstance(name, str) or not name.strip():
            return ResultEnvelope.failure(
                ResultKind.INVALID,
                "Search name is required",
                ["Name must be provided for the search"],
            )

        page_num, limit_num, failure = self._check_pagination(page, limit)
        if failure is not None:
            return failure

        try:
            records = await patient_repository.search_by_name(
                db, name.strip(), page=page_num, limit=limit_num
            )
        except StorageError as e:
            logger.error("Storage failure searching patients: %s", e.message, exc_info=True)
            return _internal_error("An unexpected error occurred while searching patients")
        except Exception:
            logger.exception("Unexpected failure searching patients")
            return _internal_error("An unexpected error occurred while searching patients")

        return ResultEnvelope.ok(
            "Search completed successfully",
            [record.model_dump() for record in records],
        )


patient_service = PatientService()
