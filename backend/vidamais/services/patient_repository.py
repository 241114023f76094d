"""
Vida Mais Backend — Patient Record Store
========================================

What:  Entity-shaped persistence over the storage adapter: create, lookups,
       paginated listing and name search for patients.
How:   Stateless module functions. Each one builds a SQLAlchemy Core
       statement from the `patients` table, hands it to the `Database`
       passed in, and maps the row mappings to `PatientRecord`.
Who:   Called only by the registration workflow (patient_service).

Failure mapping:
    ConstraintViolationError on email → DuplicateEmailError
    any other StorageError            → propagated unchanged
    "not found"                       → None, never an exception
"""

import logging
import math
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import func, insert, select

from vidamais.database import SQLITE_MAX_INTEGER, Database
from vidamais.exceptions import ConstraintViolationError, DuplicateEmailError, StorageError
from vidamais.models.patient import Patient
from vidamais.schemas.patient import Pagination, PatientPage, PatientRecord

logger = logging.getLogger(__name__)

patients = Patient.__table__

_INSERTABLE = ("name", "age", "gender", "phone", "email")


def _to_record(row: Optional[Mapping[str, Any]]) -> Optional[PatientRecord]:
    if row is None:
        return None
    return PatientRecord.model_validate(dict(row))


def _offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def _past_last_row(page: int, limit: int) -> bool:
    # No table can hold more rows than an INTEGER offset can address
    return _offset(page, limit) > SQLITE_MAX_INTEGER


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


async def create(db: Database, record: Mapping[str, Any]) -> PatientRecord:
    """
    Insert a validated patient and return it as stored.

    The row is re-read by its new id so the caller sees server-assigned
    fields (id, created_at, updated_at).

    Raises:
        DuplicateEmailError: the store's UNIQUE(email) constraint fired
        StorageError: any other failure, including a missing row after insert
    """
    values: Dict[str, Any] = {field: record[field] for field in _INSERTABLE}
    try:
        result = await db.execute(insert(patients).values(**values))
    except ConstraintViolationError as e:
        if "email" in e.detail.lower():
            logger.info("Duplicate email rejected by the store")
            raise DuplicateEmailError(context={"detail": e.detail}) from e
        raise

    created = await find_by_id(db, result.inserted_id) if result.inserted_id else None
    if created is None:
        raise StorageError(
            message="Patient was not found after insert",
            context={"inserted_id": result.inserted_id},
        )
    logger.info("Patient %s created", created.id)
    return created


async def find_by_id(db: Database, patient_id: int) -> Optional[PatientRecord]:
    row = await db.query_one(select(patients).where(patients.c.id == patient_id))
    return _to_record(row)


async def find_by_email(db: Database, email: str) -> Optional[PatientRecord]:
    row = await db.query_one(select(patients).where(patients.c.email == email))
    return _to_record(row)


async def find_by_phone(db: Database, phone: str) -> Optional[PatientRecord]:
    row = await db.query_one(select(patients).where(patients.c.phone == phone))
    return _to_record(row)


async def find_all(db: Database, page: int = 1, limit: int = 10) -> PatientPage:
    """
    List patients, most recently created first.

    Two statements: a COUNT(*) for the totals and the page itself
    (LIMIT limit OFFSET (page - 1) * limit). Ties on created_at are broken
    by id so pages are stable.
    """
    count_row = await db.query_one(select(func.count().label("total")).select_from(patients))
    total = int(count_row["total"]) if count_row else 0

    rows = []
    if not _past_last_row(page, limit):
        rows = await db.query_all(
            select(patients)
            .order_by(patients.c.created_at.desc(), patients.c.id.desc())
            .limit(limit)
            .offset(_offset(page, limit))
        )

    return PatientPage(
        records=[_to_record(row) for row in rows],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit),
            has_next=page * limit < total,
            has_prev=page > 1,
        ),
    )


async def search_by_name(
    db: Database, term: str, page: int = 1, limit: int = 10
) -> List[PatientRecord]:
    """
    Substring match on name, alphabetical, no total count.

    `%` and `_` in the term match themselves, not LIKE wildcards. Case
    sensitivity follows the store: SQLite's LIKE is case-insensitive for
    ASCII letters.
    """
    if _past_last_row(page, limit):
        return []
    rows = await db.query_all(
        select(patients)
        .where(patients.c.name.like(_like_pattern(term), escape="\\"))
        .order_by(patients.c.name, patients.c.id)
        .limit(limit)
        .offset(_offset(page, limit))
    )
    return [_to_record(row) for row in rows]


async def email_exists(db: Database, email: str) -> bool:
    return await find_by_email(db, email) is not None


async def phone_exists(db: Database, phone: str) -> bool:
    return await find_by_phone(db, phone) is not None
