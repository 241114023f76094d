"""
Vida Mais Backend — Patient SQLAlchemy Model
============================================

What:  ORM model representing the `patients` table.
How:   Inherits from the storage adapter's DeclarativeBase; the record store
       builds Core statements from `Patient.__table__` columns.
Who:   Read by Database.bootstrap_schema() and by the record store.

Table Design:
    - id:          INTEGER PRIMARY KEY AUTOINCREMENT, assigned by the store
    - email:       UNIQUE, the store is the final authority on duplicates
    - phone:       indexed but NOT unique; phone duplicates are only caught
                   by the workflow pre-check
    - created_at / updated_at: server-assigned timestamps

    Indexes on email, phone and name are declared separately from the
    table so bootstrap_schema() can create them one at a time.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from vidamais.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Patient(Base):
    """
    A registered patient.

    Lifecycle:
        Created only by the registration workflow. No operation in this
        service updates or deletes a row.
    """

    __tablename__ = "patients"
    # AUTOINCREMENT: ids are never reused, even after out-of-band deletes
    __table_args__ = (
        Index("idx_patients_email", "email"),
        Index("idx_patients_phone", "phone"),
        Index("idx_patients_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    age: Mapped[int] = mapped_column(Integer, nullable=False)

    # Canonical lower-case value: male, female, other, unspecified
    gender: Mapped[str] = mapped_column(String(20), nullable=False)

    # Stored as the patient typed it (trimmed), not digit-stripped
    phone: Mapped[str] = mapped_column(String(32), nullable=False)

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<Patient(id={self.id}, email='{self.email}')>"
