"""
Vida Mais Backend — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for the patient registration core.
How:   Each exception carries a user-safe message and an optional context
       dict. The context is logged server-side and never returned to clients.
Who:   Raised by the storage adapter, the record store and the HTTP layer;
       translated into Result Envelopes by the registration workflow and by
       the global handlers registered in main.py.

Exception Hierarchy:
    ClinicError (base)
    ├── ValidationError               → 400 (client can fix the input)
    ├── NotFoundError                 → 404
    ├── DuplicateEmailError           → 400 (business conflict)
    ├── DuplicatePhoneError           → 400 (business conflict)
    └── StorageError                  → 500 (generic message only)
        ├── ConstraintViolationError  → store rejected a row (integrity)
        └── DatabaseConnectionError   → store could not be opened / not connected

Only StorageError and its subclasses travel on the exceptional path through
the workflow; validation and business conflicts come back as envelopes.
ValidationError, NotFoundError and DuplicatePhoneError are never raised by
the patient workflow. They exist for route-level code that raises instead
of returning an envelope, and main.py renders them with the same body.
"""

from typing import Any, Dict, List, Optional


class ClinicError(Exception):
    """
    Base exception for all Vida Mais application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ClinicError):
    """
    Raised when client input fails validation.

    Carries the full ordered list of violations so callers can report them
    all at once instead of only the first one.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        errors: Optional[List[str]] = None,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.errors = list(errors) if errors else [message]
        self.field = field


class NotFoundError(ClinicError):
    """Raised when a requested resource does not exist."""

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DuplicateEmailError(ClinicError):
    """Raised when the store already holds a patient with the given email."""

    def __init__(
        self,
        message: str = "Email already registered",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DuplicatePhoneError(ClinicError):
    """Raised when the store already holds a patient with the given phone."""

    def __init__(
        self,
        message: str = "Phone already registered",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StorageError(ClinicError):
    """
    Raised when a statement against the patient store fails.

    Security Note:
        The message returned to the client is always generic. Driver
        messages, statements and parameters go into `context` and the logs.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ConstraintViolationError(StorageError):
    """
    Raised when the store rejects a row because of an integrity constraint.

    `detail` holds the driver message (e.g. "UNIQUE constraint failed:
    patients.email") so the record store can tell which column clashed.
    """

    def __init__(
        self,
        detail: str = "",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["detail"] = detail
        super().__init__(message="Integrity constraint violated", context=ctx)
        self.detail = detail


class DatabaseConnectionError(StorageError):
    """Raised when the store cannot be opened or is used before connect()."""

    def __init__(
        self,
        message: str = "Could not connect to the database",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
