"""
Vida Mais Backend — Patient Entity Rules
========================================

What:  Pure functions that sanitize raw patient input and validate the
       result against the field rules. No I/O, no exceptions for bad data.
How:   sanitize() returns a new dict with canonical values; validate() runs
       every field check and collects each failure message in order.
Who:   Called by the registration workflow before any storage access.

Field rules (evaluation order):
    name    string, trimmed, at least 2 characters
    age     integer in [0, 150]
    gender  male | female | other | unspecified (Portuguese aliases accepted)
    phone   10 or 11 digits once every non-digit is stripped
    email   local-part@domain.tld
"""

import re
from typing import Any, Callable, Dict, List, Mapping, Optional

from vidamais.schemas.patient import ValidationResult

PATIENT_FIELDS = ("name", "age", "gender", "phone", "email")

GENDERS = ("male", "female", "other", "unspecified")

GENDER_ALIASES = {
    "masculino": "male",
    "feminino": "female",
    "outro": "other",
    "não informado": "unspecified",
    "nao informado": "unspecified",
    "prefiro não informar": "unspecified",
    "prefiro nao informar": "unspecified",
}

MIN_NAME_LENGTH = 2
MIN_AGE = 0
MAX_AGE = 150
PHONE_DIGITS = (10, 11)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NON_DIGITS = re.compile(r"\D")


# ══════════════════════════════════════════════════════════════════════════
# Sanitization
# ══════════════════════════════════════════════════════════════════════════


def _clean_text(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return value


def _coerce_age(value: Any) -> Optional[Any]:
    # bool is an int subclass but never a valid age
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else value
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        try:
            return int(raw)
        except ValueError:
            pass
        try:
            number = float(raw)
        except ValueError:
            return None
        if number != number or number in (float("inf"), float("-inf")):
            return None
        return int(number) if number.is_integer() else number
    return None


def _canonical_gender(value: Any) -> Any:
    if value is None:
        return ""
    if not isinstance(value, str):
        return value
    lowered = value.strip().lower()
    return GENDER_ALIASES.get(lowered, lowered)


def sanitize(raw: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Turn raw client input into canonical field values.

    Never mutates `raw` and never raises. Missing text fields become "",
    a missing or unparseable age becomes None. Applying sanitize twice
    gives the same result as applying it once.
    """
    source = raw or {}
    return {
        "name": _clean_text(source.get("name")),
        "age": _coerce_age(source.get("age")),
        "gender": _canonical_gender(source.get("gender")),
        "phone": _clean_text(source.get("phone")),
        "email": _clean_text(source.get("email")),
    }


# ══════════════════════════════════════════════════════════════════════════
# Validation
# ══════════════════════════════════════════════════════════════════════════


def check_name(candidate: Mapping[str, Any]) -> Optional[str]:
    name = candidate.get("name")
    if name is None or name == "":
        return "Name is required"
    if not isinstance(name, str):
        return "Name must be a string"
    if len(name.strip()) < MIN_NAME_LENGTH:
        return f"Name must be at least {MIN_NAME_LENGTH} characters long"
    return None


def check_age(candidate: Mapping[str, Any]) -> Optional[str]:
    age = candidate.get("age")
    if age is None or age == "":
        return "Age is required"
    if isinstance(age, bool) or not isinstance(age, int):
        return "Age must be an integer"
    if not MIN_AGE <= age <= MAX_AGE:
        return f"Age must be between {MIN_AGE} and {MAX_AGE}"
    return None


def check_gender(candidate: Mapping[str, Any]) -> Optional[str]:
    gender = candidate.get("gender")
    if gender is None or gender == "":
        return "Gender is required"
    if not isinstance(gender, str) or gender.strip().lower() not in GENDERS:
        return f"Gender must be one of: {', '.join(GENDERS)}"
    return None


def check_phone(candidate: Mapping[str, Any]) -> Optional[str]:
    phone = candidate.get("phone")
    if phone is None or phone == "":
        return "Phone is required"
    if not isinstance(phone, str):
        return "Phone must be a string"
    digits = _NON_DIGITS.sub("", phone)
    if len(digits) not in PHONE_DIGITS:
        return "Phone must contain 10 or 11 digits"
    return None


def check_email(candidate: Mapping[str, Any]) -> Optional[str]:
    email = candidate.get("email")
    if email is None or email == "":
        return "Email is required"
    if not isinstance(email, str) or not EMAIL_PATTERN.match(email):
        return "Email must be a valid email address"
    return None


FIELD_CHECKS: List[Callable[[Mapping[str, Any]], Optional[str]]] = [
    check_name,
    check_age,
    check_gender,
    check_phone,
    check_email,
]


def validate(candidate: Mapping[str, Any]) -> ValidationResult:
    """
    Run every field check against a sanitized candidate.

    Checks do not short-circuit: each failing field contributes exactly one
    message, in the order of FIELD_CHECKS.
    """
    errors = [message for message in (check(candidate) for check in FIELD_CHECKS) if message]
    return ValidationResult(valid=not errors, errors=errors)
