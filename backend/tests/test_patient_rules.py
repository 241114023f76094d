"""
Vida Mais Backend — Patient Entity Rules Unit Tests
===================================================

What:  Tests for sanitize() and validate().
How:   Pure functions, so plain dict inputs and no fixtures.

What we test:
    ✅ sanitize trims, coerces age, canonicalizes gender, fills missing fields
    ✅ sanitize never mutates its input and is idempotent
    ✅ validate reports every failing field, in order
    ✅ boundary values for age and phone digit count
"""

import pytest

from conftest import make_patient
from vidamais.services.patient_rules import sanitize, validate


class TestSanitize:
    """Tests for canonicalizing raw input."""

    def test_trims_text_fields(self):
        result = sanitize(make_patient(name="  Ana Lima  ", phone=" (11) 98765-4321 ", email=" ana@x.com "))

        assert result["name"] == "Ana Lima"
        assert result["phone"] == "(11) 98765-4321"
        assert result["email"] == "ana@x.com"

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (32, 32),
            ("32", 32),
            (" 45 ", 45),
            (32.0, 32),
            ("40.0", 40),
            (32.5, 32.5),
            ("abc", None),
            ("", None),
            (None, None),
            (True, None),
            ([30], None),
        ],
    )
    def test_coerces_age(self, raw, expected):
        assert sanitize(make_patient(age=raw))["age"] == expected

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Female", "female"),
            ("  MALE ", "male"),
            ("feminino", "female"),
            ("Masculino", "male"),
            ("outro", "other"),
            ("Não informado", "unspecified"),
            ("robot", "robot"),
        ],
    )
    def test_canonicalizes_gender(self, raw, expected):
        assert sanitize(make_patient(gender=raw))["gender"] == expected

    def test_missing_fields_become_empty(self):
        assert sanitize({}) == {"name": "", "age": None, "gender": "", "phone": "", "email": ""}

    def test_none_input_is_treated_as_empty(self):
        assert sanitize(None)["name"] == ""

    def test_extra_fields_are_dropped(self):
        assert "id" not in sanitize(make_patient(id=99))

    def test_does_not_mutate_input(self):
        raw = make_patient(name="  Ana  ", gender="FEMININO")
        snapshot = dict(raw)

        sanitize(raw)

        assert raw == snapshot

    @pytest.mark.parametrize(
        "raw",
        [
            make_patient(),
            make_patient(name="  x ", age="12.5", gender=" Outro "),
            make_patient(age="nope", gender=None, phone=None),
            make_patient(name=123, gender=7),
            {},
        ],
    )
    def test_is_idempotent(self, raw):
        once = sanitize(raw)
        assert sanitize(once) == once


class TestValidate:
    """Tests for field rules over sanitized candidates."""

    def test_valid_patient(self):
        result = validate(sanitize(make_patient()))

        assert result.valid is True
        assert result.errors == []

    @pytest.mark.parametrize("field", ["name", "age", "gender", "phone", "email"])
    def test_missing_required_field_is_invalid(self, field):
        raw = make_patient()
        del raw[field]

        result = validate(sanitize(raw))

        assert result.valid is False
        assert len(result.errors) >= 1

    def test_reports_all_errors_in_order(self):
        result = validate(sanitize({}))

        assert result.valid is False
        assert result.errors == [
            "Name is required",
            "Age is required",
            "Gender is required",
            "Phone is required",
            "Email is required",
        ]

    def test_one_message_per_failing_field(self):
        result = validate(sanitize(make_patient(name="A", age=200, email="not-an-email")))

        assert result.errors == [
            "Name must be at least 2 characters long",
            "Age must be between 0 and 150",
            "Email must be a valid email address",
        ]

    def test_name_must_be_string(self):
        result = validate(sanitize(make_patient(name=42)))
        assert result.errors == ["Name must be a string"]

    @pytest.mark.parametrize("age", [0, 1, 149, 150])
    def test_age_boundaries_accepted(self, age):
        assert validate(sanitize(make_patient(age=age))).valid is True

    @pytest.mark.parametrize("age", [-1, 151])
    def test_age_out_of_range(self, age):
        assert validate(sanitize(make_patient(age=age))).errors == ["Age must be between 0 and 150"]

    def test_age_must_be_integer(self):
        assert validate(sanitize(make_patient(age=32.5))).errors == ["Age must be an integer"]

    def test_unparseable_age_is_reported_as_missing(self):
        assert validate(sanitize(make_patient(age="thirty"))).errors == ["Age is required"]

    def test_gender_outside_vocabulary(self):
        result = validate(sanitize(make_patient(gender="robot")))
        assert result.errors == ["Gender must be one of: male, female, other, unspecified"]

    @pytest.mark.parametrize("phone", ["1198765432", "11987654321", "(11) 98765-4321", "11 3456-7890"])
    def test_phone_digit_count_accepted(self, phone):
        assert validate(sanitize(make_patient(phone=phone))).valid is True

    @pytest.mark.parametrize("phone", ["123456789", "119876543210", "phone"])
    def test_phone_digit_count_rejected(self, phone):
        assert validate(sanitize(make_patient(phone=phone))).errors == ["Phone must contain 10 or 11 digits"]

    @pytest.mark.parametrize("email", ["maria", "maria@x", "maria @x.com", "@x.com", "maria@.com x"])
    def test_invalid_email(self, email):
        assert validate(sanitize(make_patient(email=email))).errors == ["Email must be a valid email address"]
