"""Tests for index field length validation and session key accumulation."""

import pytest

from podcheck.domain.errors import ValidationError
from podcheck.domain.models import FieldKind, FieldLimits, IndexField, ValidationSession
from podcheck.domain.validation import (
    apply_field,
    require_lookup_key,
    validate_field,
    validate_length,
)


LIMITS = FieldLimits(customer_max_length=20, invoice_max_length=15)


class TestValidateLength:
    @pytest.mark.parametrize(
        "value, max_length, expected",
        [
            ("12345", 20, "12345"),
            ("  12345  ", 20, "12345"),
            ("\tINV-01\n", 6, "INV-01"),
            ("", 5, ""),
            ("   ", 5, ""),
            ("A" * 20, 20, "A" * 20),
            (" " + "A" * 20 + " ", 20, "A" * 20),
        ],
    )
    def test_within_limit_returns_trimmed(self, value, max_length, expected):
        assert validate_length(value, max_length) == expected

    @pytest.mark.parametrize("value", ["A" * 21, "  " + "A" * 21 + "  ", "1234567890 1234567890"])
    def test_over_limit_raises(self, value):
        with pytest.raises(ValidationError, match="Character length exceeds maximum of 20."):
            validate_length(value, 20)

    def test_not_truncated(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_length("INV-0000000000001", 15)
        assert exc_info.value.message == "Character length exceeds maximum of 15."

    def test_idempotent_on_trimmed_value(self):
        first = validate_length("INV-01", 15)
        second = validate_length(first, 15)
        assert first == second == "INV-01"

    def test_inner_whitespace_kept(self):
        assert validate_length(" AB 12 ", 10) == "AB 12"


class TestValidateField:
    def test_writes_back_trimmed_value(self):
        field = IndexField(kind=FieldKind.CUSTOMER_NUMBER, value="  12345 ", max_length=20)
        assert validate_field(field) == "12345"
        assert field.value == "12345"

    def test_failure_leaves_field_untouched(self):
        raw = " " + "9" * 25 + " "
        field = IndexField(kind=FieldKind.CUSTOMER_NUMBER, value=raw, max_length=20)
        with pytest.raises(ValidationError):
            validate_field(field)
        assert field.value == raw


class TestApplyField:
    def test_customer_stored_in_session(self):
        value, session = apply_field(
            ValidationSession.blank(), FieldKind.CUSTOMER_NUMBER, " 12345 ", LIMITS
        )
        assert value == "12345"
        assert session.customer_number == "12345"
        assert session.invoice_number == ""

    def test_invoice_stored_in_session(self):
        start = ValidationSession(customer_number="12345")
        value, session = apply_field(start, FieldKind.INVOICE_NUMBER, "INV-01 ", LIMITS)
        assert value == "INV-01"
        assert (session.customer_number, session.invoice_number) == ("12345", "INV-01")

    def test_limit_depends_on_field_kind(self):
        sixteen = "X" * 16
        value, _ = apply_field(ValidationSession.blank(), FieldKind.CUSTOMER_NUMBER, sixteen, LIMITS)
        assert value == sixteen
        with pytest.raises(ValidationError, match="maximum of 15"):
            apply_field(ValidationSession.blank(), FieldKind.INVOICE_NUMBER, sixteen, LIMITS)

    def test_failure_does_not_change_session(self):
        start = ValidationSession(customer_number="12345", invoice_number="INV-01", verified=True)
        with pytest.raises(ValidationError):
            apply_field(start, FieldKind.CUSTOMER_NUMBER, "9" * 25, LIMITS)
        assert start == ValidationSession(
            customer_number="12345", invoice_number="INV-01", verified=True
        )

    def test_new_value_clears_verification(self):
        start = ValidationSession(customer_number="12345", invoice_number="INV-01", verified=True)
        _, session = apply_field(start, FieldKind.CUSTOMER_NUMBER, "67890", LIMITS)
        assert session.verified is False
        assert start.verified is True


class TestRequireLookupKey:
    def test_returns_key(self):
        session = ValidationSession(customer_number="12345", invoice_number="INV-01")
        assert require_lookup_key(session) == ("12345", "INV-01")

    def test_customer_must_come_first(self):
        session = ValidationSession(invoice_number="INV-01")
        with pytest.raises(ValidationError, match="Customer number must be entered"):
            require_lookup_key(session)

    def test_invoice_required(self):
        session = ValidationSession(customer_number="12345")
        with pytest.raises(ValidationError, match="Invoice number is required"):
            require_lookup_key(session)


class TestFieldLimits:
    def test_for_kind(self):
        assert LIMITS.for_kind(FieldKind.CUSTOMER_NUMBER) == 20
        assert LIMITS.for_kind(FieldKind.INVOICE_NUMBER) == 15

    def test_rejects_non_positive(self):
        with pytest.raises(ValueError):
            FieldLimits(customer_max_length=0, invoice_max_length=15)
