"""
Index field validation rules for proof-of-delivery documents.

This module contains pure functions that implement the field checks.
No I/O - the backend existence check lives in services.existence.

Rules:
1. Customer number must not exceed the J_ACCT# field length
2. Invoice number must not exceed the J_INV# field length
3. The customer number is always validated before the invoice number,
   and both must be present before the backend lookup runs
"""

from .errors import ValidationError
from .models import FieldKind, FieldLimits, IndexField, ValidationSession


def validate_length(value: str, max_length: int) -> str:
    """
    Trim a captured value and enforce its maximum length.
    
    Rule: len(value.strip()) <= max_length
    
    Over-long values are reported, never truncated, so the operator
    can correct the field.
    
    Returns:
        The trimmed value.
        
    Raises:
        ValidationError: If the trimmed value is longer than max_length.
    """
    trimmed = value.strip()
    if len(trimmed) > max_length:
        raise ValidationError(f"Character length exceeds maximum of {max_length}.")
    return trimmed


def validate_field(field: IndexField) -> str:
    """
    Validate an index field and normalize it to its trimmed value.
    
    The field is left untouched when validation fails.
    """
    trimmed = validate_length(field.value, field.max_length)
    field.value = trimmed
    return trimmed


def apply_field(
    session: ValidationSession,
    kind: FieldKind,
    raw_value: str,
    limits: FieldLimits,
) -> tuple[str, ValidationSession]:
    """
    Validate a captured value and record it in the document session.
    
    Args:
        session: Current document session (not modified)
        kind: Which index field was captured
        raw_value: Value as keyed or recognized by the host
        limits: Per-field-type maximum lengths
        
    Returns:
        Tuple of (canonical value, updated session)
    """
    field = IndexField(kind=kind, value=raw_value, max_length=limits.for_kind(kind))
    value = validate_field(field)
    return value, session.with_value(kind, value)


def require_lookup_key(session: ValidationSession) -> tuple[str, str]:
    """
    Return the (customer, invoice) key, enforcing field order.
    
    The backend lookup must never run with a blank key: the customer
    number has to be validated before the invoice number.
    
    Raises:
        ValidationError: If either part of the key is blank.
    """
    if not session.has_customer:
        raise ValidationError(
            "Customer number must be entered before the invoice number."
        )
    if not session.has_invoice:
        raise ValidationError("Invoice number is required.")
    return session.customer_number, session.invoice_number
