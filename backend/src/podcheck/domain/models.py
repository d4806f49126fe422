"""
Domain models for proof-of-delivery index validation.

These models represent the state carried through a capture batch:
the per-document validation session, the captured index fields and
the result of each lifecycle callback.

Design Decisions:
- ValidationSession is immutable; every update returns a new session
- Outcome makes the result of a callback explicit instead of relying
  on exceptions reaching the caller
- Backend identifiers are data (LookupTable), never SQL literals
"""

from dataclasses import dataclass, replace
from enum import Enum


class FieldKind(Enum):
    """Index fields validated on a proof-of-delivery document."""
    CUSTOMER_NUMBER = "customer_number"
    INVOICE_NUMBER = "invoice_number"


class OutcomeKind(Enum):
    """Result of a lifecycle callback."""
    OK = "ok"
    VALIDATION_FAILED = "validation_failed"
    REJECTED = "rejected"
    FATAL = "fatal"


class BatchState(Enum):
    """Lifecycle states of a capture batch."""
    BATCH_CLOSED = "batch_closed"
    BATCH_OPEN = "batch_open"
    DOCUMENT_IDLE = "document_idle"
    DOCUMENT_CAPTURING = "document_capturing"
    DOCUMENT_COMPLETE = "document_complete"


@dataclass(frozen=True)
class FieldLimits:
    """
    Maximum lengths per field type.
    
    Mirrors the host's field-type catalog: J_ACCT# for customer
    numbers and J_INV# for invoice numbers.
    """
    customer_max_length: int
    invoice_max_length: int
    
    def __post_init__(self) -> None:
        """Validate limits are positive."""
        if self.customer_max_length < 1 or self.invoice_max_length < 1:
            raise ValueError(
                f"Field limits must be positive, got "
                f"{self.customer_max_length}/{self.invoice_max_length}"
            )
    
    def for_kind(self, kind: FieldKind) -> int:
        """Return the maximum length for a field kind."""
        if kind is FieldKind.CUSTOMER_NUMBER:
            return self.customer_max_length
        return self.invoice_max_length


@dataclass(frozen=True)
class LookupTable:
    """Identifiers of the backend table holding customer/invoice pairs."""
    name: str
    invoice_column: str
    customer_column: str
    schema: str | None = None
    
    @property
    def qualified_name(self) -> str:
        """Schema-qualified table name, for messages and logs."""
        if self.schema:
            return f"{self.schema}.{self.name}"
        return self.name


@dataclass
class IndexField:
    """
    A captured index field.
    
    The value is replaced by its trimmed form once validated,
    so the field always holds its canonical value afterwards.
    """
    kind: FieldKind
    value: str
    max_length: int


@dataclass(frozen=True)
class ValidationSession:
    """
    Per-document key accumulated from the validated index fields.
    
    A blank session is created when a document opens. The customer
    number is always validated before the invoice number; `verified`
    becomes True only once the pair has been found in the backend.
    """
    customer_number: str = ""
    invoice_number: str = ""
    verified: bool = False
    
    @classmethod
    def blank(cls) -> "ValidationSession":
        return cls()
    
    def with_value(self, kind: FieldKind, value: str) -> "ValidationSession":
        """Return a new session holding `value` under the key for `kind`."""
        if kind is FieldKind.CUSTOMER_NUMBER:
            return replace(self, customer_number=value, verified=False)
        return replace(self, invoice_number=value, verified=False)
    
    def mark_verified(self) -> "ValidationSession":
        return replace(self, verified=True)
    
    @property
    def has_customer(self) -> bool:
        return bool(self.customer_number)
    
    @property
    def has_invoice(self) -> bool:
        return bool(self.invoice_number)


@dataclass(frozen=True)
class Outcome:
    """
    Result of a lifecycle callback.
    
    `value` holds the canonical (trimmed) field value for field
    callbacks; `session` is the session after the callback ran.
    """
    kind: OutcomeKind
    session: ValidationSession
    message: str = ""
    value: str | None = None
    
    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.OK
    
    @property
    def is_fatal(self) -> bool:
        return self.kind is OutcomeKind.FATAL
