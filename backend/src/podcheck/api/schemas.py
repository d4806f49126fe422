"""
Pydantic schemas for API request/response validation.

These schemas define the contract between the capture host adapter
and the validation service.
"""

from enum import Enum

from pydantic import BaseModel, Field

from podcheck.domain.models import Outcome
from podcheck.services.batch import BatchReport, DocumentReport


class FieldKindEnum(str, Enum):
    """Index fields accepted by the field capture endpoint."""
    CUSTOMER_NUMBER = "customer_number"
    INVOICE_NUMBER = "invoice_number"


class OutcomeEnum(str, Enum):
    """Outcome of a lifecycle callback."""
    OK = "ok"
    VALIDATION_FAILED = "validation_failed"
    REJECTED = "rejected"
    FATAL = "fatal"


# =============================================================================
# Request Schemas
# =============================================================================

class CaptureFieldRequest(BaseModel):
    """A captured index field value."""
    field: FieldKindEnum
    value: str = Field(
        ...,
        description="Value as keyed or recognized; whitespace is trimmed",
    )


class RejectDocumentRequest(BaseModel):
    """Request to skip the current document."""
    reason: str = ""


class DocumentInputRequest(BaseModel):
    """Index field values for one document of a batch run."""
    customer_number: str
    invoice_number: str
    reference: str | None = Field(
        default=None,
        description="Host-side document id, echoed in the report",
    )


class RunBatchRequest(BaseModel):
    """Documents to validate in one batch, in processing order."""
    documents: list[DocumentInputRequest]


# =============================================================================
# Response Schemas
# =============================================================================

class SessionResponse(BaseModel):
    """Customer/invoice key accumulated for the current document."""
    customer_number: str = ""
    invoice_number: str = ""
    verified: bool = False


class OutcomeResponse(BaseModel):
    """Result of a document or field callback."""
    outcome: OutcomeEnum
    message: str = ""
    value: str | None = None
    session: SessionResponse
    state: str
    
    @classmethod
    def from_outcome(cls, outcome: Outcome, state: str) -> "OutcomeResponse":
        return cls(
            outcome=OutcomeEnum(outcome.kind.value),
            message=outcome.message,
            value=outcome.value,
            session=SessionResponse(
                customer_number=outcome.session.customer_number,
                invoice_number=outcome.session.invoice_number,
                verified=outcome.session.verified,
            ),
            state=state,
        )


class BatchResponse(BaseModel):
    """An opened batch."""
    batch_id: str
    state: str
    environment: str
    lookup_table: str


class DocumentReportResponse(BaseModel):
    """Outcome of one document in a batch run."""
    index: int
    reference: str | None = None
    outcome: OutcomeEnum
    message: str = ""
    customer_number: str = ""
    invoice_number: str = ""
    
    @classmethod
    def from_report(cls, report: DocumentReport) -> "DocumentReportResponse":
        return cls(
            index=report.index,
            reference=report.reference,
            outcome=OutcomeEnum(report.outcome.kind.value),
            message=report.outcome.message,
            customer_number=report.outcome.session.customer_number,
            invoice_number=report.outcome.session.invoice_number,
        )


class BatchReportResponse(BaseModel):
    """Result of a batch run."""
    outcome: OutcomeEnum
    message: str = ""
    passed: int
    failed: int
    documents: list[DocumentReportResponse]
    
    @classmethod
    def from_report(cls, report: BatchReport) -> "BatchReportResponse":
        return cls(
            outcome=OutcomeEnum(report.outcome.value),
            message=report.message,
            passed=report.passed,
            failed=report.failed,
            documents=[DocumentReportResponse.from_report(d) for d in report.documents],
        )


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str
    environment: str
    lookup_table: str


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: str | None = None
    code: str | None = None
