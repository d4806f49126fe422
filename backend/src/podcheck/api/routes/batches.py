"""
Batch lifecycle endpoints.

Thin adapter between a capture host and the document validator: each
host event (batch open/close, document open, field captured, document
complete/reject) maps to one endpoint. A host drives each batch
sequentially; open batches live in an in-process registry.
"""

import logging
from uuid import uuid4

from fastapi import APIRouter, HTTPException, status

from podcheck.api.schemas import (
    BatchReportResponse,
    BatchResponse,
    CaptureFieldRequest,
    OutcomeResponse,
    RejectDocumentRequest,
    RunBatchRequest,
)
from podcheck.domain.errors import BatchStateError, FatalError
from podcheck.domain.models import FieldKind, Outcome
from podcheck.services.batch import DocumentInput, run_batch
from podcheck.services.validator import DocumentValidator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/batches", tags=["batches"])


# Open batches keyed by batch id
_batches: dict[str, DocumentValidator] = {}


def get_batch(batch_id: str) -> DocumentValidator:
    """Look up an open batch or fail with 404."""
    validator = _batches.get(batch_id)
    if validator is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Batch {batch_id} is not open",
        )
    return validator


def close_all_batches() -> None:
    """Release every open batch (application shutdown)."""
    while _batches:
        batch_id, validator = _batches.popitem()
        logger.info(f"Closing batch {batch_id} on shutdown")
        validator.on_batch_close()


def _respond(batch_id: str, validator: DocumentValidator, outcome: Outcome) -> OutcomeResponse:
    # A fatal outcome has already closed the batch
    if outcome.is_fatal:
        _batches.pop(batch_id, None)
        logger.error(f"Batch {batch_id} aborted: {outcome.message}")
    return OutcomeResponse.from_outcome(outcome, validator.state.value)


def _conflict(e: BatchStateError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post(
    "",
    response_model=BatchResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        503: {"description": "Backend database unavailable"},
    },
)
def open_batch() -> BatchResponse:
    """
    Open a batch and acquire its backend connection.
    
    The connection stays open until the batch is closed.
    """
    validator = DocumentValidator()
    try:
        validator.on_batch_open()
    except FatalError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.message,
        )
    
    batch_id = str(uuid4())
    _batches[batch_id] = validator
    logger.info(f"Batch {batch_id} opened")
    
    return BatchResponse(
        batch_id=batch_id,
        state=validator.state.value,
        environment=validator.settings.environment,
        lookup_table=validator.settings.lookup.qualified_name,
    )


@router.post(
    "/run",
    response_model=BatchReportResponse,
)
def run_documents(request: RunBatchRequest) -> BatchReportResponse:
    """
    Validate a whole batch of documents in one call.
    
    Each document reports its first failing check; a backend failure
    aborts the remaining documents.
    """
    documents = [
        DocumentInput(
            customer_number=doc.customer_number,
            invoice_number=doc.invoice_number,
            reference=doc.reference,
        )
        for doc in request.documents
    ]
    report = run_batch(documents)
    return BatchReportResponse.from_report(report)


@router.post(
    "/{batch_id}/documents",
    response_model=OutcomeResponse,
    responses={
        404: {"description": "Batch not open"},
        409: {"description": "Event not allowed in current state"},
    },
)
def open_document(batch_id: str) -> OutcomeResponse:
    """Start a new document; the validation session is reset."""
    validator = get_batch(batch_id)
    try:
        outcome = validator.on_document_open()
    except BatchStateError as e:
        raise _conflict(e)
    return _respond(batch_id, validator, outcome)


@router.post(
    "/{batch_id}/fields",
    response_model=OutcomeResponse,
    responses={
        404: {"description": "Batch not open"},
        409: {"description": "Event not allowed in current state"},
    },
)
def capture_field(batch_id: str, request: CaptureFieldRequest) -> OutcomeResponse:
    """
    Validate a captured index field.
    
    **Customer number:** length check.
    **Invoice number:** length check, then the customer/invoice pair
    must exist in the backend order table.
    """
    validator = get_batch(batch_id)
    try:
        outcome = validator.on_field_captured(FieldKind(request.field.value), request.value)
    except BatchStateError as e:
        raise _conflict(e)
    return _respond(batch_id, validator, outcome)


@router.post(
    "/{batch_id}/documents/complete",
    response_model=OutcomeResponse,
    responses={
        404: {"description": "Batch not open"},
        409: {"description": "Event not allowed in current state"},
    },
)
def complete_document(batch_id: str) -> OutcomeResponse:
    """Finish the current document."""
    validator = get_batch(batch_id)
    try:
        outcome = validator.on_document_complete()
    except BatchStateError as e:
        raise _conflict(e)
    return _respond(batch_id, validator, outcome)


@router.post(
    "/{batch_id}/documents/reject",
    response_model=OutcomeResponse,
    responses={
        404: {"description": "Batch not open"},
        409: {"description": "Event not allowed in current state"},
    },
)
def reject_document(batch_id: str, request: RejectDocumentRequest) -> OutcomeResponse:
    """Skip the current document."""
    validator = get_batch(batch_id)
    try:
        outcome = validator.on_document_reject(request.reason)
    except BatchStateError as e:
        raise _conflict(e)
    return _respond(batch_id, validator, outcome)


@router.delete(
    "/{batch_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        404: {"description": "Batch not open"},
    },
)
def close_batch(batch_id: str) -> None:
    """Close the batch and release its backend connection."""
    validator = _batches.pop(batch_id, None)
    if validator is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Batch {batch_id} is not open",
        )
    validator.on_batch_close()
    logger.info(f"Batch {batch_id} closed")
