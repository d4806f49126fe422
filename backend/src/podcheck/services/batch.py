"""
Batch runner - drives the lifecycle callbacks over a list of documents.

Used for unattended validation (no operator to correct fields): each
document's first failing outcome is recorded and the runner moves on to
the next document. A fatal outcome ends the batch.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable

from podcheck.domain.errors import FatalError
from podcheck.domain.models import FieldKind, Outcome, OutcomeKind

from .events import IndexingEvents
from .validator import DocumentValidator

logger = logging.getLogger(__name__)


@dataclass
class DocumentInput:
    """Index field values captured for one document."""
    customer_number: str
    invoice_number: str
    reference: str | None = None  # Host-side document id, echoed in reports


@dataclass
class DocumentReport:
    """Final outcome of one document in a batch run."""
    index: int
    outcome: Outcome
    reference: str | None = None
    
    @property
    def passed(self) -> bool:
        return self.outcome.ok


@dataclass
class BatchReport:
    """
    Result of a batch run.
    
    `outcome` is FATAL when the batch could not be opened or was aborted;
    documents processed before an abort are still reported.
    """
    outcome: OutcomeKind
    documents: list[DocumentReport] = field(default_factory=list)
    message: str = ""
    
    @property
    def passed(self) -> int:
        return sum(1 for report in self.documents if report.passed)
    
    @property
    def failed(self) -> int:
        return len(self.documents) - self.passed


def process_document(events: IndexingEvents, document: DocumentInput) -> Outcome:
    """
    Run one document through the lifecycle callbacks.
    
    Returns the first non-OK outcome, or the document-complete outcome.
    """
    events.on_document_open()
    
    fields = (
        (FieldKind.CUSTOMER_NUMBER, document.customer_number),
        (FieldKind.INVOICE_NUMBER, document.invoice_number),
    )
    for kind, raw_value in fields:
        outcome = events.on_field_captured(kind, raw_value)
        if not outcome.ok:
            return outcome
    
    return events.on_document_complete()


def run_batch(
    documents: Iterable[DocumentInput],
    events: IndexingEvents | None = None,
) -> BatchReport:
    """
    Validate a batch of documents sequentially.
    
    Args:
        documents: Documents in processing order
        events: Lifecycle implementation (DocumentValidator if None)
        
    Returns:
        BatchReport with one DocumentReport per processed document
    """
    events = events or DocumentValidator()
    reports: list[DocumentReport] = []
    
    try:
        with events:
            for index, document in enumerate(documents):
                outcome = process_document(events, document)
                reports.append(
                    DocumentReport(index=index, outcome=outcome, reference=document.reference)
                )
                if outcome.is_fatal:
                    logger.error(f"Batch aborted at document {index}: {outcome.message}")
                    return BatchReport(
                        outcome=OutcomeKind.FATAL,
                        documents=reports,
                        message=outcome.message,
                    )
    except FatalError as e:
        logger.error(f"Batch not started: {e.message}")
        return BatchReport(outcome=OutcomeKind.FATAL, documents=reports, message=e.message)
    
    report = BatchReport(outcome=OutcomeKind.OK, documents=reports)
    logger.info(f"Batch finished: {report.passed} passed, {report.failed} failed")
    return report
