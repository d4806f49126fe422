"""
Error kinds signalled by index validation.

The capture workflow distinguishes three outcomes of a failed check:
- ValidationError: recoverable, the operator corrects the field/document
- RejectDocument: recoverable, the document is skipped outright
- FatalError: unrecoverable, the whole batch is aborted
"""

from .models import OutcomeKind


class IndexingError(Exception):
    """Base class for errors raised while validating index fields."""
    
    kind: OutcomeKind = OutcomeKind.FATAL
    
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(IndexingError):
    """Field or document failed validation; batch processing continues."""
    
    kind = OutcomeKind.VALIDATION_FAILED


class RejectDocument(IndexingError):
    """Current document should be skipped; batch processing continues."""
    
    kind = OutcomeKind.REJECTED


class FatalError(IndexingError):
    """Unrecoverable condition (e.g. lost backend connection); aborts the batch."""
    
    kind = OutcomeKind.FATAL


class BatchStateError(RuntimeError):
    """A lifecycle callback was invoked in a state that does not allow it."""
