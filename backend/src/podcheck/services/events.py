"""
Lifecycle callbacks driven by a capture host or batch runner.

A batch is opened, each document is opened and its index fields are
captured in order (customer number, then invoice number), the document
is completed or rejected, and finally the batch is closed.
"""

from abc import ABC, abstractmethod

from podcheck.domain.models import FieldKind, Outcome


class IndexingEvents(ABC):
    """
    Abstract interface for batch/document/field lifecycle callbacks.
    
    Field and document callbacks return an explicit Outcome. Opening a
    batch raises FatalError when the backend cannot be reached, since
    no batch exists to report the outcome against.
    
    Implementations are context managers: the batch is closed on every
    exit path, including errors.
    """
    
    @abstractmethod
    def on_batch_open(self) -> None:
        """Acquire batch resources."""
        pass
    
    @abstractmethod
    def on_batch_close(self) -> None:
        """Release batch resources unconditionally."""
        pass
    
    @abstractmethod
    def on_document_open(self) -> Outcome:
        """Start a new document with a blank validation session."""
        pass
    
    @abstractmethod
    def on_field_captured(self, kind: FieldKind, raw_value: str) -> Outcome:
        """Validate a captured index field."""
        pass
    
    @abstractmethod
    def on_document_complete(self) -> Outcome:
        """Finish the current document."""
        pass
    
    @abstractmethod
    def on_document_reject(self, reason: str = "") -> Outcome:
        """Skip the current document."""
        pass
    
    def __enter__(self) -> "IndexingEvents":
        self.on_batch_open()
        return self
    
    def __exit__(self, *exc_info: object) -> None:
        self.on_batch_close()
