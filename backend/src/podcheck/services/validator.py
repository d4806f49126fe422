"""
Document validator - the lifecycle state machine for one capture batch.

States:
    BATCH_CLOSED -> BATCH_OPEN -> (DOCUMENT_CAPTURING -> DOCUMENT_COMPLETE)* -> BATCH_CLOSED

Per document:
1. Document open resets the validation session
2. Customer number: length check, stored in the session
3. Invoice number: length check, stored in the session, then the
   customer/invoice pair must exist in the backend order table
4. Document complete requires a verified customer/invoice pair

Validation failures leave the backend connection untouched; only a
backend failure closes it and ends the batch.
"""

import logging

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

from podcheck.config import Settings, get_settings
from podcheck.domain.errors import BatchStateError, FatalError, IndexingError
from podcheck.domain.models import (
    BatchState,
    FieldKind,
    Outcome,
    OutcomeKind,
    ValidationSession,
)
from podcheck.domain.validation import apply_field, require_lookup_key
from podcheck.infrastructure.database import (
    BackendConnection,
    create_backend_engine,
    get_engine,
)

from .events import IndexingEvents
from .existence import ExistenceChecker

logger = logging.getLogger(__name__)


_DOCUMENT_STATES = frozenset({
    BatchState.BATCH_OPEN,
    BatchState.DOCUMENT_IDLE,
    BatchState.DOCUMENT_CAPTURING,
    BatchState.DOCUMENT_COMPLETE,
})


class DocumentValidator(IndexingEvents):
    """
    Validates the index fields of the documents in one batch.
    
    Example:
        with DocumentValidator() as validator:
            validator.on_document_open()
            validator.on_field_captured(FieldKind.CUSTOMER_NUMBER, " 12345 ")
            outcome = validator.on_field_captured(FieldKind.INVOICE_NUMBER, "INV-01")
            if outcome.ok:
                validator.on_document_complete()
    """
    
    def __init__(
        self,
        settings: Settings | None = None,
        engine: Engine | None = None,
    ) -> None:
        """
        Initialize the validator.
        
        Args:
            settings: Application settings (cached settings if None)
            engine: Backend engine; when None the shared engine is used, or
                a private one is created for explicitly passed settings
        """
        self.settings = settings or get_settings()
        self.limits = self.settings.field_limits
        self._engine = engine
        self._owns_engine = False
        self._use_shared_engine = engine is None and settings is None
        self._backend: BackendConnection | None = None
        self._checker: ExistenceChecker | None = None
        self._state = BatchState.BATCH_CLOSED
        self._session = ValidationSession.blank()
    
    @property
    def state(self) -> BatchState:
        return self._state
    
    @property
    def session(self) -> ValidationSession:
        return self._session
    
    @property
    def is_open(self) -> bool:
        return self._state is not BatchState.BATCH_CLOSED
    
    # =========================================================================
    # Batch lifecycle
    # =========================================================================
    
    def on_batch_open(self) -> None:
        """
        Open the batch and acquire the backend connection.
        
        Raises:
            FatalError: If the backend cannot be reached.
            BatchStateError: If the batch is already open.
        """
        self._require_state({BatchState.BATCH_CLOSED}, "on_batch_open")
        
        try:
            backend = BackendConnection(self._resolve_engine())
            backend.open()
        except (SQLAlchemyError, ImportError) as e:
            # ImportError: DBAPI module for the configured URL is not installed
            logger.exception(f"Backend connection failed ({self.settings.environment})")
            self._dispose_owned_engine()
            raise FatalError(f"Unable to connect to backend database: {e}") from e
        
        self._backend = backend
        self._checker = ExistenceChecker(backend, self.settings.lookup)
        self._session = ValidationSession.blank()
        self._state = BatchState.BATCH_OPEN
        logger.info(f"Batch opened against {self.settings.lookup.qualified_name}")
    
    def on_batch_close(self) -> None:
        """Close the batch and release the backend connection."""
        if self._backend is not None:
            try:
                self._backend.close()
            except SQLAlchemyError as e:
                logger.warning(f"Error while closing backend connection: {e}")
            finally:
                self._backend = None
                self._checker = None
            logger.info("Batch closed")
        self._dispose_owned_engine()
        self._session = ValidationSession.blank()
        self._state = BatchState.BATCH_CLOSED
    
    # =========================================================================
    # Document lifecycle
    # =========================================================================
    
    def on_document_open(self) -> Outcome:
        """Start a new document with a blank validation session."""
        self._require_state(_DOCUMENT_STATES, "on_document_open")
        self._session = ValidationSession.blank()
        self._state = BatchState.DOCUMENT_CAPTURING
        return Outcome(kind=OutcomeKind.OK, session=self._session)
    
    def on_field_captured(self, kind: FieldKind, raw_value: str) -> Outcome:
        """
        Validate a captured index field.
        
        The customer number is length-checked and recorded. The invoice
        number is length-checked, recorded, and the customer/invoice pair
        is then looked up in the backend.
        
        Returns:
            Outcome with the canonical (trimmed) value on success. On
            failure the session is left as it was before the call.
        """
        self._require_state({BatchState.DOCUMENT_CAPTURING}, "on_field_captured")
        
        try:
            value, session = apply_field(self._session, kind, raw_value, self.limits)
            if kind is FieldKind.INVOICE_NUMBER:
                customer_number, invoice_number = require_lookup_key(session)
                self._checker.exists(customer_number, invoice_number)
                session = session.mark_verified()
        except IndexingError as e:
            return self._failure(kind, e)
        except SQLAlchemyError as e:
            logger.exception(
                f"Backend lookup failed | customer: {self._session.customer_number} "
                f"| invoice: {raw_value.strip()}"
            )
            return self._abort(f"Backend lookup failed: {e}")
        
        self._session = session
        logger.debug(f"{kind.value} accepted: {value!r}")
        return Outcome(kind=OutcomeKind.OK, session=session, value=value)
    
    def on_document_complete(self) -> Outcome:
        """Finish the document once its customer/invoice pair is verified."""
        self._require_state({BatchState.DOCUMENT_CAPTURING}, "on_document_complete")
        
        if not self._session.verified:
            return Outcome(
                kind=OutcomeKind.VALIDATION_FAILED,
                session=self._session,
                message="Customer/invoice combination has not been verified.",
            )
        
        self._state = BatchState.DOCUMENT_COMPLETE
        logger.info(
            f"Document complete | customer: {self._session.customer_number} "
            f"| invoice: {self._session.invoice_number}"
        )
        return Outcome(kind=OutcomeKind.OK, session=self._session)
    
    def on_document_reject(self, reason: str = "") -> Outcome:
        """Skip the current document without completing it."""
        self._require_state({BatchState.DOCUMENT_CAPTURING}, "on_document_reject")
        
        session = self._session
        self._session = ValidationSession.blank()
        self._state = BatchState.DOCUMENT_IDLE
        logger.info(f"Document rejected: {reason or 'no reason given'}")
        return Outcome(
            kind=OutcomeKind.REJECTED,
            session=session,
            message=reason or "Document rejected.",
        )
    
    # =========================================================================
    # Helpers
    # =========================================================================
    
    def _require_state(self, allowed: set[BatchState] | frozenset[BatchState], event: str) -> None:
        if self._state not in allowed:
            raise BatchStateError(f"{event} is not allowed in state {self._state.value}")
    
    def _failure(self, kind: FieldKind, error: IndexingError) -> Outcome:
        if error.kind is OutcomeKind.FATAL:
            return self._abort(error.message)
        logger.info(
            f"{kind.value} rejected: {error.message} "
            f"| customer: {self._session.customer_number} "
            f"| invoice: {self._session.invoice_number}"
        )
        return Outcome(kind=error.kind, session=self._session, message=error.message)
    
    def _abort(self, message: str) -> Outcome:
        session = self._session
        self.on_batch_close()
        return Outcome(kind=OutcomeKind.FATAL, session=session, message=message)
    
    def _resolve_engine(self) -> Engine:
        if self._engine is None:
            if self._use_shared_engine:
                self._engine = get_engine()
            else:
                self._engine = create_backend_engine(self.settings)
                self._owns_engine = True
        return self._engine
    
    def _dispose_owned_engine(self) -> None:
        if self._owns_engine and self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._owns_engine = False
