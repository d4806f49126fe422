"""
Backend database engine and batch-scoped connection management.

Uses synchronous SQLAlchemy: documents are processed strictly one after
another and every lookup is a blocking call bounded by the driver timeout.

Design Decisions:
- One engine per process, created lazily from settings
- One connection per batch, opened on batch open and released on batch close
- Each lookup runs in its own short read-only transaction
- Credentials never appear in logs (URL rendered with hidden password)
"""

import logging
import math
import time
from typing import Any

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import Connection
from sqlalchemy.sql.base import Executable

from podcheck.config import Settings, get_settings

logger = logging.getLogger(__name__)


# Engine (initialized lazily)
_engine: Engine | None = None

# SQLite instructions between deadline checks
_SQLITE_PROGRESS_STEPS = 1000


def _bound_odbc_statements(engine: Engine, timeout: float) -> None:
    """
    Set the per-statement timeout on every ODBC connection.

    pyodbc's connect(timeout=...) is the login timeout; statements are
    bounded by the Connection.timeout attribute, in whole seconds.
    """
    seconds = max(1, math.ceil(timeout))

    def set_statement_timeout(dbapi_connection, connection_record):
        dbapi_connection.timeout = seconds

    event.listen(engine, "connect", set_statement_timeout)


def _bound_sqlite_statements(engine: Engine, timeout: float) -> None:
    """Interrupt SQLite statements that run past their deadline."""
    
    @event.listens_for(engine, "connect")
    def install_deadline(dbapi_connection, connection_record):
        deadline: list[float | None] = [None]
        connection_record.info["query_deadline"] = deadline
        
        def check_deadline() -> int:
            expires = deadline[0]
            return 1 if expires is not None and time.monotonic() > expires else 0
        
        dbapi_connection.set_progress_handler(check_deadline, _SQLITE_PROGRESS_STEPS)
    
    @event.listens_for(engine, "before_cursor_execute")
    def start_deadline(conn, cursor, statement, parameters, context, executemany):
        deadline = conn.info.get("query_deadline")
        if deadline is not None:
            deadline[0] = time.monotonic() + timeout
    
    @event.listens_for(engine, "after_cursor_execute")
    def clear_deadline(conn, cursor, statement, parameters, context, executemany):
        deadline = conn.info.get("query_deadline")
        if deadline is not None:
            deadline[0] = None

    # An interrupted statement never reaches after_cursor_execute
    @event.listens_for(engine, "checkin")
    def reset_deadline(dbapi_connection, connection_record):
        deadline = connection_record.info.get("query_deadline")
        if deadline is not None:
            deadline[0] = None


def create_backend_engine(settings: Settings) -> Engine:
    """
    Create an engine for the configured backend database.
    
    `query_timeout` bounds each statement: pyodbc through its
    Connection.timeout attribute, pysqlite through a progress handler.
    A statement that runs past it fails with a driver OperationalError.
    """
    engine = create_engine(
        settings.backend_url,
        echo=settings.debug,
        pool_pre_ping=True,
    )
    
    if settings.query_timeout is not None:
        driver = engine.dialect.driver
        if driver == "pyodbc":
            _bound_odbc_statements(engine, settings.query_timeout)
        elif driver == "pysqlite":
            _bound_sqlite_statements(engine, settings.query_timeout)
        else:
            logger.warning(f"query_timeout is not supported for driver {driver}; ignored")
    
    logger.info(
        f"Backend engine created for {engine.url.render_as_string(hide_password=True)} "
        f"({settings.environment})"
    )
    return engine


def get_engine() -> Engine:
    """Get or create the backend engine from application settings."""
    global _engine
    if _engine is None:
        _engine = create_backend_engine(get_settings())
    return _engine


def dispose_engine() -> None:
    """Close pooled backend connections on shutdown."""
    global _engine
    if _engine is not None:
        _engine.dispose()
        _engine = None
    logger.info("Backend connections closed")


class BackendConnection:
    """
    A single backend connection shared by all documents of a batch.
    
    Only read-only queries are issued. The connection is owned by one
    batch and never used from more than one thread.
    
    Usage:
        with BackendConnection(engine) as backend:
            count = backend.scalar(statement, {"invoice_number": "INV-01"})
    """
    
    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._connection: Connection | None = None
    
    @property
    def is_open(self) -> bool:
        return self._connection is not None
    
    def open(self) -> None:
        """Acquire the connection. Driver errors propagate to the caller."""
        if self._connection is None:
            self._connection = self._engine.connect()
            logger.debug("Backend connection opened")
    
    def close(self) -> None:
        """Release the connection. Safe to call when already closed."""
        connection, self._connection = self._connection, None
        if connection is not None:
            connection.close()
            logger.debug("Backend connection closed")
    
    def scalar(self, statement: Executable, parameters: dict[str, Any]) -> Any:
        """Execute a read-only statement and return the first column of the first row."""
        if self._connection is None:
            raise RuntimeError("Backend connection is not open")
        with self._connection.begin():
            return self._connection.execute(statement, parameters).scalar()
    
    def __enter__(self) -> "BackendConnection":
        self.open()
        return self
    
    def __exit__(self, *exc_info: object) -> None:
        self.close()
