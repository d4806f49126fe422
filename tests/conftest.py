"""Shared test fixtures for podcheck tests."""

import pytest
from sqlalchemy import create_engine, event, text

from podcheck.config import Settings
from podcheck.infrastructure.database import create_backend_engine


# (customer number, invoice number) rows in the order table
ORDERS = [
    ("12345", "INV-01"),
    ("12345", "INV-02"),
    ("67890", "INV-03"),
    ("O'BRIEN", "INV-07"),
]


@pytest.fixture
def backend_url(tmp_path) -> str:
    """File-backed SQLite order table shaped like hhhordhp."""
    url = f"sqlite:///{tmp_path / 'orders.db'}"
    engine = create_engine(url)
    with engine.begin() as conn:
        conn.execute(text(
            "CREATE TABLE hhhordhp ("
            " hhhinvn VARCHAR(15) NOT NULL,"
            " hhhcusn VARCHAR(20) NOT NULL,"
            " hhhordn INTEGER)"
        ))
        conn.execute(
            text("INSERT INTO hhhordhp (hhhinvn, hhhcusn) VALUES (:invoice, :customer)"),
            [{"invoice": invoice, "customer": customer} for customer, invoice in ORDERS],
        )
    engine.dispose()
    return url


@pytest.fixture
def settings(backend_url) -> Settings:
    return Settings(
        _env_file=None,
        backend_url=backend_url,
        lookup_schema=None,
        customer_max_length=20,
        invoice_max_length=15,
    )


@pytest.fixture
def unreachable_settings(tmp_path) -> Settings:
    """Settings pointing at a database that cannot be opened."""
    return Settings(
        _env_file=None,
        backend_url=f"sqlite:///{tmp_path / 'missing' / 'orders.db'}",
        lookup_schema=None,
    )


@pytest.fixture
def engine(settings):
    engine = create_backend_engine(settings)
    yield engine
    engine.dispose()


@pytest.fixture
def pool_counts(engine) -> dict[str, int]:
    """Count connection checkouts/checkins on the backend pool."""
    counts = {"checkout": 0, "checkin": 0}

    @event.listens_for(engine, "checkout")
    def on_checkout(*args):
        counts["checkout"] += 1

    @event.listens_for(engine, "checkin")
    def on_checkin(*args):
        counts["checkin"] += 1

    return counts


@pytest.fixture
def executed(engine) -> list[str]:
    """Statements sent to the backend, in order."""
    statements: list[str] = []

    @event.listens_for(engine, "before_cursor_execute")
    def on_execute(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    return statements
