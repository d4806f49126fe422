"""Tests for the batch lifecycle HTTP endpoints."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from podcheck.config import get_settings
from podcheck.infrastructure.database import dispose_engine


@pytest.fixture
def client(monkeypatch, backend_url):
    monkeypatch.setenv("PODCHECK_BACKEND_URL", backend_url)
    monkeypatch.setenv("PODCHECK_LOOKUP_SCHEMA", "")
    monkeypatch.setenv("PODCHECK_CUSTOMER_MAX_LENGTH", "20")
    monkeypatch.setenv("PODCHECK_INVOICE_MAX_LENGTH", "15")
    get_settings.cache_clear()
    dispose_engine()

    from podcheck.main import app

    with TestClient(app) as client:
        yield client

    get_settings.cache_clear()


@pytest.fixture
def batch_id(client) -> str:
    response = client.post("/api/v1/batches")
    assert response.status_code == 201
    return response.json()["batch_id"]


def capture(client, batch_id, field, value):
    return client.post(
        f"/api/v1/batches/{batch_id}/fields",
        json={"field": field, "value": value},
    )


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["lookup_table"] == "hhhordhp"


def test_open_batch(client):
    response = client.post("/api/v1/batches")
    assert response.status_code == 201
    body = response.json()
    assert body["state"] == "batch_open"
    assert body["environment"] == "test"


def test_document_flow(client, batch_id):
    assert client.post(f"/api/v1/batches/{batch_id}/documents").json()["outcome"] == "ok"

    customer = capture(client, batch_id, "customer_number", " 12345 ").json()
    assert customer["outcome"] == "ok"
    assert customer["value"] == "12345"

    invoice = capture(client, batch_id, "invoice_number", "INV-01").json()
    assert invoice["outcome"] == "ok"
    assert invoice["session"] == {
        "customer_number": "12345",
        "invoice_number": "INV-01",
        "verified": True,
    }

    complete = client.post(f"/api/v1/batches/{batch_id}/documents/complete").json()
    assert complete["outcome"] == "ok"
    assert complete["state"] == "document_complete"

    assert client.delete(f"/api/v1/batches/{batch_id}").status_code == 204
    assert client.post(f"/api/v1/batches/{batch_id}/documents").status_code == 404


def test_validation_failures_are_outcomes(client, batch_id):
    client.post(f"/api/v1/batches/{batch_id}/documents")

    too_long = capture(client, batch_id, "customer_number", "1" * 25)
    assert too_long.status_code == 200
    assert too_long.json()["outcome"] == "validation_failed"
    assert too_long.json()["message"] == "Character length exceeds maximum of 20."

    capture(client, batch_id, "customer_number", "67890")
    missing = capture(client, batch_id, "invoice_number", "INV-01").json()
    assert missing["outcome"] == "validation_failed"
    assert missing["message"] == "Customer 67890 / Invoice INV-01 not found in HHHORDHP table."

    # Batch stays usable
    assert capture(client, batch_id, "invoice_number", "INV-03").json()["outcome"] == "ok"


def test_reject_document(client, batch_id):
    client.post(f"/api/v1/batches/{batch_id}/documents")
    response = client.post(
        f"/api/v1/batches/{batch_id}/documents/reject",
        json={"reason": "duplicate scan"},
    )
    assert response.json()["outcome"] == "rejected"
    assert response.json()["state"] == "document_idle"


def test_illegal_transition_conflict(client, batch_id):
    response = capture(client, batch_id, "customer_number", "12345")
    assert response.status_code == 409


def test_unknown_batch(client):
    assert client.delete("/api/v1/batches/nope").status_code == 404


def test_unknown_field_rejected(client, batch_id):
    client.post(f"/api/v1/batches/{batch_id}/documents")
    assert capture(client, batch_id, "invoice_date", "2024-02-15").status_code == 422


def test_backend_unavailable(client, monkeypatch, tmp_path):
    monkeypatch.setenv("PODCHECK_BACKEND_URL", f"sqlite:///{tmp_path / 'missing' / 'x.db'}")
    get_settings.cache_clear()
    dispose_engine()

    response = client.post("/api/v1/batches")
    assert response.status_code == 503
    assert "Unable to connect" in response.json()["detail"]


def test_missing_driver_unavailable(client):
    missing = ModuleNotFoundError("No module named 'pyodbc'")
    with patch("podcheck.services.validator.get_engine", side_effect=missing):
        response = client.post("/api/v1/batches")

    assert response.status_code == 503
    assert "No module named 'pyodbc'" in response.json()["detail"]


def test_close_batch_twice(client, batch_id):
    assert client.delete(f"/api/v1/batches/{batch_id}").status_code == 204
    second = client.delete(f"/api/v1/batches/{batch_id}")
    assert second.status_code == 404
    assert second.json()["detail"] == f"Batch {batch_id} is not open"


def test_run_batch(client):
    response = client.post(
        "/api/v1/batches/run",
        json={
            "documents": [
                {"customer_number": "12345", "invoice_number": "INV-01", "reference": "a"},
                {"customer_number": "12345", "invoice_number": "INV-03", "reference": "b"},
                {"customer_number": "O'BRIEN", "invoice_number": "INV-07", "reference": "c"},
            ]
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert body["outcome"] == "ok"
    assert (body["passed"], body["failed"]) == (2, 1)
    assert [d["outcome"] for d in body["documents"]] == ["ok", "validation_failed", "ok"]
    assert body["documents"][1]["reference"] == "b"
