"""Tests for the HTTP API – uses an in-memory SQLite database."""

import json

import pytest
from fastapi.testclient import TestClient

from tmk_validator.api.routes import get_registry
from tmk_validator.config import PACKAGE_SCHEMA_DIR
from tmk_validator.main import app
from tmk_validator.services.registry import SchemaRegistry


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _validate(client, document, **options):
    text = document if isinstance(document, str) else json.dumps(document)
    return client.post("/api/v1/validate", json={"json_text": text, **options})


def test_health(client):
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json()["registry"] == "ready"
    assert response.json()["status"] == "healthy"


def test_list_and_fetch_schemas(client):
    assert client.get("/api/v1/schemas").json() == ["Task", "Method", "Knowledge"]
    schema = client.get("/api/v1/schemas/Method").json()
    assert schema["title"] == "TMK Method"
    assert client.get("/api/v1/schemas/Widget").status_code == 404


def test_validate_valid_document(client, make_task):
    response = _validate(client, make_task())
    assert response.status_code == 200
    assert response.json() == {"schema_name": "Task", "valid": True, "score": 16, "max": 16}


def test_validate_invalid_document_detailed(client):
    response = _validate(
        client,
        {"model": "Method", "name": "Brew", "task": 7},
        detailed=True,
        show_raw_errors=True,
    )
    body = response.json()
    assert response.status_code == 200
    assert body["valid"] is False
    assert body["fields"]["task"] == {"score": 1, "max": 2, "reason": "type: 7 is not of type 'string'"}
    assert body["fields"]["states"]["reason"] == "missing required field"
    assert {e["instance_path"] for e in body["errors"]} == {"", "/task"}


def test_validate_auto_fix(client):
    response = _validate(client, {"Model": "knowledge", "NAME": "Kitchen", "Concepts": []}, auto_fix=True)
    body = response.json()
    assert body["valid"] is True
    assert body["normalized"] == {"model": "Knowledge", "name": "Kitchen", "concepts": []}


def test_malformed_json_is_422(client):
    response = _validate(client, "{not json")
    assert response.status_code == 422
    assert response.json()["detail"].startswith("Invalid JSON")


def test_unknown_model_is_422(client):
    response = _validate(client, {"model": "Widget"}, auto_fix=True)
    assert response.status_code == 422
    assert "Must be one of" in response.json()["detail"]


def test_runs_are_recorded(client, make_task):
    _validate(client, make_task(name="Recorded Run"))
    _validate(client, {"model": "Gadget"})

    runs = client.get("/api/v1/runs", params={"limit": 500}).json()
    assert any(r["schema_name"] == "Task" and r["valid"] and r["score"] == 16 for r in runs)
    assert any(r["schema_name"] is None and "model" in r["failure"] for r in runs)


def test_unloaded_registry_is_503(client):
    app.dependency_overrides[get_registry] = lambda: SchemaRegistry(PACKAGE_SCHEMA_DIR, ["Task"])

    assert client.get("/api/v1/health").json()["registry"] == "uninitialized"
    assert client.get("/api/v1/schemas").status_code == 503
    assert _validate(client, {"model": "Task"}).status_code == 503
