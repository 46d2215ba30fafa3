"""Tests for the table definitions API.

Uses FastAPI TestClient against a file-backed gateway in a temp directory.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from gridweaver.api.main import app
from gridweaver.api.routes.definitions import router
from gridweaver.gateway import DEFAULT_SECRET_HEADER, DefinitionGateway, configure_definition_gateway
from gridweaver.gateway.gateway import get_definition_gateway


@pytest.fixture(autouse=True)
def default_secret_header(monkeypatch):
    monkeypatch.delenv("GRIDWEAVER_SECRET_HEADER", raising=False)


@pytest.fixture
def client(gateway):
    configure_definition_gateway(gateway)
    with TestClient(app) as test_client:
        yield test_client
    configure_definition_gateway(None)


@pytest.fixture
def auth(secret):
    return {DEFAULT_SECRET_HEADER: secret}


def _router_client(gateway: DefinitionGateway) -> TestClient:
    router_app = FastAPI()
    router_app.include_router(router, prefix="/v1")
    router_app.dependency_overrides[get_definition_gateway] = lambda: gateway
    return TestClient(router_app)


# ── Service info ─────────────────────────────────────────────────


class TestServiceInfo:
    def test_root(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json()["endpoints"]["table_definitions"] == "/v1/table-definitions"

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {
            "status": "healthy",
            "definitions_loaded": 0,
            "mutations_enabled": True,
        }


# ── CRUD ─────────────────────────────────────────────────────────


class TestDefinitionEndpoints:
    def test_create_read_roundtrip(self, client, auth, sample_document):
        resp = client.post("/v1/table-definitions", json=sample_document, headers=auth)
        assert resp.status_code == 201
        definition_id = resp.json()["id"]

        resp = client.get(f"/v1/table-definitions/{definition_id}")
        assert resp.status_code == 200
        assert resp.json() == sample_document

        resp = client.get("/v1/table-definitions")
        assert resp.json() == [definition_id]

    def test_create_requires_secret(self, client, sample_document):
        resp = client.post("/v1/table-definitions", json=sample_document)
        assert resp.status_code == 401

        resp = client.post(
            "/v1/table-definitions",
            json=sample_document,
            headers={DEFAULT_SECRET_HEADER: "wrong"},
        )
        assert resp.status_code == 401

    def test_create_invalid(self, client, auth):
        resp = client.post(
            "/v1/table-definitions",
            json={"http": {"url": "/rows"}, "columnDefs": [{"headerName": "x"}]},
            headers=auth,
        )
        assert resp.status_code == 422
        errors = resp.json()["detail"]["errors"]
        assert "columnDefs.0.field" in [e["path"] for e in errors]

    def test_create_deeply_nested_formatter(self, client, auth):
        resp = client.post(
            "/v1/table-definitions",
            json={
                "http": {"url": "/rows"},
                "columnDefs": [{"field": "n", "formatter": ["-" * 3000 + "1"]}],
            },
            headers=auth,
        )
        assert resp.status_code == 422
        assert resp.json()["detail"]["errors"][0]["path"] == "columnDefs.0.formatter.0"

    def test_get_missing(self, client):
        assert client.get("/v1/table-definitions/td-missing").status_code == 404

    def test_patch(self, client, auth, sample_document):
        definition_id = client.post("/v1/table-definitions", json=sample_document, headers=auth).json()["id"]

        resp = client.patch(
            f"/v1/table-definitions/{definition_id}",
            json={"defaultSort": {"colId": "name", "sort": "asc"}},
            headers=auth,
        )
        assert resp.status_code == 200
        assert resp.json() == {"updated": definition_id}

        document = client.get(f"/v1/table-definitions/{definition_id}").json()
        assert document["defaultSort"] == {"colId": "name", "sort": "asc"}

    def test_patch_invalid(self, client, auth, sample_document):
        definition_id = client.post("/v1/table-definitions", json=sample_document, headers=auth).json()["id"]

        resp = client.patch(
            f"/v1/table-definitions/{definition_id}",
            json={"columnDefs": [{"field": "name", "formatter": ["value |"]}]},
            headers=auth,
        )
        assert resp.status_code == 422
        assert resp.json()["detail"]["errors"][0]["path"] == "columnDefs.0.formatter.0"

    def test_patch_missing(self, client, auth):
        resp = client.patch("/v1/table-definitions/td-missing", json={"defaultSort": None}, headers=auth)
        assert resp.status_code == 404

    def test_delete(self, client, auth, sample_document):
        definition_id = client.post("/v1/table-definitions", json=sample_document, headers=auth).json()["id"]

        resp = client.delete(f"/v1/table-definitions/{definition_id}", headers=auth)
        assert resp.status_code == 200
        assert resp.json() == {"deleted": definition_id}

        assert client.delete(f"/v1/table-definitions/{definition_id}", headers=auth).status_code == 404

    def test_delete_requires_secret(self, client):
        assert client.delete("/v1/table-definitions/td-any").status_code == 401


# ── Guards ───────────────────────────────────────────────────────


class TestGuards:
    def test_mutations_disabled(self, read_only_gateway, sample_document):
        client = _router_client(read_only_gateway)
        resp = client.post(
            "/v1/table-definitions",
            json=sample_document,
            headers={DEFAULT_SECRET_HEADER: "s3cret"},
        )
        assert resp.status_code == 401

    @pytest.mark.parametrize("body", [["not", "an", "object"], "text", 42])
    def test_mutations_disabled_before_body_checks(self, read_only_gateway, body):
        client = _router_client(read_only_gateway)

        resp = client.post("/v1/table-definitions", json=body)
        assert resp.status_code == 401

        resp = client.patch("/v1/table-definitions/td-any", json=body)
        assert resp.status_code == 401

    def test_missing_body_is_unauthorized_without_secret(self, read_only_gateway):
        client = _router_client(read_only_gateway)
        assert client.post("/v1/table-definitions").status_code == 401

    def test_non_object_body_with_secret(self, gateway, secret):
        client = _router_client(gateway)
        resp = client.post(
            "/v1/table-definitions",
            json=["not", "an", "object"],
            headers={DEFAULT_SECRET_HEADER: secret},
        )
        assert resp.status_code == 422

    def test_read_guard(self, file_adapter, secret, sample_document):
        gateway = DefinitionGateway(
            file_adapter,
            mutation_secret=secret,
            read_guard=lambda definition_id, context: context.get("x-tenant") == "acme",
        )
        client = _router_client(gateway)
        definition_id = gateway.create(sample_document, secret=secret)

        resp = client.get(f"/v1/table-definitions/{definition_id}", headers={"X-Tenant": "acme"})
        assert resp.status_code == 200

        resp = client.get(f"/v1/table-definitions/{definition_id}", headers={"X-Tenant": "other"})
        assert resp.status_code == 403

        resp = client.get("/v1/table-definitions", headers={"X-Tenant": "other"})
        assert resp.json() == []

    def test_custom_secret_header(self, monkeypatch, gateway, secret, sample_document):
        monkeypatch.setenv("GRIDWEAVER_SECRET_HEADER", "X-Admin-Token")
        client = _router_client(gateway)

        resp = client.post("/v1/table-definitions", json=sample_document, headers={DEFAULT_SECRET_HEADER: secret})
        assert resp.status_code == 401

        resp = client.post("/v1/table-definitions", json=sample_document, headers={"X-Admin-Token": secret})
        assert resp.status_code == 201
