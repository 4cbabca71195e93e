"""Application-level behaviour: health, error envelopes and request ids."""

from __future__ import annotations

from authserver.bootstrap import EXTENSION_KEY
from authserver.services.auth.service import AuthService
from sqlalchemy import text


def test_health_reports_database_and_backend(client):
    resp = client.get("/api/v1/health")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "ok"
    assert body["db"] == "ok"
    assert body["refresh_token_backend"] == "sql"
    assert body["version"]


def test_unknown_route_is_problem_json(client):
    resp = client.get("/api/v1/nope")

    assert resp.status_code == 404
    assert resp.mimetype == "application/problem+json"
    problem = resp.get_json()
    assert problem["code"] == "not_found"
    assert problem["instance"] == "/api/v1/nope"
    assert problem["request_id"]


def test_method_not_allowed(client):
    resp = client.get("/api/v1/auth/login")
    assert resp.status_code == 405
    assert resp.get_json()["code"] == "method_not_allowed"


def test_request_id_is_echoed(client):
    resp = client.get("/api/v1/health", headers={"X-Request-ID": "abc-123"})
    assert resp.headers["X-Request-ID"] == "abc-123"


def test_request_id_is_generated(client):
    resp = client.get("/api/v1/health")
    assert resp.headers["X-Request-ID"]


def test_error_request_id_matches_header(client):
    resp = client.post("/api/v1/auth/refresh", json={}, headers={"X-Request-ID": "trace-7"})
    assert resp.get_json()["request_id"] == "trace-7"
    assert resp.headers["X-Request-ID"] == "trace-7"


def test_cors_allows_configured_origin(client):
    resp = client.get("/api/v1/health", headers={"Origin": "http://localhost:3000"})
    assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"


def test_service_is_registered(app):
    assert isinstance(app.extensions[EXTENSION_KEY], AuthService)


def test_sqlite_connections_enforce_foreign_keys(session):
    assert session.execute(text("PRAGMA foreign_keys")).scalar() == 1
