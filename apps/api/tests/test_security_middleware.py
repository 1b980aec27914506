from __future__ import annotations

from fastapi.testclient import TestClient

from conftest import make_settings


def test_request_id_header_present(client) -> None:
    r = client.get("/health")
    assert r.status_code == 200
    assert r.headers.get("x-request-id")


def test_request_id_is_propagated(client) -> None:
    r = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert r.headers.get("x-request-id") == "abc-123"


def test_bearer_auth_blocks_when_enabled(tmp_path) -> None:
    from main import create_app

    settings = make_settings(tmp_path, api_auth_mode="bearer", api_auth_token="secret")
    client = TestClient(create_app(settings))

    # Health is exempt so containers can be checked.
    r0 = client.get("/health")
    assert r0.status_code == 200

    r1 = client.get("/notebooks")
    assert r1.status_code == 401

    r2 = client.get("/notebooks", headers={"Authorization": "Bearer secret"})
    assert r2.status_code == 200


def test_settings_from_environment(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("NEBULA_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("NEBULA_MAX_TREE_DEPTH", "50")
    monkeypatch.setenv("API_AUTH_MODE", "Bearer")
    monkeypatch.setenv("API_DEBUG_LOG", "true")
    from nebula_api.config import load_settings

    settings = load_settings()
    assert settings.data_dir == tmp_path.resolve()
    assert settings.max_tree_depth == 50
    assert settings.api_auth_mode == "bearer"
    assert settings.api_debug_log is True
