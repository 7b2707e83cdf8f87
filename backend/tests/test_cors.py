import importlib
import os
import sys

import pytest


def _app_modules():
    return {name: mod for name, mod in sys.modules.items() if name == "app" or name.startswith("app.")}


@pytest.fixture(autouse=True)
def app_import_isolation(monkeypatch):
    app_path = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    saved = _app_modules()
    for name in saved:
        sys.modules.pop(name, None)
    monkeypatch.syspath_prepend(app_path)
    try:
        yield
    finally:
        for name in _app_modules():
            sys.modules.pop(name, None)
        sys.modules.update(saved)


def test_rejects_wildcard_origin(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://localhost:3000,*")
    monkeypatch.setenv("ALLOW_CREDENTIALS", "true")
    with pytest.raises(ValueError):
        importlib.import_module("app.main")


def test_requires_allowed_origins(monkeypatch):
    monkeypatch.delenv("ALLOWED_ORIGINS", raising=False)
    monkeypatch.delenv("ALLOW_CREDENTIALS", raising=False)
    with pytest.raises(ValueError):
        importlib.import_module("app.main")


def test_blank_origin_list_is_rejected(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", " , ")
    with pytest.raises(ValueError):
        importlib.import_module("app.main")


def test_preflight_allows_configured_origin(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://scores.local")
    monkeypatch.delenv("SENTRY_DSN", raising=False)
    main = importlib.import_module("app.main")

    from fastapi.testclient import TestClient

    client = TestClient(main.app)
    resp = client.options(
        "/healthz",
        headers={
            "Origin": "http://scores.local",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "http://scores.local"
