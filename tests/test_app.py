"""App wiring: health route and the server entry point."""
from __future__ import annotations

from unittest.mock import patch

from loveblooms import main
from loveblooms.settings import settings


def test_root_reports_store_backend(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["store"] == "memory"


def test_run_serves_on_configured_host_and_port(monkeypatch):
    monkeypatch.setattr(settings, "api_host", "0.0.0.0")
    monkeypatch.setattr(settings, "api_port", 8123)
    with patch("uvicorn.run") as serve:
        main.run()
    serve.assert_called_once()
    assert serve.call_args.args == (main.app,)
    assert serve.call_args.kwargs["host"] == "0.0.0.0"
    assert serve.call_args.kwargs["port"] == 8123
