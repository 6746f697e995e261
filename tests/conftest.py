"""Pytest configuration to make the local package importable without installation."""
import json
import os
import sys
from pathlib import Path

import pytest

# Ensure repository root is on sys.path for module resolution
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import sheetdash.core.config as config
from sheetdash.ingestion.mapper import values_to_cells


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch) -> None:
    """Read settings from the environment only, never from local secrets files."""

    monkeypatch.setattr(config, "_ENV_LOADED", True)
    monkeypatch.setattr(config, "get_config_value", lambda key, default="": os.getenv(key, default))
    for key in (
        "TRANSFERS_SPREADSHEET_ID",
        "INCIDENTS_SPREADSHEET_ID",
        "MESSAGES_SPREADSHEET_ID",
        "STATUS_WEBHOOK_URL",
    ):
        monkeypatch.delenv(key, raising=False)


class FakeResponse:
    def __init__(self, text: str = "", status_code: int = 200, reason: str = "OK") -> None:
        self.text = text
        self.status_code = status_code
        self.reason = reason

    @property
    def ok(self) -> bool:
        return self.status_code < 400


class FakeSession:
    """Stand-in for ``requests.Session`` that records calls."""

    def __init__(self, response: FakeResponse | None = None, error: Exception | None = None) -> None:
        self.response = response or FakeResponse()
        self.error = error
        self.calls: list[tuple[str, str, dict]] = []

    def get(self, url: str, **kwargs):
        self.calls.append(("GET", url, kwargs))
        if self.error:
            raise self.error
        return self.response

    def post(self, url: str, **kwargs):
        self.calls.append(("POST", url, kwargs))
        if self.error:
            raise self.error
        return self.response


def gviz_body(rows: list[list[object]]) -> str:
    """Wrap plain row values the way the query endpoint does."""

    table = {
        "cols": [],
        "rows": [{"c": [None if value is None else {"v": value} for value in row]} for row in rows],
    }
    payload = {"version": "0.6", "status": "ok", "table": table}
    return "/*O_o*/\ngoogle.visualization.Query.setResponse(" + json.dumps(payload) + ");"


@pytest.fixture
def transfer_rows():
    """The two-row transfer scenario with mixed date encodings."""

    return values_to_cells(
        [
            ["A1", "Alice", "O1", "04/02/2026", "url1"],
            ["A2", "Bob", "O2", "Date(2026,1,10)", "url2"],
        ]
    )


@pytest.fixture
def incident_rows():
    return values_to_cells(
        [
            ["C1", "Ana", "P1", "Retraso", "Llega tarde", "2026-02-01", "", "web"],
            ["C2", "Bruno", "P2", "Rotura", "Caja rota", "05/02/2026", "Cerrada", "tienda"],
            ["C3", "Carla", "P3", "Retraso", "Sin noticias", "Date(2026,1,5)", "Abierta", "web"],
            ["C4", "Dani", "P4", "", "Sin fecha", "pendiente", "abierta", "Web"],
        ]
    )


@pytest.fixture
def message_rows():
    return values_to_cells(
        [
            ["04/02/2026 10:00", "+34 600 111 222", "user", "Hola, ¿dónde está mi pedido?"],
            ["04/02/2026 10:01", "+34 600 111 222", "assistant", "Está en reparto"],
            ["05/02/2026 09:00", "+34 600 333 444", "user", "Quiero devolver un producto"],
            ["sin fecha", "+34 600 111 222", "user", "Gracias"],
            ["03/02/2026 08:00", "+34 600 555 666", "bot", "Recordatorio de pago"],
        ]
    )


@pytest.fixture
def make_session():
    """Factory for fake HTTP sessions: ``make_session(text=..., status_code=..., error=...)``."""

    def _make(text: str = "", status_code: int = 200, reason: str = "OK", error: Exception | None = None) -> FakeSession:
        return FakeSession(FakeResponse(text, status_code, reason), error)

    return _make


@pytest.fixture
def gviz():
    return gviz_body
