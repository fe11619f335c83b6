from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


class FakeConnection:
    """In-memory Connection that records every decoded frame it is sent."""

    def __init__(self, name: str = "client", *, is_open: bool = True, fail: bool = False) -> None:
        self.remote_address = f"{name}:5000"
        self.is_open = is_open
        self.fail = fail
        self.sent: list[dict] = []

    async def send_text(self, text: str) -> None:
        if self.fail:
            raise ConnectionResetError("peer went away")
        self.sent.append(json.loads(text))

    def kinds(self) -> list[str]:
        return [message["event"] for message in self.sent]


@pytest.fixture()
def make_connection():
    return FakeConnection


@pytest.fixture(scope="session")
def app(tmp_path_factory: pytest.TempPathFactory):
    tmp_dir = tmp_path_factory.mktemp("runtime")
    db_path = tmp_dir / "cti_test.db"

    # Must be set before importing modules that create the SQLAlchemy engine.
    os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{db_path.as_posix()}"
    os.environ["DATA_DIR"] = str(tmp_dir)
    os.environ["AUTO_CREATE_DB_SCHEMA"] = "true"
    # Keep simulated calls short.
    os.environ["ANSWER_DELAY_SECONDS"] = "0.05"
    os.environ.pop("FRESHDESK_DOMAIN", None)
    os.environ.pop("FRESHDESK_API_KEY", None)

    import importlib

    # Ensure clean import with the test DB settings.
    for module_name in [
        "config.settings",
        "db.base",
        "db.models",
        "db.repository",
        "integrations.freshdesk",
        "api.dependencies",
        "api.schemas",
        "api.routes",
        "api.websocket",
        "main",
    ]:
        sys.modules.pop(module_name, None)

    main = importlib.import_module("main")
    return main.app


@pytest.fixture()
def client(app):
    # Never reach out to Freshdesk from tests.
    import api.dependencies as deps

    app.dependency_overrides[deps.get_ticket_client] = lambda: None

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
