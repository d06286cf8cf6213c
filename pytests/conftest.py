from __future__ import annotations

import socket
import threading
import time
from dataclasses import dataclass
from typing import Generator

import pytest
from werkzeug.serving import make_server

from app import create_app
from pytests.common import create_empty_sqlite_db, patch_app_db, seed_two_stocks


def _pick_free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return int(s.getsockname()[1])


@dataclass(frozen=True)
class LiveServer:
    base_url: str


@pytest.fixture()
def seeded_db(tmp_path, monkeypatch):
    """Temp SQLite DB with two stocks, wired into `db`. Yields the engine."""

    session, engine = create_empty_sqlite_db(tmp_path / "stock_data.db")
    patch_app_db(monkeypatch, engine)
    seed_two_stocks(session)
    session.close()
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def client(seeded_db):
    app = create_app()
    app.config.update(TESTING=True)

    with app.test_client() as c:
        yield c


@pytest.fixture()
def seeded_live_server(seeded_db) -> Generator[LiveServer, None, None]:
    """Start a real HTTP server (thread) backed by the seeded temp DB."""

    app = create_app()
    app.config.update(TESTING=True)

    port = _pick_free_port()
    server = make_server("127.0.0.1", port, app)

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    # Small wait to ensure the socket is accepting.
    deadline = time.time() + 5
    while time.time() < deadline:
        try:
            with socket.create_connection(("127.0.0.1", port), timeout=0.2):
                break
        except OSError:
            time.sleep(0.05)

    try:
        yield LiveServer(base_url=f"http://127.0.0.1:{port}")
    finally:
        server.shutdown()
        thread.join(timeout=5)
