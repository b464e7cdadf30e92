"""
Shared pytest fixtures for the fleet ledger tests.

Provides:
  - In-memory SQLite DB with migrations applied and the default user seeded
  - FastAPI TestClient bound to a per-test database file
  - Helper functions for seeding catalog rows and building hangar records
"""

import os
import sqlite3
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator, Optional

import pytest

# ---------------------------------------------------------------------------
# Ensure the project root is on sys.path so we can import app modules
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Use a writable temp directory for the test DB so the app startup succeeds.
_TEST_DB_DIR = tempfile.mkdtemp(prefix="fleet_ledger_test_")
os.environ["DB_DIR"] = _TEST_DB_DIR


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

def _open_migrated(factory: Optional[type] = None) -> sqlite3.Connection:
    from auth_service import ensure_default_user
    from db_migrations import apply_migrations

    if factory is None:
        conn = sqlite3.connect(":memory:")
    else:
        conn = sqlite3.connect(":memory:", factory=factory)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON;")
    apply_migrations(conn)
    ensure_default_user(conn)
    conn.commit()
    return conn


@pytest.fixture()
def db_conn() -> Generator[sqlite3.Connection, None, None]:
    """Yield an in-memory SQLite connection with all migrations applied."""
    conn = _open_migrated()
    yield conn
    conn.close()


class FailingConnection(sqlite3.Connection):
    """Connection that raises on the Nth fleet insert once armed."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.fail_on_fleet_insert: Optional[int] = None
        self._fleet_inserts = 0

    def execute(self, sql: str, parameters: Any = ()) -> sqlite3.Cursor:
        if self.fail_on_fleet_insert is not None and "INSERT INTO user_fleet" in sql:
            self._fleet_inserts += 1
            if self._fleet_inserts >= self.fail_on_fleet_insert:
                raise sqlite3.OperationalError("simulated disk I/O error")
        return super().execute(sql, parameters)


@pytest.fixture()
def failing_conn() -> Generator[FailingConnection, None, None]:
    conn = _open_migrated(FailingConnection)
    yield conn
    conn.close()


@pytest.fixture()
def user_id(db_conn: sqlite3.Connection) -> int:
    from auth_service import get_default_user
    return int(get_default_user(db_conn)["id"])


# ---------------------------------------------------------------------------
# FastAPI TestClient
# ---------------------------------------------------------------------------

@pytest.fixture()
def client(tmp_path, monkeypatch):
    """Return a Starlette TestClient wired to the FastAPI app.

    Each test gets its own database file; requests act as the default user.
    """
    from fastapi.testclient import TestClient
    import db
    from main import app

    monkeypatch.setattr(db, "DB_PATH", tmp_path / "fleet.db")
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def api_conn(client) -> Generator[sqlite3.Connection, None, None]:
    """A direct connection to the database behind `client`."""
    from db import connect_db

    conn = connect_db()
    yield conn
    conn.close()


# ---------------------------------------------------------------------------
# Test data helpers
# ---------------------------------------------------------------------------

class TestHelpers:
    """Stateless helper methods for common test-data operations."""

    @staticmethod
    def seed_vehicle(conn: sqlite3.Connection, slug: str, name: str, **fields: Any) -> int:
        """Insert an enriched catalog row and commit. Returns the vehicle id."""
        import catalog_repository

        vehicle_id = catalog_repository.upsert_vehicle(conn, slug, name, **fields)
        conn.commit()
        return vehicle_id

    @staticmethod
    def record(ship_code: str, name: str, **extra: Any) -> Dict[str, Any]:
        """A HangarXplor export entry with the usual pass-through fields."""
        entry: Dict[str, Any] = {
            "ship_code": ship_code,
            "name": name,
            "manufacturer_code": ship_code.split("_")[0] if "_" in ship_code else "",
            "manufacturer_name": "",
            "lti": False,
            "warbond": False,
            "entity_type": "ship",
            "pledge_id": "1000001",
            "pledge_name": f"Standalone Ships - {name}",
            "pledge_date": "January 01, 2950",
            "pledge_cost": "$100.00 USD",
        }
        entry.update(extra)
        return entry

    @staticmethod
    def fleet_snapshot(conn: sqlite3.Connection, user_id: int) -> list:
        import fleet_repository
        return [tuple(r) for r in fleet_repository.list_fleet_entries(conn, user_id)]


@pytest.fixture()
def helpers() -> TestHelpers:
    return TestHelpers()
