"""
Database migration tests — verify that migrations apply cleanly and
produce the expected schema.

Catches:
  - SQL syntax errors in migration functions
  - Idempotency failures (running migrations twice)
  - Missing tables or columns after migration
  - Lookup seeds drifting from the shared constants
"""

import sqlite3

import pytest

from constants import INSURANCE_TYPES


def _fresh_conn() -> sqlite3.Connection:
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON;")
    return conn


# ── Migration application ─────────────────────────────────────────────────

class TestMigrationsApply:
    def test_all_migrations_apply_to_fresh_db(self):
        """All migrations should apply without error to an empty database."""
        from db_migrations import _migrations, apply_migrations

        conn = _fresh_conn()
        apply_migrations(conn)

        rows = conn.execute("SELECT migration_id FROM schema_migrations ORDER BY migration_id").fetchall()
        ids = [r["migration_id"] for r in rows]
        assert ids[0] == "0001_initial"
        assert ids == [m.migration_id for m in _migrations()]
        conn.close()

    def test_migrations_are_idempotent(self):
        """Running apply_migrations twice should not raise or reseed."""
        from db_migrations import apply_migrations

        conn = _fresh_conn()
        apply_migrations(conn)
        apply_migrations(conn)
        count = conn.execute("SELECT COUNT(*) FROM insurance_types").fetchone()[0]
        assert count == len(INSURANCE_TYPES)
        conn.close()

    def test_migration_ids_are_sequential(self):
        """Migration IDs should be in sorted order."""
        from db_migrations import _migrations

        ids = [m.migration_id for m in _migrations()]
        assert ids == sorted(ids), f"Migration IDs are not sorted: {ids}"

    def test_no_duplicate_migration_ids(self):
        """Each migration_id must be unique."""
        from db_migrations import _migrations

        ids = [m.migration_id for m in _migrations()]
        assert len(ids) == len(set(ids)), f"Duplicate migration IDs: {[x for x in ids if ids.count(x) > 1]}"


# ── Schema expectations ───────────────────────────────────────────────────

EXPECTED_TABLES = [
    "users",
    "insurance_types",
    "manufacturers",
    "vehicles",
    "user_fleet",
    "app_settings",
    "schema_migrations",
]


class TestSchemaAfterMigrations:
    def test_expected_tables_exist(self, db_conn: sqlite3.Connection):
        tables = {
            r[0]
            for r in db_conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table'"
            ).fetchall()
        }
        for t in EXPECTED_TABLES:
            assert t in tables, f"Expected table '{t}' not found. Tables: {tables}"

    def test_vehicles_table_has_core_columns(self, db_conn: sqlite3.Connection):
        cols = {r["name"] for r in db_conn.execute("PRAGMA table_info(vehicles)").fetchall()}
        for c in ("id", "slug", "name", "focus", "size_label", "production_status", "is_provisional"):
            assert c in cols, f"vehicles table missing column: {c}"

    def test_user_fleet_table_has_core_columns(self, db_conn: sqlite3.Connection):
        cols = {r["name"] for r in db_conn.execute("PRAGMA table_info(user_fleet)").fetchall()}
        for c in (
            "user_id",
            "vehicle_id",
            "insurance_type_id",
            "warbond",
            "pledge_id",
            "pledge_name",
            "pledge_cost",
            "pledge_date",
            "custom_name",
            "imported_at",
        ):
            assert c in cols, f"user_fleet table missing column: {c}"

    def test_insurance_types_seeded(self, db_conn: sqlite3.Connection):
        rows = db_conn.execute("SELECT id,key,is_lifetime FROM insurance_types ORDER BY id").fetchall()
        assert [(r["id"], r["key"]) for r in rows] == [(t["id"], t["key"]) for t in INSURANCE_TYPES]
        lifetime = [r["key"] for r in rows if r["is_lifetime"]]
        assert lifetime == ["lti"]

    def test_new_vehicle_defaults_to_enriched(self, db_conn: sqlite3.Connection):
        db_conn.execute(
            "INSERT INTO vehicles (slug,name,created_at,updated_at) VALUES ('aurora','Aurora',0,0)"
        )
        row = db_conn.execute("SELECT is_provisional,production_status FROM vehicles WHERE slug='aurora'").fetchone()
        assert row["is_provisional"] == 0
        assert row["production_status"] == "unknown"

    def test_fleet_row_requires_catalog_vehicle(self, db_conn: sqlite3.Connection, user_id: int):
        with pytest.raises(sqlite3.IntegrityError):
            db_conn.execute(
                "INSERT INTO user_fleet (user_id,vehicle_id,imported_at) VALUES (?,?,0)",
                (user_id, 424242),
            )

    def test_foreign_keys_enabled(self, db_conn: sqlite3.Connection):
        fk = db_conn.execute("PRAGMA foreign_keys;").fetchone()
        assert fk[0] == 1
