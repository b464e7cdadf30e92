import sqlite3
import time
from dataclasses import dataclass
from typing import Callable, List

from constants import INSURANCE_TYPES


@dataclass(frozen=True)
class Migration:
    migration_id: str
    description: str
    apply: Callable[[sqlite3.Connection], None]


def _table_columns(conn: sqlite3.Connection, table: str) -> set[str]:
    rows = conn.execute(f"PRAGMA table_info({table});").fetchall()
    return {str(r["name"]) for r in rows}


def _safe_add_column(conn: sqlite3.Connection, table: str, name: str, coltype: str) -> None:
    if name in _table_columns(conn, table):
        return
    conn.execute(f"ALTER TABLE {table} ADD COLUMN {name} {coltype};")


def _migration_0001_initial(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS users (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          username TEXT UNIQUE NOT NULL,
          handle TEXT NOT NULL DEFAULT '',
          created_at REAL NOT NULL
        );

        CREATE TABLE IF NOT EXISTS insurance_types (
          id INTEGER PRIMARY KEY,
          key TEXT UNIQUE NOT NULL,
          label TEXT NOT NULL,
          duration_months INTEGER,
          is_lifetime INTEGER NOT NULL DEFAULT 0
        );

        CREATE TABLE IF NOT EXISTS manufacturers (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          code TEXT UNIQUE NOT NULL,
          name TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS vehicles (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          slug TEXT UNIQUE NOT NULL,
          name TEXT NOT NULL,
          manufacturer_id INTEGER REFERENCES manufacturers(id),
          focus TEXT,
          size_label TEXT,
          cargo REAL,
          crew_min INTEGER,
          crew_max INTEGER,
          pledge_price REAL,
          production_status TEXT NOT NULL DEFAULT 'unknown',
          created_at REAL NOT NULL,
          updated_at REAL NOT NULL
        );

        CREATE TABLE IF NOT EXISTS user_fleet (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
          vehicle_id INTEGER NOT NULL REFERENCES vehicles(id),
          insurance_type_id INTEGER REFERENCES insurance_types(id),
          warbond INTEGER NOT NULL DEFAULT 0,
          is_loaner INTEGER NOT NULL DEFAULT 0,
          pledge_id TEXT,
          pledge_name TEXT,
          pledge_cost TEXT,
          pledge_date TEXT,
          custom_name TEXT,
          imported_at REAL NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_user_fleet_user ON user_fleet(user_id);

        CREATE TABLE IF NOT EXISTS app_settings (
          key TEXT PRIMARY KEY,
          value TEXT NOT NULL
        );
        """
    )


def _migration_0002_seed_insurance_types(conn: sqlite3.Connection) -> None:
    """Seed the static insurance tier lookup table."""
    for tier in INSURANCE_TYPES:
        conn.execute(
            """
            INSERT OR IGNORE INTO insurance_types (id,key,label,duration_months,is_lifetime)
            VALUES (?,?,?,?,?)
            """,
            (
                tier["id"],
                tier["key"],
                tier["label"],
                tier["duration_months"],
                int(tier["is_lifetime"]),
            ),
        )


def _migration_0003_vehicle_provisional_flag(conn: sqlite3.Connection) -> None:
    """Mark catalog rows created as import stubs until a sync enriches them."""
    _safe_add_column(conn, "vehicles", "is_provisional", "INTEGER NOT NULL DEFAULT 0")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_vehicles_provisional ON vehicles(is_provisional);")


def _migration_0004_vehicle_name_index(conn: sqlite3.Connection) -> None:
    """Case-insensitive name lookups during import matching."""
    conn.execute("CREATE INDEX IF NOT EXISTS idx_vehicles_name_nocase ON vehicles(name COLLATE NOCASE);")


def _migrations() -> List[Migration]:
    return [
        Migration("0001_initial", "Create users, catalog, fleet and settings tables", _migration_0001_initial),
        Migration("0002_seed_insurance_types", "Seed insurance tier lookup rows", _migration_0002_seed_insurance_types),
        Migration("0003_vehicle_provisional_flag", "Add is_provisional flag to vehicles", _migration_0003_vehicle_provisional_flag),
        Migration("0004_vehicle_name_index", "Add case-insensitive vehicle name index", _migration_0004_vehicle_name_index),
    ]


def apply_migrations(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
          migration_id TEXT PRIMARY KEY,
          description TEXT NOT NULL,
          applied_at REAL NOT NULL
        );
        """
    )

    applied = {
        str(r["migration_id"])
        for r in conn.execute("SELECT migration_id FROM schema_migrations").fetchall()
    }

    for migration in _migrations():
        if migration.migration_id in applied:
            continue
        migration.apply(conn)
        conn.execute(
            "INSERT INTO schema_migrations (migration_id,description,applied_at) VALUES (?,?,?)",
            (migration.migration_id, migration.description, time.time()),
        )
    conn.commit()
