"""
Vehicle reference catalog store.

Rows are created by the catalog sync (enriched) or by the import stub
registrar (provisional: slug + name only). Rows are never deleted.
"""

import sqlite3
import time
from typing import Any, Dict, Iterable, List, Optional

_VEHICLE_COLUMNS = """
    v.id, v.slug, v.name, v.focus, v.size_label, v.cargo, v.crew_min, v.crew_max,
    v.pledge_price, v.production_status, v.is_provisional, v.created_at, v.updated_at,
    m.code AS manufacturer_code, m.name AS manufacturer_name
"""

_ENRICHABLE_FIELDS = (
    "focus",
    "size_label",
    "cargo",
    "crew_min",
    "crew_max",
    "pledge_price",
    "production_status",
)


def is_provisional(row: Any) -> bool:
    return bool(int(row["is_provisional"] or 0))


def list_catalog_entries(conn: sqlite3.Connection) -> List[sqlite3.Row]:
    """Every catalog slug and name in storage order (ascending row id)."""
    return conn.execute("SELECT id,slug,name FROM vehicles ORDER BY id").fetchall()


def list_vehicles(conn: sqlite3.Connection, *, provisional_only: bool = False) -> List[sqlite3.Row]:
    where = "WHERE v.is_provisional=1" if provisional_only else ""
    return conn.execute(
        f"""
        SELECT {_VEHICLE_COLUMNS}
        FROM vehicles v
        LEFT JOIN manufacturers m ON m.id = v.manufacturer_id
        {where}
        ORDER BY v.name COLLATE NOCASE, v.id
        """
    ).fetchall()


def get_vehicle_by_slug(conn: sqlite3.Connection, slug: str) -> Optional[sqlite3.Row]:
    return conn.execute(
        f"""
        SELECT {_VEHICLE_COLUMNS}
        FROM vehicles v
        LEFT JOIN manufacturers m ON m.id = v.manufacturer_id
        WHERE v.slug=?
        """,
        (slug,),
    ).fetchone()


def vehicle_ids_by_slug(conn: sqlite3.Connection, slugs: Iterable[str]) -> Dict[str, int]:
    wanted = sorted({s for s in slugs if s})
    if not wanted:
        return {}
    placeholders = ",".join("?" for _ in wanted)
    rows = conn.execute(
        f"SELECT id,slug FROM vehicles WHERE slug IN ({placeholders})",
        tuple(wanted),
    ).fetchall()
    return {str(r["slug"]): int(r["id"]) for r in rows}


def upsert_stub_vehicle(conn: sqlite3.Connection, slug: str, name: str, *, now: Optional[float] = None) -> None:
    """Create a provisional catalog row, or refresh the name of an existing one.

    Does not commit; the caller owns the transaction.
    """
    if not slug:
        raise ValueError("Provisional vehicles need a non-empty slug")
    ts = time.time() if now is None else now
    conn.execute(
        """
        INSERT INTO vehicles (slug,name,is_provisional,created_at,updated_at)
        VALUES (?,?,1,?,?)
        ON CONFLICT(slug) DO UPDATE SET name=excluded.name, updated_at=excluded.updated_at
        """,
        (slug, name, ts, ts),
    )


def upsert_manufacturer(conn: sqlite3.Connection, code: str, name: str) -> int:
    conn.execute(
        """
        INSERT INTO manufacturers (code,name) VALUES (?,?)
        ON CONFLICT(code) DO UPDATE SET name=excluded.name
        """,
        (code, name),
    )
    row = conn.execute("SELECT id FROM manufacturers WHERE code=?", (code,)).fetchone()
    return int(row["id"])


def upsert_vehicle(
    conn: sqlite3.Connection,
    slug: str,
    name: str,
    *,
    manufacturer_code: Optional[str] = None,
    manufacturer_name: Optional[str] = None,
    **fields: Any,
) -> int:
    """Insert or enrich a catalog row with full reference data.

    Enrichment always clears the provisional flag. Unknown field names raise
    ValueError. Does not commit.
    """
    unknown = set(fields) - set(_ENRICHABLE_FIELDS)
    if unknown:
        raise ValueError(f"Unknown vehicle fields: {sorted(unknown)}")

    manufacturer_id = None
    if manufacturer_code:
        manufacturer_id = upsert_manufacturer(conn, manufacturer_code, manufacturer_name or manufacturer_code)

    now = time.time()
    values: Dict[str, Any] = {k: fields.get(k) for k in _ENRICHABLE_FIELDS}
    if values["production_status"] is None:
        values["production_status"] = "unknown"

    conn.execute(
        """
        INSERT INTO vehicles
          (slug, name, manufacturer_id, focus, size_label, cargo, crew_min, crew_max,
           pledge_price, production_status, is_provisional, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?, ?)
        ON CONFLICT(slug) DO UPDATE SET
          name=excluded.name,
          manufacturer_id=COALESCE(excluded.manufacturer_id, vehicles.manufacturer_id),
          focus=excluded.focus,
          size_label=excluded.size_label,
          cargo=excluded.cargo,
          crew_min=excluded.crew_min,
          crew_max=excluded.crew_max,
          pledge_price=excluded.pledge_price,
          production_status=excluded.production_status,
          is_provisional=0,
          updated_at=excluded.updated_at
        """,
        (
            slug,
            name,
            manufacturer_id,
            values["focus"],
            values["size_label"],
            values["cargo"],
            values["crew_min"],
            values["crew_max"],
            values["pledge_price"],
            values["production_status"],
            now,
            now,
        ),
    )
    row = conn.execute("SELECT id FROM vehicles WHERE slug=?", (slug,)).fetchone()
    return int(row["id"])


def catalog_counts(conn: sqlite3.Connection) -> Dict[str, int]:
    row = conn.execute(
        """
        SELECT COUNT(*) AS total,
               COALESCE(SUM(CASE WHEN is_provisional=1 THEN 1 ELSE 0 END), 0) AS provisional
        FROM vehicles
        """
    ).fetchone()
    return {"vehicles": int(row["total"]), "provisional": int(row["provisional"])}


def load_insurance_types(conn: sqlite3.Connection) -> Dict[str, sqlite3.Row]:
    rows = conn.execute(
        "SELECT id,key,label,duration_months,is_lifetime FROM insurance_types ORDER BY id"
    ).fetchall()
    return {str(r["key"]): r for r in rows}
