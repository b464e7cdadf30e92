import sqlite3
from typing import Any, Dict, List, Optional

_FLEET_SELECT = """
    SELECT uf.id, uf.user_id, uf.vehicle_id, uf.insurance_type_id, uf.warbond, uf.is_loaner,
           uf.pledge_id, uf.pledge_name, uf.pledge_cost, uf.pledge_date, uf.custom_name,
           uf.imported_at,
           v.name AS vehicle_name, v.slug AS vehicle_slug, v.focus, v.size_label, v.cargo,
           v.crew_min, v.crew_max, v.pledge_price, v.production_status, v.is_provisional,
           m.name AS manufacturer_name, m.code AS manufacturer_code,
           it.key AS insurance_key, it.label AS insurance_label,
           it.duration_months, it.is_lifetime
    FROM user_fleet uf
    JOIN vehicles v ON v.id = uf.vehicle_id
    LEFT JOIN manufacturers m ON m.id = v.manufacturer_id
    LEFT JOIN insurance_types it ON it.id = uf.insurance_type_id
    WHERE uf.user_id=?
"""


def list_fleet(conn: sqlite3.Connection, user_id: int) -> List[sqlite3.Row]:
    return conn.execute(
        _FLEET_SELECT + " ORDER BY v.name COLLATE NOCASE, uf.id",
        (user_id,),
    ).fetchall()


def list_fleet_entries(conn: sqlite3.Connection, user_id: int) -> List[sqlite3.Row]:
    """Raw fleet rows in insertion order, without reference joins."""
    return conn.execute(
        """
        SELECT id,vehicle_id,insurance_type_id,warbond,is_loaner,
               pledge_id,pledge_name,pledge_cost,pledge_date,custom_name,imported_at
        FROM user_fleet WHERE user_id=? ORDER BY id
        """,
        (user_id,),
    ).fetchall()


def fleet_count(conn: sqlite3.Connection, user_id: int) -> int:
    row = conn.execute("SELECT COUNT(*) AS n FROM user_fleet WHERE user_id=?", (user_id,)).fetchone()
    return int(row["n"])


def clear_fleet(conn: sqlite3.Connection, user_id: int) -> int:
    cur = conn.execute("DELETE FROM user_fleet WHERE user_id=?", (user_id,))
    return int(cur.rowcount or 0)


def get_app_setting(conn: sqlite3.Connection, key: str) -> Optional[str]:
    row = conn.execute("SELECT value FROM app_settings WHERE key=?", (key,)).fetchone()
    return str(row["value"]) if row else None


def fleet_entry_payload(row: Any) -> Dict[str, Any]:
    return {
        "id": int(row["id"]),
        "vehicle_id": int(row["vehicle_id"]),
        "vehicle_slug": str(row["vehicle_slug"]),
        "vehicle_name": str(row["vehicle_name"]),
        "manufacturer_code": row["manufacturer_code"],
        "manufacturer_name": row["manufacturer_name"],
        "focus": row["focus"],
        "size_label": row["size_label"],
        "cargo": row["cargo"],
        "crew_min": row["crew_min"],
        "crew_max": row["crew_max"],
        "pledge_price": row["pledge_price"],
        "production_status": row["production_status"],
        "is_provisional": bool(row["is_provisional"]),
        "insurance_key": row["insurance_key"],
        "insurance_label": row["insurance_label"],
        "duration_months": row["duration_months"],
        "is_lifetime": bool(row["is_lifetime"] or 0),
        "warbond": bool(row["warbond"]),
        "is_loaner": bool(row["is_loaner"]),
        "pledge_id": row["pledge_id"],
        "pledge_name": row["pledge_name"],
        "pledge_cost": row["pledge_cost"],
        "pledge_date": row["pledge_date"],
        "custom_name": row["custom_name"] or "",
        "imported_at": float(row["imported_at"]),
    }
