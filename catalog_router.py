"""
Catalog & status API routes.

Handles:
  /api/health
  /api/status
  /api/ships
  /api/ships/{slug}
  /api/insurance-types
"""

import sqlite3
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request

from auth_service import require_user
import catalog_repository
from constants import HANGAR_SOURCE_SETTING, LAST_IMPORT_SETTING
from db import get_db
import fleet_repository

router = APIRouter(tags=["catalog"])


def _vehicle_payload(row: Any) -> Dict[str, Any]:
    return {
        "id": int(row["id"]),
        "slug": str(row["slug"]),
        "name": str(row["name"]),
        "manufacturer_code": row["manufacturer_code"],
        "manufacturer_name": row["manufacturer_name"],
        "focus": row["focus"],
        "size_label": row["size_label"],
        "cargo": row["cargo"],
        "crew_min": row["crew_min"],
        "crew_max": row["crew_max"],
        "pledge_price": row["pledge_price"],
        "production_status": row["production_status"],
        "is_provisional": catalog_repository.is_provisional(row),
    }


@router.get("/api/health")
def api_health(conn: sqlite3.Connection = Depends(get_db)) -> Dict[str, Any]:
    conn.execute("SELECT 1")
    return {
        "ok": True,
        "service": "fleet-ledger",
    }


@router.get("/api/status")
def api_status(request: Request, conn: sqlite3.Connection = Depends(get_db)) -> Dict[str, Any]:
    user = require_user(conn, request)
    last_import = fleet_repository.get_app_setting(conn, LAST_IMPORT_SETTING)
    return {
        **catalog_repository.catalog_counts(conn),
        "fleet": fleet_repository.fleet_count(conn, int(user["id"])),
        "hangar_source": fleet_repository.get_app_setting(conn, HANGAR_SOURCE_SETTING),
        "last_import_at": float(last_import) if last_import else None,
    }


@router.get("/api/ships")
def api_ships(
    request: Request,
    provisional: bool = False,
    conn: sqlite3.Connection = Depends(get_db),
) -> Dict[str, Any]:
    require_user(conn, request)
    rows = catalog_repository.list_vehicles(conn, provisional_only=provisional)
    return {"ships": [_vehicle_payload(r) for r in rows]}


@router.get("/api/ships/{slug}")
def api_ship(slug: str, request: Request, conn: sqlite3.Connection = Depends(get_db)) -> Dict[str, Any]:
    require_user(conn, request)
    row = catalog_repository.get_vehicle_by_slug(conn, slug)
    if not row:
        raise HTTPException(status_code=404, detail="Ship not found")
    return _vehicle_payload(row)


@router.get("/api/insurance-types")
def api_insurance_types(request: Request, conn: sqlite3.Connection = Depends(get_db)) -> Dict[str, Any]:
    require_user(conn, request)
    return {
        "insurance_types": [
            {
                "id": int(r["id"]),
                "key": str(r["key"]),
                "label": str(r["label"]),
                "duration_months": r["duration_months"],
                "is_lifetime": bool(r["is_lifetime"]),
            }
            for r in catalog_repository.load_insurance_types(conn).values()
        ],
    }
