"""
Hangar import API routes.

Handles:
  /api/import/hangarxplor   POST   replace the fleet from a HangarXplor export
  /api/import/hangarxplor   GET    fleet rows as last imported
  /api/import/hangarxplor   DELETE clear the fleet
"""

import logging
import sqlite3
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Request

from auth_service import require_user
from db import get_db
import fleet_repository
import import_service

router = APIRouter(tags=["import"])
logger = logging.getLogger(__name__)


@router.post("/api/import/hangarxplor")
def api_import_hangarxplor(
    request: Request,
    payload: Any = Body(...),
    conn: sqlite3.Connection = Depends(get_db),
) -> Dict[str, Any]:
    user = require_user(conn, request)
    user_id = int(user["id"])
    try:
        with import_service.user_import_lock(user_id):
            return import_service.reconcile_fleet(conn, user_id, payload)
    except import_service.InputShapeError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except import_service.ImportInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except import_service.PersistenceError as exc:
        raise HTTPException(status_code=500, detail=f"Import failed, previous fleet kept: {exc}") from exc


@router.get("/api/import/hangarxplor")
def api_import_hangarxplor_list(request: Request, conn: sqlite3.Connection = Depends(get_db)) -> Dict[str, Any]:
    user = require_user(conn, request)
    rows = fleet_repository.list_fleet_entries(conn, int(user["id"]))
    return {
        "entries": [
            {
                "id": int(r["id"]),
                "vehicle_id": int(r["vehicle_id"]),
                "insurance_type_id": r["insurance_type_id"],
                "warbond": bool(r["warbond"]),
                "is_loaner": bool(r["is_loaner"]),
                "pledge_id": r["pledge_id"],
                "pledge_name": r["pledge_name"],
                "pledge_cost": r["pledge_cost"],
                "pledge_date": r["pledge_date"],
                "custom_name": r["custom_name"] or "",
                "imported_at": float(r["imported_at"]),
            }
            for r in rows
        ],
    }


@router.delete("/api/import/hangarxplor")
def api_import_hangarxplor_clear(request: Request, conn: sqlite3.Connection = Depends(get_db)) -> Dict[str, Any]:
    user = require_user(conn, request)
    removed = fleet_repository.clear_fleet(conn, int(user["id"]))
    conn.commit()
    logger.info("Cleared %d fleet entries for user %s", removed, user["id"])
    return {"ok": True, "removed": removed, "message": "Imports cleared"}
