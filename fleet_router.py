"""
Fleet read API routes.

Handles:
  /api/vehicles
  /api/analysis
"""

import sqlite3
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request

import analysis_service
from auth_service import require_user
from db import get_db
import fleet_repository

router = APIRouter(tags=["fleet"])


def _fleet_payload(conn: sqlite3.Connection, user_id: int) -> List[Dict[str, Any]]:
    return [fleet_repository.fleet_entry_payload(r) for r in fleet_repository.list_fleet(conn, user_id)]


@router.get("/api/vehicles")
def api_vehicles(request: Request, conn: sqlite3.Connection = Depends(get_db)) -> Dict[str, Any]:
    user = require_user(conn, request)
    return {"vehicles": _fleet_payload(conn, int(user["id"]))}


@router.get("/api/analysis")
def api_analysis(request: Request, conn: sqlite3.Connection = Depends(get_db)) -> Dict[str, Any]:
    user = require_user(conn, request)
    return analysis_service.analyze_fleet(_fleet_payload(conn, int(user["id"])))
