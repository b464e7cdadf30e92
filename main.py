import json
import logging
import os
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI

from auth_service import ensure_default_user
import catalog_repository
from catalog_router import router as catalog_router
from db import connect_db
from db_migrations import apply_migrations
from fleet_router import router as fleet_router
from import_router import router as import_router

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"
CATALOG_SEED_PATH = os.environ.get("CATALOG_SEED_PATH", "").strip()

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("fleet_ledger")

app = FastAPI(title="Fleet Ledger")
app.include_router(catalog_router)
app.include_router(fleet_router)
app.include_router(import_router)


def load_catalog_seed(path: Path) -> List[Dict[str, Any]]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"Catalog seed {path} must be a JSON array")
    return [item for item in data if isinstance(item, dict)]


def seed_catalog_if_empty(conn: sqlite3.Connection, seed_path: Optional[Path] = None) -> int:
    """Load reference vehicles from a JSON seed into an empty catalog."""
    path = seed_path or (Path(CATALOG_SEED_PATH) if CATALOG_SEED_PATH else None)
    if path is None:
        return 0
    if catalog_repository.catalog_counts(conn)["vehicles"] > 0:
        return 0
    try:
        items = load_catalog_seed(path)
    except (OSError, ValueError) as exc:
        logger.warning("Catalog seed %s not loaded: %s", path, exc)
        return 0

    count = 0
    for item in items:
        slug = str(item.get("slug") or "").strip()
        name = str(item.get("name") or "").strip()
        if not slug or not name:
            continue
        catalog_repository.upsert_vehicle(
            conn,
            slug,
            name,
            manufacturer_code=item.get("manufacturer_code"),
            manufacturer_name=item.get("manufacturer_name"),
            focus=item.get("focus"),
            size_label=item.get("size_label"),
            cargo=item.get("cargo"),
            crew_min=item.get("crew_min"),
            crew_max=item.get("crew_max"),
            pledge_price=item.get("pledge_price"),
            production_status=item.get("production_status"),
        )
        count += 1
    logger.info("Seeded %d reference vehicles from %s", count, path)
    return count


@app.on_event("startup")
def _startup():
    conn = connect_db()
    try:
        apply_migrations(conn)
        ensure_default_user(conn)
        seed_catalog_if_empty(conn)
        conn.commit()
    finally:
        conn.close()
