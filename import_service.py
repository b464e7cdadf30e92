"""
Hangar import service: reconcile a user's fleet from a HangarXplor export.

An import replaces the user's whole fleet. Each record is resolved to a
catalog vehicle (creating a provisional stub when nothing matches), its
insurance text is classified and its nickname checked, and then the old fleet
is deleted and the new one inserted in a single transaction.

Failure model:
  - payload not a list          -> InputShapeError, nothing touched
  - record not an object, or no ship code and no name -> skipped, counted in total
  - no catalog match            -> provisional stub, never an error
  - unrecognised insurance text -> 'unknown' tier, never an error
  - commit failure              -> rolled back, PersistenceError, prior fleet intact
"""

import hashlib
import logging
import sqlite3
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Set, Tuple

from pydantic import BaseModel, ValidationError, field_validator, model_validator

import catalog_repository
from constants import (
    HANGAR_SOURCE_SETTING,
    HANGARXPLOR_SOURCE,
    INSURANCE_LIFETIME_KEY,
    INSURANCE_MARKERS,
    INSURANCE_UNKNOWN_KEY,
    LAST_IMPORT_SETTING,
)
from match_service import CatalogSnapshot, resolve_slug
from slug_service import slug_candidates, slug_from_name, slug_from_ship_code

logger = logging.getLogger(__name__)


class InputShapeError(ValueError):
    """Import payload is not a list of records."""


class PersistenceError(RuntimeError):
    """The fleet replacement batch could not be committed."""


class ImportInProgressError(RuntimeError):
    """Another import for the same user has not finished yet."""


# ── Input records ──────────────────────────────────────────

class ImportRecord(BaseModel):
    ship_code: str = ""
    name: str = ""
    lookup: Optional[str] = None
    insurance: Optional[str] = None
    lti: bool = False
    warbond: bool = False
    pledge_id: Optional[str] = None
    pledge_name: Optional[str] = None
    pledge_cost: Optional[str] = None
    pledge_date: Optional[str] = None
    ship_name: Optional[str] = None

    @field_validator("pledge_id", "pledge_name", "pledge_cost", "pledge_date", mode="before")
    @classmethod
    def _pass_through_text(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return str(value)

    @field_validator("ship_code", "name", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @model_validator(mode="after")
    def _require_identity(self) -> "ImportRecord":
        if not self.ship_code.strip() and not self.name.strip():
            raise ValueError("record needs a ship_code or a name")
        return self

    @property
    def display_name(self) -> str:
        return self.name or self.ship_code


def parse_import_payload(payload: Any) -> Tuple[List[ImportRecord], int]:
    """Validate the top-level shape and each record.

    Returns the structurally valid records and the input record count.
    """
    if not isinstance(payload, list):
        raise InputShapeError("Expected a JSON array of hangar records")

    records: List[ImportRecord] = []
    for index, raw in enumerate(payload):
        if not isinstance(raw, dict):
            logger.warning("Skipping hangar record %d: not an object", index)
            continue
        try:
            records.append(ImportRecord.model_validate(raw))
        except ValidationError as exc:
            logger.warning("Skipping hangar record %d: %s", index, exc.errors(include_url=False))
    return records, len(payload)


# ── Attribute classification ───────────────────────────────

def classify_insurance(descriptor: Optional[str], lti: bool) -> str:
    """Map an insurance description to an insurance_types key.

    The lifetime flag always wins. Otherwise markers are tested longest first.
    """
    if lti:
        return INSURANCE_LIFETIME_KEY
    text = str(descriptor or "").lower()
    for markers, key in INSURANCE_MARKERS:
        if any(marker in text for marker in markers):
            return key
    return INSURANCE_UNKNOWN_KEY


def detect_custom_name(nickname: Optional[str], ship_code: str, display_name: str) -> Tuple[bool, str]:
    """Decide whether a hangar nickname is a user-chosen name.

    A nickname that is really the stock name under different casing or
    spacing is not custom. Returns (is_custom, name_to_store).
    """
    if not nickname:
        return False, ""
    nick_lower = nickname.lower()
    name_lower = str(display_name or "").lower()

    if slug_from_name(nickname) in str(ship_code or "").lower():
        return False, ""
    if nick_lower in name_lower or name_lower in nick_lower:
        return False, ""
    return True, nickname


# ── Stub registration ──────────────────────────────────────

class StubRegistrar:
    """Collects provisional catalog rows for unmatched records.

    One stub per slug per batch; the first display name seen is kept.
    """

    def __init__(self) -> None:
        self._pending: Dict[str, str] = {}

    def register(self, slug: str, name: str) -> bool:
        if not slug:
            raise ValueError("Provisional vehicles need a non-empty slug")
        if slug in self._pending:
            return False
        self._pending[slug] = name
        return True

    @property
    def pending(self) -> Dict[str, str]:
        return dict(self._pending)

    def flush(self, conn: sqlite3.Connection) -> int:
        """Upsert every queued stub and commit. Returns the number written."""
        if not self._pending:
            return 0
        now = time.time()
        try:
            for slug, name in self._pending.items():
                catalog_repository.upsert_stub_vehicle(conn, slug, name, now=now)
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise PersistenceError(f"Failed to register provisional vehicles: {exc}") from exc
        for slug, name in self._pending.items():
            logger.info("Registered provisional vehicle %s (%s)", slug, name)
        count = len(self._pending)
        self._pending.clear()
        return count


# ── Resolution ─────────────────────────────────────────────

@dataclass(frozen=True)
class ResolvedEntry:
    slug: str
    insurance_key: str
    warbond: bool
    custom_name: str
    pledge_id: Optional[str]
    pledge_name: Optional[str]
    pledge_cost: Optional[str]
    pledge_date: Optional[str]
    stubbed: bool = False


def fallback_slug(record: ImportRecord) -> str:
    """Slug for a provisional vehicle. Never empty.

    Codes and names with no ASCII letters or digits (e.g. "日本号") get a
    stable digest of code and name instead.
    """
    slug = slug_from_ship_code(record.ship_code) or slug_from_name(record.display_name)
    if slug:
        return slug
    digest = hashlib.sha1(f"{record.ship_code}|{record.name}".encode("utf-8")).hexdigest()[:12]
    return f"vehicle-{digest}"


def resolve_record(record: ImportRecord, catalog: CatalogSnapshot, registrar: StubRegistrar) -> ResolvedEntry:
    display_name = record.display_name
    candidates = slug_candidates(record.ship_code, record.name, record.lookup)
    slug = resolve_slug(candidates, record.name, catalog)
    stubbed = False
    if not slug:
        slug = fallback_slug(record)
        registrar.register(slug, display_name)
        stubbed = True

    _, custom_name = detect_custom_name(record.ship_name, record.ship_code, display_name)
    return ResolvedEntry(
        slug=slug,
        insurance_key=classify_insurance(record.insurance, record.lti),
        warbond=record.warbond,
        custom_name=custom_name,
        pledge_id=record.pledge_id or None,
        pledge_name=record.pledge_name or None,
        pledge_cost=record.pledge_cost or None,
        pledge_date=record.pledge_date or None,
        stubbed=stubbed,
    )


def resolve_records(
    records: Sequence[ImportRecord],
    catalog: CatalogSnapshot,
    registrar: StubRegistrar,
) -> List[ResolvedEntry]:
    return [resolve_record(record, catalog, registrar) for record in records]


# ── Reconciliation ─────────────────────────────────────────

_DELETE_FLEET_SQL = "DELETE FROM user_fleet WHERE user_id=?"
_INSERT_FLEET_SQL = """
    INSERT INTO user_fleet
      (user_id, vehicle_id, insurance_type_id, warbond, is_loaner,
       pledge_id, pledge_name, pledge_cost, pledge_date, custom_name, imported_at)
    VALUES (?, ?, ?, ?, 0, ?, ?, ?, ?, ?, ?)
"""
_UPSERT_SETTING_SQL = """
    INSERT INTO app_settings (key,value) VALUES (?,?)
    ON CONFLICT(key) DO UPDATE SET value=excluded.value
"""


def build_fleet_statements(
    user_id: int,
    entries: Sequence[ResolvedEntry],
    vehicle_ids: Dict[str, int],
    insurance_ids: Dict[str, int],
    *,
    now: float,
) -> List[Tuple[str, Tuple[Any, ...]]]:
    """One delete of the user's fleet, one insert per entry, then bookkeeping."""
    statements: List[Tuple[str, Tuple[Any, ...]]] = [(_DELETE_FLEET_SQL, (user_id,))]
    for entry in entries:
        vehicle_id = vehicle_ids.get(entry.slug)
        if vehicle_id is None:
            raise PersistenceError(f"Vehicle {entry.slug!r} missing from catalog after stub registration")
        statements.append(
            (
                _INSERT_FLEET_SQL,
                (
                    user_id,
                    vehicle_id,
                    insurance_ids.get(entry.insurance_key),
                    int(entry.warbond),
                    entry.pledge_id,
                    entry.pledge_name,
                    entry.pledge_cost,
                    entry.pledge_date,
                    entry.custom_name or None,
                    now,
                ),
            )
        )
    statements.append((_UPSERT_SETTING_SQL, (HANGAR_SOURCE_SETTING, HANGARXPLOR_SOURCE)))
    statements.append((_UPSERT_SETTING_SQL, (LAST_IMPORT_SETTING, repr(now))))
    return statements


def commit_fleet_batch(conn: sqlite3.Connection, statements: Sequence[Tuple[str, Tuple[Any, ...]]]) -> None:
    """Run the statements as one transaction; roll everything back on failure."""
    try:
        conn.execute("BEGIN IMMEDIATE")
    except sqlite3.Error as exc:
        raise PersistenceError(f"Could not start fleet replacement: {exc}") from exc
    try:
        for sql, params in statements:
            conn.execute(sql, params)
        conn.commit()
    except sqlite3.Error as exc:
        conn.rollback()
        logger.exception("Fleet replacement failed; previous fleet kept")
        raise PersistenceError(f"Fleet replacement failed: {exc}") from exc


def reconcile_fleet(conn: sqlite3.Connection, user_id: int, payload: Any) -> Dict[str, Any]:
    """Replace the user's fleet with the resolved form of an import payload."""
    records, total = parse_import_payload(payload)

    catalog = CatalogSnapshot.load(conn)
    registrar = StubRegistrar()
    entries = resolve_records(records, catalog, registrar)

    stubs = registrar.flush(conn)

    try:
        vehicle_ids = catalog_repository.vehicle_ids_by_slug(conn, (e.slug for e in entries))
        insurance_ids = {key: int(row["id"]) for key, row in catalog_repository.load_insurance_types(conn).items()}
    except sqlite3.Error as exc:
        raise PersistenceError(f"Failed to load reference data: {exc}") from exc

    statements = build_fleet_statements(user_id, entries, vehicle_ids, insurance_ids, now=time.time())
    commit_fleet_batch(conn, statements)

    imported = len(entries)
    logger.info(
        "Hangar import complete for user %s: %d/%d imported, %d provisional vehicles registered",
        user_id,
        imported,
        total,
        stubs,
    )
    return {
        "imported": imported,
        "total": total,
        "message": "Import complete",
    }


# ── Per-user serialization ─────────────────────────────────

_ACTIVE_IMPORTS: Set[int] = set()
_ACTIVE_IMPORTS_GUARD = threading.Lock()


@contextmanager
def user_import_lock(user_id: int) -> Iterator[None]:
    """Reject an import while another one for the same user is running."""
    with _ACTIVE_IMPORTS_GUARD:
        if user_id in _ACTIVE_IMPORTS:
            raise ImportInProgressError(f"An import is already running for user {user_id}")
        _ACTIVE_IMPORTS.add(user_id)
    try:
        yield
    finally:
        with _ACTIVE_IMPORTS_GUARD:
            _ACTIVE_IMPORTS.discard(user_id)
