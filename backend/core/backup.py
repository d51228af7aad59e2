"""
Backup codec: full-state export/import as a versioned JSON snapshot.

The codec never asks for confirmation; callers gate ``import_snapshot`` (the
HTTP layer only reaches it through a delete/import plan).
"""

import logging
from datetime import datetime
from typing import Optional, Union

from pydantic import ValidationError

from core.config import settings
from core.errors import Outcome, RejectionCode
from core.ids import Clock, utc_now
from db.store import InventoryStore, StoreState
from schemas.backup import BackupSnapshot

logger = logging.getLogger(__name__)


def build_snapshot(state: StoreState, *, version: Optional[str] = None, now: Clock = utc_now) -> BackupSnapshot:
    return BackupSnapshot(
        items=list(state.items),
        logs=list(state.logs),
        partners=list(state.partners),
        assets=list(state.assets),
        version=version or settings.backup_version,
        timestamp=now(),
    )


def export_snapshot(state: StoreState, *, version: Optional[str] = None, now: Clock = utc_now) -> str:
    snapshot = build_snapshot(state, version=version, now=now)
    return snapshot.model_dump_json(by_alias=True, indent=2)


def backup_filename(now: Optional[datetime] = None) -> str:
    day = (now or utc_now()).date().isoformat()
    return f"smartinven_backup_{day}.json"


def _describe(err: ValidationError) -> str:
    missing = [
        ".".join(str(p) for p in e["loc"])
        for e in err.errors()
        if e["type"] == "missing" and len(e["loc"]) == 1
    ]
    if missing:
        return f"backup is missing required collections: {', '.join(missing)}"
    if any(e["type"] == "json_invalid" for e in err.errors()):
        return "backup is not valid JSON"
    first = err.errors()[0]
    where = ".".join(str(p) for p in first["loc"]) or "<root>"
    return f"invalid backup content at {where}: {first['msg']}"


def parse_snapshot(blob: Union[str, bytes]) -> Outcome[BackupSnapshot]:
    try:
        snapshot = BackupSnapshot.model_validate_json(blob)
    except ValidationError as e:
        message = _describe(e)
        logger.warning("backup rejected: %s", message)
        return Outcome.reject(RejectionCode.IMPORT_FORMAT, message)
    return Outcome.success(snapshot)


def apply_snapshot(store: InventoryStore, snapshot: BackupSnapshot) -> StoreState:
    """Replace all four collections in one commit."""
    state = store.commit(
        items=snapshot.items,
        logs=snapshot.logs,
        partners=snapshot.partners,
        assets=snapshot.assets,
    )
    logger.info(
        "backup %s restored: %d items, %d logs, %d partners, %d assets",
        snapshot.version or "?",
        len(snapshot.items),
        len(snapshot.logs),
        len(snapshot.partners),
        len(snapshot.assets),
    )
    return state


def import_snapshot(store: InventoryStore, blob: Union[str, bytes]) -> Outcome[BackupSnapshot]:
    parsed = parse_snapshot(blob)
    if not parsed.ok:
        return parsed
    apply_snapshot(store, parsed.value)
    return parsed
