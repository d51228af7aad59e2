"""
Restore a backup file (as produced by GET /backup/export) into durable storage.

Replaces all four storage slots at once. Stop the API first; a running server
keeps its in-memory state and would overwrite the restore on its next change.

Run:
- inside backend/: `python scripts/restore_backup.py smartinven_backup_2024-05-01.json`
- add `--dry-run` to only validate the file
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Allow running from repo root by ensuring `backend/` is on sys.path
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from core import backup  # noqa: E402
from db.persistence import SlotStorage  # noqa: E402
from db.store import InventoryStore  # noqa: E402


async def restore(path: Path, *, dry_run: bool) -> int:
    parsed = backup.parse_snapshot(path.read_bytes())
    if not parsed.ok:
        print(f"[restore_backup] rejected: {parsed.rejection.message}")
        return 1

    snap = parsed.value
    print(
        f"[restore_backup] version={snap.version or '?'} items={len(snap.items)} logs={len(snap.logs)} "
        f"partners={len(snap.partners)} assets={len(snap.assets)}"
    )
    if dry_run:
        return 0

    storage = SlotStorage()
    try:
        await storage.create_tables()
        store = InventoryStore()
        backup.apply_snapshot(store, snap)
        await storage.save(store.state)
    finally:
        await storage.engine.dispose()
    print("[restore_backup] done.")
    return 0


if __name__ == "__main__":
    p = argparse.ArgumentParser()
    p.add_argument("path", type=Path, help="Backup JSON file")
    p.add_argument("--dry-run", action="store_true", help="Validate only, do not write")
    args = p.parse_args()
    raise SystemExit(asyncio.run(restore(args.path, dry_run=args.dry_run)))
