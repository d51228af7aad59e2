import argparse
import asyncio
import sys
from pathlib import Path

"""
Seed demo signal numbers and a few movements on top of the default catalog.

Run:
- inside backend/: `python scripts/seed_demo_data.py`
- `--tanks N` registers N signal numbers per tank item (default 5)
"""

# Allow running from repo root by ensuring `backend/` is on sys.path
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from core.reconcile import is_serialized  # noqa: E402
from core.transactions import TransactionProcessor  # noqa: E402
from db.persistence import SlotStorage  # noqa: E402
from db.store import InventoryStore  # noqa: E402


async def seed(tanks: int) -> None:
    storage = SlotStorage()
    try:
        await storage.create_tables()
        store = InventoryStore(await storage.load())
        processor = TransactionProcessor(store)
        partners = list(store.state.partners)
        supplier = partners[0].id if partners else None
        customer = partners[-1].id if partners else None

        registered = 0
        for item in list(store.state.items):
            if not is_serialized(item):
                if supplier:
                    processor.process_transaction(item.id, "IN", 10, supplier, "Demo restock")
                continue
            prefix = "".join(ch for ch in item.id.upper() if ch.isalnum())[-6:]
            for n in range(1, tanks + 1):
                out = processor.register_asset(item.id, f"{prefix}-{n:04d}")
                if out.ok:
                    registered += 1
            first = store.state.available_asset_with_signal(f"{prefix}-0001", item_id=item.id)
            if first and customer:
                processor.process_transaction(item.id, "OUT", 1, customer, "Demo shipment", asset_id=first.id)

        await storage.save(store.state)
        print(f"[seed_demo_data] registered_assets={registered} log_entries={len(store.state.logs)}")
    finally:
        await storage.engine.dispose()


if __name__ == "__main__":
    p = argparse.ArgumentParser()
    p.add_argument("--tanks", type=int, default=5, help="Signal numbers to register per serialized item")
    args = p.parse_args()
    asyncio.run(seed(args.tanks))
