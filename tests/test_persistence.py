import asyncio

import pytest

from db.database import make_engine
from db.defaults import DEFAULT_ITEMS, DEFAULT_PARTNERS
from db.persistence import SLOT_KEYS, PersistenceObserver, SlotStorage, decode_slots, encode_slots
from db.store import InventoryStore

from conftest import seed_state


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'slots.db'}"


def test_missing_slots_fall_back_to_defaults():
    state = decode_slots({})
    assert state.items == DEFAULT_ITEMS
    assert state.partners == DEFAULT_PARTNERS
    assert state.logs == ()
    assert state.assets == ()


def test_unreadable_slot_only_resets_that_slot():
    raw = encode_slots(seed_state())
    raw[SLOT_KEYS["items"]] = "{broken"
    state = decode_slots(raw)
    assert state.items == DEFAULT_ITEMS
    assert state.partners == seed_state().partners


def test_slots_are_camel_case_json():
    raw = encode_slots(seed_state())
    assert set(raw) == set(SLOT_KEYS.values())
    assert '"safetyStock"' in raw[SLOT_KEYS["items"]]


def test_save_and_load_round_trip(db_url, processor, store):
    processor.register_asset("tank-9", "SN-1")
    processor.process_transaction("widget-a", "OUT", 2, "P1")

    async def scenario():
        storage = SlotStorage(make_engine(db_url))
        try:
            await storage.create_tables()
            await storage.save(store.state)
            await storage.save(store.state)  # second write updates in place
            return await storage.load()
        finally:
            await storage.engine.dispose()

    loaded = asyncio.run(scenario())
    for name in ("items", "logs", "partners", "assets"):
        assert getattr(loaded, name) == getattr(store.state, name)


def test_empty_database_loads_defaults(db_url):
    async def scenario():
        storage = SlotStorage(make_engine(db_url))
        try:
            await storage.create_tables()
            return await storage.load()
        finally:
            await storage.engine.dispose()

    assert asyncio.run(scenario()).items == DEFAULT_ITEMS


class RecordingStorage:
    def __init__(self):
        self.saved = []

    async def save(self, state):
        await asyncio.sleep(0)
        self.saved.append(state.revision)


def test_observer_writes_latest_state_in_background():
    async def scenario():
        storage = RecordingStorage()
        observer = PersistenceObserver(storage)
        store = InventoryStore(seed_state())
        store.subscribe(observer)
        for _ in range(3):
            store.commit(logs=())
        await observer.flush()
        return storage.saved

    saved = asyncio.run(scenario())
    # Commits made while a write is queued collapse into the latest one
    assert saved[-1] == 3
    assert saved == sorted(saved)


def test_observer_without_loop_waits_for_flush():
    storage = RecordingStorage()
    observer = PersistenceObserver(storage)
    store = InventoryStore(seed_state())
    store.subscribe(observer)

    store.commit(logs=())
    assert observer.pending
    assert storage.saved == []

    asyncio.run(observer.flush())
    assert storage.saved == [1]
    assert not observer.pending


def test_failing_listener_does_not_undo_commit():
    store = InventoryStore(seed_state())

    def boom(state):
        raise RuntimeError("disk full")

    store.subscribe(boom)
    store.commit(logs=())
    assert store.revision == 1


def test_unsubscribe():
    store = InventoryStore(seed_state())
    seen = []
    unsubscribe = store.subscribe(seen.append)
    store.commit(logs=())
    unsubscribe()
    store.commit(logs=())
    assert [s.revision for s in seen] == [1]


def test_sparse_items_slot_is_kept():
    raw = {SLOT_KEYS["items"]: '[{"id": "1717", "name": "Valve", "price": null, "lastUpdated": "2024-04-01T00:00:00Z"}]'}
    state = decode_slots(raw)
    assert [i.id for i in state.items] == ["1717"]
    assert state.items[0].price == 0


class GatedStorage:
    def __init__(self):
        self.saved = []
        self.active = 0
        self.max_active = 0
        self.gate = None

    async def save(self, state):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        await self.gate.wait()
        self.saved.append(state.revision)
        self.active -= 1


def test_flush_never_writes_in_parallel():
    storage = GatedStorage()
    observer = PersistenceObserver(storage)
    store = InventoryStore(seed_state())
    store.subscribe(observer)
    store.commit(logs=())  # no loop yet, stays pending

    async def scenario():
        storage.gate = asyncio.Event()
        flushing = asyncio.ensure_future(observer.flush())
        for _ in range(3):
            await asyncio.sleep(0)
        store.commit(logs=())  # lands while revision 1 is being written
        for _ in range(3):
            await asyncio.sleep(0)
        storage.gate.set()
        await flushing

    asyncio.run(scenario())
    assert storage.max_active == 1
    assert storage.saved == [1, 2]
    assert not observer.pending
