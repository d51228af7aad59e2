"""
Durable storage for the inventory store.

The four collections live in four keyed slots of the ``storage_slots`` table,
each holding the JSON list of its records. Slots are written together on every
committed change and read together once at startup. A missing or unreadable
slot falls back to the built-in default data for that slot only.
"""

import asyncio
import logging
from typing import Dict, Optional

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from db.database import StorageSlot, create_db_and_tables, engine
from db.defaults import DEFAULT_ASSETS, DEFAULT_ITEMS, DEFAULT_LOGS, DEFAULT_PARTNERS
from db.store import StoreState
from schemas.inventory import Asset, Item, LogEntry
from schemas.partners import Partner

logger = logging.getLogger(__name__)


SLOT_KEYS: Dict[str, str] = {
    "items": "inventory_items_v4",
    "logs": "inventory_logs_v4",
    "partners": "inventory_partners_v4",
    "assets": "inventory_assets_v4",
}

_ADAPTERS = {
    "items": TypeAdapter(list[Item]),
    "logs": TypeAdapter(list[LogEntry]),
    "partners": TypeAdapter(list[Partner]),
    "assets": TypeAdapter(list[Asset]),
}

_DEFAULTS = {
    "items": DEFAULT_ITEMS,
    "logs": DEFAULT_LOGS,
    "partners": DEFAULT_PARTNERS,
    "assets": DEFAULT_ASSETS,
}


def encode_slots(state: StoreState) -> Dict[str, str]:
    return {
        SLOT_KEYS[name]: adapter.dump_json(list(getattr(state, name)), by_alias=True).decode()
        for name, adapter in _ADAPTERS.items()
    }


def decode_slots(raw: Dict[str, str]) -> StoreState:
    collections = {}
    for name, adapter in _ADAPTERS.items():
        text = raw.get(SLOT_KEYS[name])
        if text is None:
            collections[name] = _DEFAULTS[name]
            continue
        try:
            collections[name] = tuple(adapter.validate_json(text))
        except ValidationError as e:
            logger.warning("slot %s unreadable, using defaults: %s", SLOT_KEYS[name], e.errors()[0]["msg"])
            collections[name] = _DEFAULTS[name]
    return StoreState(**collections)


class SlotStorage:
    def __init__(self, bind: AsyncEngine = engine):
        self.engine = bind
        self.session_maker = async_sessionmaker(bind, expire_on_commit=False)

    async def create_tables(self) -> None:
        await create_db_and_tables(self.engine)

    async def load(self) -> StoreState:
        async with self.session_maker() as session:
            res = await session.execute(select(StorageSlot).where(StorageSlot.key.in_(SLOT_KEYS.values())))
            raw = {slot.key: slot.value for slot in res.scalars().all()}
        return decode_slots(raw)

    async def save(self, state: StoreState) -> None:
        async with self.session_maker() as session:
            for key, value in encode_slots(state).items():
                await session.merge(StorageSlot(key=key, value=value))
            await session.commit()


class PersistenceObserver:
    """
    Store subscriber that writes each committed state in the background.

    Commits only record the latest state and start a writer task when none is
    running; the writer keeps going until nothing is pending, so a burst of
    commits ends with the last one on disk. Without a running event loop the
    state stays pending until ``flush`` is awaited.
    """

    def __init__(self, storage: SlotStorage):
        self.storage = storage
        self._pending: Optional[StoreState] = None
        self._task: Optional[asyncio.Task] = None

    def __call__(self, state: StoreState) -> None:
        self._pending = state
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        if self._task is None or self._task.done():
            self._task = loop.create_task(self._drain())

    @property
    def pending(self) -> bool:
        return self._pending is not None

    async def _drain(self) -> None:
        while self._pending is not None:
            state, self._pending = self._pending, None
            try:
                await self.storage.save(state)
            except Exception:
                logger.exception("saving revision %s failed", state.revision)

    async def flush(self) -> None:
        """Wait until the latest committed state is on disk, one writer at a time."""
        loop = asyncio.get_running_loop()
        while True:
            task = self._task
            if task is None or task.done() or task.get_loop() is not loop:
                if self._pending is None:
                    return
                task = self._task = loop.create_task(self._drain())
            await task
