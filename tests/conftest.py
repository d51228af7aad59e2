from datetime import datetime, timedelta, timezone

import pytest

from core.ids import IdGenerator
from core.transactions import TransactionProcessor
from db.store import InventoryStore, StoreState
from schemas.inventory import Item
from schemas.partners import Partner

T0 = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


class SequentialIds(IdGenerator):
    def __init__(self):
        self.n = 0

    def new(self, prefix: str) -> str:
        self.n += 1
        return f"{prefix}-{self.n}"


class TickingClock:
    """Each call is one minute after the previous one."""

    def __init__(self, start: datetime = T0):
        self.current = start

    def __call__(self) -> datetime:
        self.current = self.current + timedelta(minutes=1)
        return self.current


def seed_state() -> StoreState:
    return StoreState(
        partners=(
            Partner(id="P1", name="Plant A", role="CUSTOMER"),
            Partner(id="S1", name="HQ Supply", role="SUPPLIER"),
        ),
        items=(
            Item(id="tank-9", name="Tank-9in", category="TANK", quantity=0, safety_stock=2, price=100, last_updated=T0),
            Item(id="widget-a", name="Widget-A", category="Parts", quantity=10, safety_stock=3, price=2.5, last_updated=T0),
        ),
    )


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def store():
    return InventoryStore(seed_state())


@pytest.fixture
def processor(store, clock):
    return TransactionProcessor(store, ids=SequentialIds(), clock=clock)


@pytest.fixture
def quantity_of(processor):
    def _quantity(item_id: str) -> int:
        return processor.reconciled_item(item_id).quantity
    return _quantity
