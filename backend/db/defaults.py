"""Built-in starting data, used per slot when durable storage has nothing usable."""

from datetime import datetime, timezone

from schemas.inventory import Asset, Item, LogEntry
from schemas.partners import Partner

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


DEFAULT_ITEMS: tuple[Item, ...] = (
    Item(id="item-tank-9", name="9-inch pure tank", category="TANK", quantity=0, safety_stock=5, price=85000, last_updated=_EPOCH),
    Item(id="item-tank-12", name="12-inch pure tank", category="TANK", quantity=0, safety_stock=5, price=120000, last_updated=_EPOCH),
    Item(id="item-filter-5", name="5-micron sediment filter", category="Consumables", quantity=40, safety_stock=10, price=4500, last_updated=_EPOCH),
    Item(id="item-resin-25", name="Mixed-bed resin 25L", category="Consumables", quantity=12, safety_stock=4, price=98000, last_updated=_EPOCH),
)

DEFAULT_PARTNERS: tuple[Partner, ...] = (
    Partner(id="pt-hq-supply", name="HQ Supply", role="SUPPLIER", contact="02-000-0000"),
    Partner(id="pt-plant-a", name="Plant A", role="CUSTOMER"),
)

DEFAULT_LOGS: tuple[LogEntry, ...] = ()

DEFAULT_ASSETS: tuple[Asset, ...] = ()
