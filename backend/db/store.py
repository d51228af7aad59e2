"""
In-memory inventory store.

Holds the committed state of the four collections (partners, items, assets,
logs) as one immutable value. Every change is applied with a single
``commit`` that swaps the whole value, so readers never see half of an
operation. Subscribers (persistence) are notified after each commit.
"""

import logging
from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Optional, Tuple

from schemas.inventory import Asset, Item, LogEntry
from schemas.partners import Partner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreState:
    partners: Tuple[Partner, ...] = ()
    items: Tuple[Item, ...] = ()
    assets: Tuple[Asset, ...] = ()
    logs: Tuple[LogEntry, ...] = ()  # newest first
    revision: int = 0

    def item(self, item_id: str) -> Optional[Item]:
        return next((i for i in self.items if i.id == item_id), None)

    def partner(self, partner_id: Optional[str]) -> Optional[Partner]:
        if not partner_id:
            return None
        return next((p for p in self.partners if p.id == partner_id), None)

    def asset(self, asset_id: Optional[str]) -> Optional[Asset]:
        if not asset_id:
            return None
        return next((a for a in self.assets if a.id == asset_id), None)

    def available_asset_with_signal(self, signal_number: str, item_id: Optional[str] = None) -> Optional[Asset]:
        for a in self.assets:
            if a.signal_number != signal_number or a.status != "AVAILABLE":
                continue
            if item_id is not None and a.item_id != item_id:
                continue
            return a
        return None

    def assets_of(self, item_id: str) -> List[Asset]:
        return [a for a in self.assets if a.item_id == item_id]


Listener = Callable[[StoreState], None]


class InventoryStore:
    def __init__(self, state: Optional[StoreState] = None):
        self._state = state or StoreState()
        self._listeners: List[Listener] = []

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def revision(self) -> int:
        return self._state.revision

    def commit(
        self,
        *,
        partners: Optional[Iterable[Partner]] = None,
        items: Optional[Iterable[Item]] = None,
        assets: Optional[Iterable[Asset]] = None,
        logs: Optional[Iterable[LogEntry]] = None,
    ) -> StoreState:
        """Replace any subset of the collections in one step."""
        changes = {}
        if partners is not None:
            changes["partners"] = tuple(partners)
        if items is not None:
            changes["items"] = tuple(items)
        if assets is not None:
            changes["assets"] = tuple(assets)
        if logs is not None:
            changes["logs"] = tuple(logs)

        new_state = replace(self._state, revision=self._state.revision + 1, **changes)
        self._state = new_state

        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception:
                logger.exception("store listener %r failed at revision %s", listener, new_state.revision)
        return new_state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe
