"""
Transaction processor: the only place that writes to more than one collection.

Every operation validates first and then applies all of its changes with one
``InventoryStore.commit``. Business events (inbound, outbound, registration,
asset deletion) add exactly one ledger entry; rejected operations change
nothing.

Destructive operations (asset deletion, item deletion, snapshot import) are
also offered as plan/commit pairs: ``plan_*`` describes the effect without
touching state and ``commit_plan`` executes it once the caller has obtained
consent.
"""

import logging
from collections import OrderedDict
from typing import Any, Dict, List, Optional, Tuple, Union

from core import backup, ledger
from core.errors import Outcome, RejectionCode
from core.ids import Clock, IdGenerator, utc_now
from core.reconcile import asset_counts, is_serialized, reconcile
from db.store import InventoryStore
from schemas.backup import BackupSnapshot
from schemas.inventory import (
    Asset,
    DestructivePlan,
    Item,
    ItemCreate,
    ItemUpdate,
    LogEntry,
    TransactionType,
)
from schemas.partners import Partner, PartnerCreate, PartnerUpdate

logger = logging.getLogger(__name__)

TRANSACTION_TYPES = ("IN", "OUT")

# Unconfirmed plans kept per revision; older ones are dropped first
MAX_OPEN_PLANS = 32
# Tokens remembered after going stale so a late commit still reports STALE_PLAN
STALE_TOKEN_MEMORY = 256


def _replace(records, updated) -> List:
    return [updated if r.id == updated.id else r for r in records]


class TransactionProcessor:
    def __init__(
        self,
        store: InventoryStore,
        *,
        ids: Optional[IdGenerator] = None,
        clock: Clock = utc_now,
        serialized_categories=None,
    ):
        self.store = store
        self.ids = ids or IdGenerator()
        self.clock = clock
        self.serialized_categories = serialized_categories
        self._plans: "OrderedDict[str, Tuple[DestructivePlan, Optional[BackupSnapshot]]]" = OrderedDict()
        self._stale: "OrderedDict[str, None]" = OrderedDict()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def reconciled_items(self) -> List[Item]:
        state = self.store.state
        return reconcile(state.items, state.assets, self.serialized_categories)

    def reconciled_item(self, item_id: str) -> Optional[Item]:
        return next((i for i in self.reconciled_items() if i.id == item_id), None)

    def _serialized(self, item: Item) -> bool:
        return is_serialized(item, self.serialized_categories)

    # ------------------------------------------------------------------
    # Catalog and partner directory
    # ------------------------------------------------------------------

    def add_item(self, payload: ItemCreate) -> Outcome[Item]:
        item = Item(
            id=self.ids.new("item"),
            name=payload.name,
            category=payload.category,
            quantity=payload.quantity,
            safety_stock=payload.safety_stock,
            price=payload.price,
            last_updated=self.clock(),
        )
        self.store.commit(items=list(self.store.state.items) + [item])
        logger.info("item added: %s (%s, %s)", item.name, item.id, item.category)
        return Outcome.success(item)

    def update_item(self, item_id: str, payload: ItemUpdate) -> Outcome[Item]:
        state = self.store.state
        current = state.item(item_id)
        if not current:
            return Outcome.reject(RejectionCode.ITEM_NOT_FOUND, f"Item {item_id} not found")

        data = payload.model_dump(exclude_unset=True)
        data = {k: v for k, v in data.items() if v is not None}
        data["last_updated"] = self.clock()
        updated = current.model_copy(update=data)
        self.store.commit(items=_replace(state.items, updated))
        logger.info("item updated: %s (%s)", updated.name, updated.id)
        return Outcome.success(updated)

    def add_partner(self, payload: PartnerCreate) -> Outcome[Partner]:
        partner = Partner(id=self.ids.new("pt"), **payload.model_dump())
        self.store.commit(partners=list(self.store.state.partners) + [partner])
        logger.info("partner added: %s (%s)", partner.name, partner.id)
        return Outcome.success(partner)

    def update_partner(self, partner_id: str, payload: PartnerUpdate) -> Outcome[Partner]:
        state = self.store.state
        current = state.partner(partner_id)
        if not current:
            return Outcome.reject(RejectionCode.PARTNER_NOT_FOUND, f"Partner {partner_id} not found")

        data = payload.model_dump(exclude_unset=True)
        if data.get("name") is None:
            data.pop("name", None)
        if data.get("role") is None:
            data.pop("role", None)
        updated = current.model_copy(update=data)
        self.store.commit(partners=_replace(state.partners, updated))
        return Outcome.success(updated)

    def delete_partner(self, partner_id: str) -> Outcome[Partner]:
        # Assets and logs keep their partner reference and name
        state = self.store.state
        current = state.partner(partner_id)
        if not current:
            return Outcome.reject(RejectionCode.PARTNER_NOT_FOUND, f"Partner {partner_id} not found")
        self.store.commit(partners=[p for p in state.partners if p.id != partner_id])
        logger.info("partner deleted: %s (%s)", current.name, current.id)
        return Outcome.success(current)

    # ------------------------------------------------------------------
    # Inbound / outbound
    # ------------------------------------------------------------------

    def process_transaction(
        self,
        item_id: str,
        type: TransactionType,
        quantity: int,
        partner_id: Optional[str],
        note: Optional[str] = None,
        asset_id: Optional[str] = None,
    ) -> Outcome[LogEntry]:
        if type not in TRANSACTION_TYPES:
            return Outcome.reject(RejectionCode.INVALID_FIELD, f"Unknown transaction type {type!r}")
        state = self.store.state
        item = state.item(item_id)
        if not item:
            return Outcome.reject(RejectionCode.ITEM_NOT_FOUND, f"Item {item_id} not found")

        if not partner_id:
            return Outcome.reject(RejectionCode.PARTNER_REQUIRED, "A partner must be selected")
        partner = state.partner(partner_id)
        if not partner:
            return Outcome.reject(RejectionCode.PARTNER_NOT_FOUND, f"Partner {partner_id} not found")

        now = self.clock()
        assets = state.assets
        asset = None

        if self._serialized(item):
            if not asset_id:
                return Outcome.reject(RejectionCode.ASSET_REQUIRED, "Serialized items move one asset at a time")
            asset = state.asset(asset_id)
            if not asset:
                return Outcome.reject(RejectionCode.ASSET_NOT_FOUND, f"Asset {asset_id} not found")
            if asset.item_id != item.id:
                return Outcome.reject(
                    RejectionCode.ASSET_ITEM_MISMATCH,
                    f"Asset {asset.signal_number} does not belong to {item.name}",
                )
            if type == "OUT" and asset.status != "AVAILABLE":
                return Outcome.reject(
                    RejectionCode.ASSET_NOT_AVAILABLE,
                    f"Signal number {asset.signal_number} is not in stock",
                )
            if type == "IN":
                if asset.status == "AVAILABLE":
                    return Outcome.reject(
                        RejectionCode.ASSET_ALREADY_AVAILABLE,
                        f"Signal number {asset.signal_number} is already in stock",
                    )
                if state.available_asset_with_signal(asset.signal_number):
                    return Outcome.reject(
                        RejectionCode.DUPLICATE_SIGNAL,
                        f"Signal number {asset.signal_number} is already registered as available",
                    )

            quantity = 1
            asset = asset.model_copy(update={
                "status": "SHIPPED" if type == "OUT" else "AVAILABLE",
                "partner_id": partner.id,
            })
            assets = _replace(assets, asset)
            updated_item = item.model_copy(update={"last_updated": now})
        else:
            if asset_id:
                return Outcome.reject(RejectionCode.INVALID_FIELD, f"{item.name} is not tracked by signal number")
            if not isinstance(quantity, int) or quantity <= 0:
                return Outcome.reject(RejectionCode.INVALID_QUANTITY, "quantity must be > 0")
            delta = quantity if type == "IN" else -quantity
            updated_item = item.model_copy(update={"quantity": item.quantity + delta, "last_updated": now})
            if updated_item.quantity < 0:
                logger.warning(
                    "negative stock: %s (%s) now at %d",
                    item.name, item.id, updated_item.quantity,
                )

        entry = ledger.new_entry(
            entry_id=self.ids.new("log"),
            item_id=item.id,
            item=item,
            type=type,
            quantity=quantity,
            timestamp=now,
            partner=partner,
            asset_id=asset.id if asset else None,
            signal_number=asset.signal_number if asset else None,
            note=note,
        )
        self.store.commit(
            items=_replace(state.items, updated_item),
            assets=assets,
            logs=ledger.append(state.logs, entry),
        )
        logger.info(
            "stock %s: %s x%d partner=%s%s",
            type, item.name, quantity, partner.name,
            f" signal={asset.signal_number}" if asset else "",
        )
        return Outcome.success(entry)

    def process_scanned(
        self,
        item_id: str,
        type: TransactionType,
        signal_number: str,
        partner_id: Optional[str],
        note: Optional[str] = None,
    ) -> Outcome[LogEntry]:
        """Serialized transaction keyed by a scanned or typed signal number.

        Outbound ships the item's available unit with that number. Inbound
        returns a shipped unit of the item with that number when there is one,
        otherwise registers a new unit from the partner.
        """
        if type not in TRANSACTION_TYPES:
            return Outcome.reject(RejectionCode.INVALID_FIELD, f"Unknown transaction type {type!r}")
        state = self.store.state
        item = state.item(item_id)
        if not item:
            return Outcome.reject(RejectionCode.ITEM_NOT_FOUND, f"Item {item_id} not found")
        if not partner_id:
            return Outcome.reject(RejectionCode.PARTNER_REQUIRED, "A partner must be selected")
        if not self._serialized(item):
            return Outcome.reject(RejectionCode.NOT_SERIALIZED, f"{item.name} is not tracked by signal number")
        signal = (signal_number or "").strip()
        if not signal:
            return Outcome.reject(RejectionCode.SIGNAL_REQUIRED, "A signal number is required for serialized items")

        if type == "OUT":
            asset = state.available_asset_with_signal(signal, item_id=item.id)
            if not asset:
                return Outcome.reject(
                    RejectionCode.ASSET_NOT_AVAILABLE,
                    f"Signal number {signal} is not in stock for {item.name}",
                )
            return self.process_transaction(item.id, "OUT", 1, partner_id, note, asset_id=asset.id)

        returning = [
            a for a in state.assets_of(item.id)
            if a.signal_number == signal and a.status == "SHIPPED"
        ]
        if returning and not state.available_asset_with_signal(signal):
            latest = max(returning, key=lambda a: a.registered_at)
            return self.process_transaction(item.id, "IN", 1, partner_id, note, asset_id=latest.id)

        registered = self.register_asset(item.id, signal, partner_id)
        if not registered.ok:
            return Outcome(rejection=registered.rejection)
        return Outcome.success(self.store.state.logs[0])

    # ------------------------------------------------------------------
    # Asset life cycle
    # ------------------------------------------------------------------

    def register_asset(self, item_id: str, signal_number: str, partner_id: Optional[str] = None) -> Outcome[Asset]:
        state = self.store.state
        item = state.item(item_id)
        if not item:
            return Outcome.reject(RejectionCode.ITEM_NOT_FOUND, f"Item {item_id} not found")
        if not self._serialized(item):
            return Outcome.reject(RejectionCode.NOT_SERIALIZED, f"{item.name} is not tracked by signal number")

        signal = (signal_number or "").strip()
        if not signal:
            return Outcome.reject(RejectionCode.SIGNAL_REQUIRED, "A signal number is required")

        partner = None
        if partner_id:
            partner = state.partner(partner_id)
            if not partner:
                return Outcome.reject(RejectionCode.PARTNER_NOT_FOUND, f"Partner {partner_id} not found")

        if state.available_asset_with_signal(signal):
            return Outcome.reject(
                RejectionCode.DUPLICATE_SIGNAL,
                f"Signal number {signal} is already registered as available",
            )

        now = self.clock()
        asset = Asset(
            id=self.ids.new("as"),
            item_id=item.id,
            signal_number=signal,
            status="AVAILABLE",
            partner_id=partner.id if partner else None,
            registered_at=now,
        )
        entry = ledger.new_entry(
            entry_id=self.ids.new("log"),
            item_id=item.id,
            item=item,
            type="IN",
            quantity=1,
            timestamp=now,
            partner=partner,
            asset_id=asset.id,
            signal_number=signal,
            note=ledger.INBOUND_REGISTRATION_NOTE if partner else ledger.BASELINE_REGISTRATION_NOTE,
        )
        self.store.commit(
            items=_replace(state.items, item.model_copy(update={"last_updated": now})),
            assets=list(state.assets) + [asset],
            logs=ledger.append(state.logs, entry),
        )
        logger.info("asset registered: %s signal=%s (%s)", item.name, signal, asset.id)
        return Outcome.success(asset)

    def delete_asset(self, asset_id: str) -> Outcome[LogEntry]:
        state = self.store.state
        asset = state.asset(asset_id)
        if not asset:
            return Outcome.reject(RejectionCode.ASSET_NOT_FOUND, f"Asset {asset_id} not found")

        entry = ledger.new_entry(
            entry_id=self.ids.new("log"),
            item_id=asset.item_id,
            item=state.item(asset.item_id),
            type="OUT",
            quantity=1,
            timestamp=self.clock(),
            asset_id=asset.id,
            signal_number=asset.signal_number,
            note=ledger.data_correction_note(asset.signal_number),
        )
        self.store.commit(
            assets=[a for a in state.assets if a.id != asset.id],
            logs=ledger.append(state.logs, entry),
        )
        logger.info("asset deleted: signal=%s (%s, was %s)", asset.signal_number, asset.id, asset.status)
        return Outcome.success(entry)

    def delete_item(self, item_id: str) -> Outcome[Item]:
        state = self.store.state
        item = state.item(item_id)
        if not item:
            return Outcome.reject(RejectionCode.ITEM_NOT_FOUND, f"Item {item_id} not found")

        removed = len(state.assets_of(item.id))
        self.store.commit(
            items=[i for i in state.items if i.id != item.id],
            assets=[a for a in state.assets if a.item_id != item.id],
        )
        logger.info("item deleted: %s (%s), %d assets removed", item.name, item.id, removed)
        return Outcome.success(item)

    def import_snapshot(self, blob: Union[str, bytes]) -> Outcome[BackupSnapshot]:
        outcome = backup.import_snapshot(self.store, blob)
        if outcome.ok:
            self._evict_stale()
        return outcome

    # ------------------------------------------------------------------
    # Two-phase destructive operations
    # ------------------------------------------------------------------

    def _evict_stale(self) -> None:
        revision = self.store.revision
        for token in [t for t, (plan, _) in self._plans.items() if plan.revision != revision]:
            del self._plans[token]
            self._stale[token] = None
        while len(self._stale) > STALE_TOKEN_MEMORY:
            self._stale.popitem(last=False)

    def _issue(
        self,
        action,
        target_id: Optional[str],
        summary: str,
        effects: Dict[str, int],
        payload: Optional[BackupSnapshot] = None,
    ) -> DestructivePlan:
        plan = DestructivePlan(
            token=self.ids.new("plan"),
            action=action,
            target_id=target_id,
            summary=summary,
            effects=effects,
            revision=self.store.revision,
        )
        self._evict_stale()
        self._plans[plan.token] = (plan, payload)
        while len(self._plans) > MAX_OPEN_PLANS:
            dropped, _ = self._plans.popitem(last=False)
            logger.info("unconfirmed plan %s dropped", dropped)
        return plan

    def plan_delete_asset(self, asset_id: str) -> Outcome[DestructivePlan]:
        state = self.store.state
        asset = state.asset(asset_id)
        if not asset:
            return Outcome.reject(RejectionCode.ASSET_NOT_FOUND, f"Asset {asset_id} not found")

        available = asset.status == "AVAILABLE"
        summary = f"Permanently delete signal number {asset.signal_number}. This cannot be undone."
        if available:
            summary += " The unit is removed from available stock immediately."
        return Outcome.success(self._issue(
            "DELETE_ASSET",
            asset.id,
            summary,
            {"assetsRemoved": 1, "availableChange": -1 if available else 0, "logEntriesAdded": 1},
        ))

    def plan_delete_item(self, item_id: str) -> Outcome[DestructivePlan]:
        state = self.store.state
        item = state.item(item_id)
        if not item:
            return Outcome.reject(RejectionCode.ITEM_NOT_FOUND, f"Item {item_id} not found")

        counts = asset_counts(item.id, state.assets)
        kept = sum(1 for log in state.logs if log.item_id == item.id)
        return Outcome.success(self._issue(
            "DELETE_ITEM",
            item.id,
            f"Delete {item.name} and all {counts.available + counts.shipped} registered signal numbers. "
            f"History entries are kept.",
            {
                "itemsRemoved": 1,
                "assetsRemoved": counts.available + counts.shipped,
                "availableAssetsRemoved": counts.available,
                "logEntriesKept": kept,
            },
        ))

    def plan_import_snapshot(self, blob: Union[str, bytes]) -> Outcome[DestructivePlan]:
        parsed = backup.parse_snapshot(blob)
        if not parsed.ok:
            return Outcome(rejection=parsed.rejection)

        snapshot = parsed.value
        state = self.store.state
        return Outcome.success(self._issue(
            "IMPORT_SNAPSHOT",
            None,
            "All current data is replaced by the backup contents.",
            {
                "items": len(snapshot.items),
                "logs": len(snapshot.logs),
                "partners": len(snapshot.partners),
                "assets": len(snapshot.assets),
                "itemsReplaced": len(state.items),
                "logsReplaced": len(state.logs),
                "partnersReplaced": len(state.partners),
                "assetsReplaced": len(state.assets),
            },
            payload=snapshot,
        ))

    def commit_plan(self, token: str) -> Outcome[Any]:
        self._evict_stale()
        if token in self._stale:
            del self._stale[token]
            return Outcome.reject(
                RejectionCode.STALE_PLAN,
                "Data changed since this confirmation was requested; request it again",
            )

        pending = self._plans.pop(token, None)
        if pending is None:
            return Outcome.reject(RejectionCode.PLAN_NOT_FOUND, "Unknown or already used confirmation token")

        plan, payload = pending
        if plan.action == "DELETE_ASSET":
            return self.delete_asset(plan.target_id)
        if plan.action == "DELETE_ITEM":
            return self.delete_item(plan.target_id)

        backup.apply_snapshot(self.store, payload)
        self._evict_stale()
        return Outcome.success(payload)
