"""
Reconciled (displayed) view of the item catalog.

For serialized items the stored quantity is ignored and replaced by the number
of AVAILABLE assets; bulk items pass through unchanged. Nothing here mutates
its inputs, so the view can be recomputed on every read.
"""

from collections import Counter
from typing import Dict, Iterable, List, Optional

from core.config import settings
from schemas.inventory import Asset, AssetCounts, DashboardStats, Item, StockMode


def stock_mode(category: str, serialized_categories: Optional[Iterable[str]] = None) -> StockMode:
    cats = settings.serialized_categories if serialized_categories is None else serialized_categories
    normalized = {c.strip().upper() for c in cats}
    if (category or "").strip().upper() in normalized:
        return "SERIALIZED"
    return "BULK"


def is_serialized(item: Item, serialized_categories: Optional[Iterable[str]] = None) -> bool:
    return stock_mode(item.category, serialized_categories) == "SERIALIZED"


def available_counts(assets: Iterable[Asset]) -> Counter:
    return Counter(a.item_id for a in assets if a.status == "AVAILABLE")


def reconcile(
    items: Iterable[Item],
    assets: Iterable[Asset],
    serialized_categories: Optional[Iterable[str]] = None,
) -> List[Item]:
    counts = available_counts(assets)
    out: List[Item] = []
    for item in items:
        if is_serialized(item, serialized_categories):
            out.append(item.model_copy(update={"quantity": counts.get(item.id, 0)}))
        else:
            out.append(item)
    return out


def asset_counts(item_id: str, assets: Iterable[Asset]) -> AssetCounts:
    available = shipped = 0
    for a in assets:
        if a.item_id != item_id:
            continue
        if a.status == "AVAILABLE":
            available += 1
        else:
            shipped += 1
    return AssetCounts(item_id=item_id, available=available, shipped=shipped)


def low_stock_items(reconciled: Iterable[Item]) -> List[Item]:
    return [i for i in reconciled if i.quantity <= i.safety_stock]


def dashboard_stats(reconciled: List[Item]) -> DashboardStats:
    return DashboardStats(
        total_items=len(reconciled),
        total_quantity=sum(i.quantity for i in reconciled),
        total_value=sum(i.quantity * i.price for i in reconciled),
        low_stock_count=len(low_stock_items(reconciled)),
    )


def category_breakdown(reconciled: Iterable[Item]) -> Dict[str, int]:
    out: Dict[str, int] = {}
    for i in reconciled:
        out[i.category] = out.get(i.category, 0) + i.quantity
    return out
