import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from core.dependencies import get_processor, unwrap
from core.reconcile import asset_counts
from core.transactions import TransactionProcessor
from schemas.inventory import (
    Asset,
    AssetCounts,
    AssetRegister,
    AssetRegistered,
    AssetStatus,
    DestructivePlan,
    Item,
    ItemCreate,
    ItemUpdate,
    ScanTransactionCreate,
    TransactionCreate,
    TransactionResult,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _reconciled_or_404(processor: TransactionProcessor, item_id: str) -> Item:
    item = processor.reconciled_item(item_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
    return item


@router.get("/items", response_model=List[Item])
async def list_items(
    category: Optional[str] = None,
    search: str = "",
    processor: TransactionProcessor = Depends(get_processor),
):
    """Items with the displayed quantity (serialized items count their available assets)."""
    items = processor.reconciled_items()
    if category and category != "All":
        items = [i for i in items if i.category == category]
    term = search.strip().lower()
    if term:
        items = [i for i in items if term in i.name.lower()]
    return items


@router.post("/items", response_model=Item, status_code=status.HTTP_201_CREATED)
async def create_item(
    payload: ItemCreate,
    processor: TransactionProcessor = Depends(get_processor),
):
    created = unwrap(processor.add_item(payload))
    return _reconciled_or_404(processor, created.id)


@router.get("/items/{item_id}", response_model=Item)
async def get_item(
    item_id: str,
    processor: TransactionProcessor = Depends(get_processor),
):
    return _reconciled_or_404(processor, item_id)


@router.patch("/items/{item_id}", response_model=Item)
async def update_item(
    item_id: str,
    payload: ItemUpdate,
    processor: TransactionProcessor = Depends(get_processor),
):
    unwrap(processor.update_item(item_id, payload))
    return _reconciled_or_404(processor, item_id)


@router.post("/items/{item_id}/delete-plan", response_model=DestructivePlan)
async def plan_delete_item(
    item_id: str,
    processor: TransactionProcessor = Depends(get_processor),
):
    """Describe what deleting the item removes; confirm with POST /plans/{token}/commit."""
    return unwrap(processor.plan_delete_item(item_id))


@router.get("/items/{item_id}/assets", response_model=List[Asset])
async def list_item_assets(
    item_id: str,
    asset_status: Optional[AssetStatus] = Query(None, alias="status"),
    processor: TransactionProcessor = Depends(get_processor),
):
    _reconciled_or_404(processor, item_id)
    assets = processor.store.state.assets_of(item_id)
    if asset_status:
        assets = [a for a in assets if a.status == asset_status]
    return sorted(assets, key=lambda a: a.registered_at, reverse=True)


@router.get("/items/{item_id}/asset-counts", response_model=AssetCounts)
async def get_item_asset_counts(
    item_id: str,
    processor: TransactionProcessor = Depends(get_processor),
):
    _reconciled_or_404(processor, item_id)
    return asset_counts(item_id, processor.store.state.assets)


@router.post("/assets", response_model=AssetRegistered, status_code=status.HTTP_201_CREATED)
async def register_asset(
    payload: AssetRegister,
    processor: TransactionProcessor = Depends(get_processor),
):
    asset = unwrap(processor.register_asset(payload.item_id, payload.signal_number, payload.partner_id))
    return AssetRegistered(asset=asset, log=processor.store.state.logs[0])


@router.post("/assets/{asset_id}/delete-plan", response_model=DestructivePlan)
async def plan_delete_asset(
    asset_id: str,
    processor: TransactionProcessor = Depends(get_processor),
):
    return unwrap(processor.plan_delete_asset(asset_id))


@router.post("/transactions", response_model=TransactionResult, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    payload: TransactionCreate,
    processor: TransactionProcessor = Depends(get_processor),
):
    try:
        entry = unwrap(processor.process_transaction(
            payload.item_id,
            payload.type,
            payload.quantity,
            payload.partner_id,
            payload.note,
            asset_id=payload.asset_id,
        ))
        return TransactionResult(log=entry, item=_reconciled_or_404(processor, payload.item_id))
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("create_transaction failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to process transaction: {e}")


@router.post("/transactions/scan", response_model=TransactionResult, status_code=status.HTTP_201_CREATED)
async def create_scanned_transaction(
    payload: ScanTransactionCreate,
    processor: TransactionProcessor = Depends(get_processor),
):
    """
    Serialized inbound/outbound keyed by signal number (scanner or manual entry).

    - OUT ships the item's available unit carrying the number.
    - IN brings a shipped unit back, or registers a new one from the partner.
    """
    try:
        entry = unwrap(processor.process_scanned(
            payload.item_id,
            payload.type,
            payload.signal_number,
            payload.partner_id,
            payload.note,
        ))
        return TransactionResult(log=entry, item=_reconciled_or_404(processor, payload.item_id))
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("create_scanned_transaction failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to process transaction: {e}")
