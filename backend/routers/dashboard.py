from typing import Dict, List

from fastapi import APIRouter, Depends

from core.dependencies import get_processor
from core.reconcile import category_breakdown, dashboard_stats, low_stock_items
from core.summary_client import summarize_inventory
from core.transactions import TransactionProcessor
from schemas.inventory import DashboardStats, Item, SummaryResponse

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
async def get_stats(processor: TransactionProcessor = Depends(get_processor)):
    return dashboard_stats(processor.reconciled_items())


@router.get("/low-stock", response_model=List[Item])
async def get_low_stock(processor: TransactionProcessor = Depends(get_processor)):
    return low_stock_items(processor.reconciled_items())


@router.get("/categories", response_model=Dict[str, int])
async def get_categories(processor: TransactionProcessor = Depends(get_processor)):
    return category_breakdown(processor.reconciled_items())


@router.get("/activity", response_model=Dict[str, int])
async def get_activity(processor: TransactionProcessor = Depends(get_processor)):
    logs = processor.store.state.logs
    return {
        "IN": sum(1 for log in logs if log.type == "IN"),
        "OUT": sum(1 for log in logs if log.type == "OUT"),
    }


@router.post("/summary", response_model=SummaryResponse)
async def create_summary(processor: TransactionProcessor = Depends(get_processor)):
    # The snapshot is taken before awaiting; later commits don't affect this report
    items = processor.reconciled_items()
    logs = processor.store.state.logs
    return SummaryResponse(text=await summarize_inventory(items, logs))
