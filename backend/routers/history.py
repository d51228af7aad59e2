from datetime import date
from typing import List

from fastapi import APIRouter, Depends

from core import ledger
from core.dependencies import get_processor
from core.transactions import TransactionProcessor
from schemas.inventory import DailyReport, DaySummary, LogEntry

router = APIRouter()


@router.get("/logs", response_model=List[LogEntry])
async def list_logs(
    search: str = "",
    limit: int = 0,
    processor: TransactionProcessor = Depends(get_processor),
):
    logs = ledger.search_logs(processor.store.state.logs, search)
    return logs[:limit] if limit > 0 else logs


@router.get("/days", response_model=List[DaySummary])
async def list_days(
    search: str = "",
    processor: TransactionProcessor = Depends(get_processor),
):
    return ledger.group_by_date(ledger.search_logs(processor.store.state.logs, search))


@router.get("/days/{day}/report", response_model=DailyReport)
async def get_daily_report(
    day: date,
    processor: TransactionProcessor = Depends(get_processor),
):
    return ledger.daily_report(processor.store.state.logs, day.isoformat())
