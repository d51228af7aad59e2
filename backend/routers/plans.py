from typing import Dict

from fastapi import APIRouter, Depends

from core.dependencies import get_processor, unwrap
from core.transactions import TransactionProcessor
from schemas.backup import ImportResult
from schemas.inventory import Item, LogEntry

router = APIRouter()


@router.post("/{token}/commit", response_model=Dict)
async def commit_plan(
    token: str,
    processor: TransactionProcessor = Depends(get_processor),
):
    """Execute a previously issued delete/import plan (the caller has the user's consent)."""
    result = unwrap(processor.commit_plan(token))

    if isinstance(result, LogEntry):
        return {"action": "DELETE_ASSET", "log": result.model_dump(mode="json", by_alias=True)}
    if isinstance(result, Item):
        return {"action": "DELETE_ITEM", "item": result.model_dump(mode="json", by_alias=True)}
    restored = ImportResult(
        version=result.version,
        items=len(result.items),
        logs=len(result.logs),
        partners=len(result.partners),
        assets=len(result.assets),
    )
    return {"action": "IMPORT_SNAPSHOT", "result": restored.model_dump(by_alias=True)}
