from fastapi import APIRouter, Depends, Request, Response

from core import backup
from core.dependencies import get_processor, unwrap
from core.transactions import TransactionProcessor
from schemas.inventory import DestructivePlan

router = APIRouter()


@router.get("/export")
async def export_backup(processor: TransactionProcessor = Depends(get_processor)):
    body = backup.export_snapshot(processor.store.state, now=processor.clock)
    filename = backup.backup_filename(processor.clock())
    return Response(
        content=body,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import-plan", response_model=DestructivePlan)
async def plan_import(
    request: Request,
    processor: TransactionProcessor = Depends(get_processor),
):
    """
    Validate an uploaded backup (raw JSON body) and describe the replacement.

    Nothing changes until the returned token is committed via POST /plans/{token}/commit.
    """
    blob = await request.body()
    return unwrap(processor.plan_import_snapshot(blob))
