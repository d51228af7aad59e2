from typing import List

from fastapi import APIRouter, Depends, status

from core.dependencies import get_processor, unwrap
from core.transactions import TransactionProcessor
from schemas.partners import Partner, PartnerCreate, PartnerUpdate

router = APIRouter()


@router.get("/", response_model=List[Partner])
async def list_partners(
    search: str = "",
    processor: TransactionProcessor = Depends(get_processor),
):
    term = search.strip().lower()
    partners = processor.store.state.partners
    if term:
        partners = [
            p for p in partners
            if any(term in (field or "").lower() for field in (p.name, p.contact, p.address))
        ]
    return sorted(partners, key=lambda p: p.name.lower())


@router.post("/", response_model=Partner, status_code=status.HTTP_201_CREATED)
async def create_partner(
    payload: PartnerCreate,
    processor: TransactionProcessor = Depends(get_processor),
):
    return unwrap(processor.add_partner(payload))


@router.patch("/{partner_id}", response_model=Partner)
async def update_partner(
    partner_id: str,
    payload: PartnerUpdate,
    processor: TransactionProcessor = Depends(get_processor),
):
    return unwrap(processor.update_partner(partner_id, payload))


@router.delete("/{partner_id}", response_model=Partner)
async def delete_partner(
    partner_id: str,
    processor: TransactionProcessor = Depends(get_processor),
):
    """Existing assets and history keep pointing at the removed partner."""
    return unwrap(processor.delete_partner(partner_id))
