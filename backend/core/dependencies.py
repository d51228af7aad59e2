from typing import TypeVar

from fastapi import HTTPException, Request, status

from core.errors import Outcome, RejectionCode
from core.transactions import TransactionProcessor

T = TypeVar("T")

_NOT_FOUND = {
    RejectionCode.ITEM_NOT_FOUND,
    RejectionCode.PARTNER_NOT_FOUND,
    RejectionCode.ASSET_NOT_FOUND,
    RejectionCode.PLAN_NOT_FOUND,
}
_CONFLICT = {
    RejectionCode.DUPLICATE_SIGNAL,
    RejectionCode.STALE_PLAN,
    RejectionCode.ASSET_NOT_AVAILABLE,
    RejectionCode.ASSET_ALREADY_AVAILABLE,
}


def get_processor(request: Request) -> TransactionProcessor:
    return request.app.state.processor


def unwrap(outcome: Outcome[T]) -> T:
    """Return the value or raise the HTTP error matching the rejection."""
    if outcome.ok:
        return outcome.value

    code = outcome.rejection.code
    if code in _NOT_FOUND:
        status_code = status.HTTP_404_NOT_FOUND
    elif code in _CONFLICT:
        status_code = status.HTTP_409_CONFLICT
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    raise HTTPException(
        status_code=status_code,
        detail={"code": code.value, "message": outcome.rejection.message},
    )
