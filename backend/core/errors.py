from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class RejectionCode(str, Enum):
    ITEM_NOT_FOUND = "item_not_found"
    PARTNER_REQUIRED = "partner_required"
    PARTNER_NOT_FOUND = "partner_not_found"
    ASSET_REQUIRED = "asset_required"
    ASSET_NOT_FOUND = "asset_not_found"
    ASSET_NOT_AVAILABLE = "asset_not_available"
    ASSET_ALREADY_AVAILABLE = "asset_already_available"
    ASSET_ITEM_MISMATCH = "asset_item_mismatch"
    SIGNAL_REQUIRED = "signal_required"
    DUPLICATE_SIGNAL = "duplicate_signal"
    NOT_SERIALIZED = "not_serialized"
    INVALID_QUANTITY = "invalid_quantity"
    INVALID_FIELD = "invalid_field"
    IMPORT_FORMAT = "import_format"
    PLAN_NOT_FOUND = "plan_not_found"
    STALE_PLAN = "stale_plan"


@dataclass(frozen=True)
class Rejection:
    code: RejectionCode
    message: str


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Either a value or the reason the operation was refused (state left untouched)."""

    value: Optional[T] = None
    rejection: Optional[Rejection] = None

    @property
    def ok(self) -> bool:
        return self.rejection is None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def reject(cls, code: RejectionCode, message: str) -> "Outcome[T]":
        return cls(rejection=Rejection(code=code, message=message))
