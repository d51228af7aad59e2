from datetime import datetime
from typing import Dict, Literal, Optional

from pydantic import field_validator

from schemas.common import CamelModel, RecordModel


TransactionType = Literal["IN", "OUT"]
AssetStatus = Literal["AVAILABLE", "SHIPPED"]
StockMode = Literal["SERIALIZED", "BULK"]
PlanAction = Literal["DELETE_ASSET", "DELETE_ITEM", "IMPORT_SNAPSHOT"]

# Items saved by older releases can lack a category
DEFAULT_CATEGORY = "Other"


class Item(RecordModel):
    id: str
    name: str
    category: str = DEFAULT_CATEGORY
    # Authoritative for bulk items only; serialized items derive it from assets
    quantity: int = 0
    safety_stock: int = 0
    price: float = 0
    last_updated: datetime

    @field_validator("category", mode="before")
    @classmethod
    def _category_or_default(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_CATEGORY
        return v

    @field_validator("quantity", "safety_stock", "price", mode="before")
    @classmethod
    def _null_is_zero(cls, v):
        return 0 if v is None else v


class Asset(RecordModel):
    id: str
    item_id: str
    signal_number: str
    status: AssetStatus = "AVAILABLE"
    partner_id: Optional[str] = None  # current holder
    registered_at: datetime


class LogEntry(RecordModel):
    id: str
    item_id: str
    item_name: str
    asset_id: Optional[str] = None
    signal_number: Optional[str] = None
    partner_id: Optional[str] = None
    partner_name: Optional[str] = None
    type: TransactionType
    quantity: int
    timestamp: datetime
    note: Optional[str] = None


class ItemCreate(CamelModel):
    name: str
    category: str
    quantity: int = 0
    safety_stock: int = 0
    price: float = 0

    @field_validator("name", "category")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        return v

    @field_validator("safety_stock", "price")
    @classmethod
    def _non_negative(cls, v):
        if v < 0:
            raise ValueError("must be >= 0")
        return v


class ItemUpdate(CamelModel):
    name: Optional[str] = None
    category: Optional[str] = None
    quantity: Optional[int] = None
    safety_stock: Optional[int] = None
    price: Optional[float] = None

    @field_validator("name", "category")
    @classmethod
    def _strip_optional(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty")
        return v


class AssetRegister(CamelModel):
    item_id: str
    signal_number: str
    partner_id: Optional[str] = None

    @field_validator("partner_id")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class TransactionCreate(CamelModel):
    item_id: str
    type: TransactionType
    quantity: int = 1
    partner_id: str = ""
    note: Optional[str] = None
    asset_id: Optional[str] = None

    @field_validator("note")
    @classmethod
    def _strip_note(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class ScanTransactionCreate(CamelModel):
    """A serialized transaction keyed by a scanned or typed signal number."""

    item_id: str
    type: TransactionType
    signal_number: str = ""
    partner_id: str = ""
    note: Optional[str] = None


class DestructivePlan(CamelModel):
    token: str
    action: PlanAction
    target_id: Optional[str] = None
    summary: str
    effects: Dict[str, int]
    revision: int


class DashboardStats(CamelModel):
    total_items: int
    total_quantity: int
    total_value: float
    low_stock_count: int


class AssetCounts(CamelModel):
    item_id: str
    available: int
    shipped: int


class DaySummary(CamelModel):
    day: str
    in_count: int
    out_count: int
    entries: int


class ItemFlow(CamelModel):
    item_name: str
    in_quantity: int = 0
    out_quantity: int = 0


class DailyReport(CamelModel):
    day: str
    logs: list[LogEntry]
    totals: list[ItemFlow]


class SummaryResponse(CamelModel):
    text: str


class AssetRegistered(CamelModel):
    asset: Asset
    log: LogEntry


class TransactionResult(CamelModel):
    log: LogEntry
    item: Item
