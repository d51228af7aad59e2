from datetime import datetime
from typing import List, Optional

from pydantic import field_validator

from schemas.common import CamelModel
from schemas.inventory import Asset, Item, LogEntry
from schemas.partners import Partner


class BackupSnapshot(CamelModel):
    # All four collections are required; a backup missing any of them is rejected
    items: List[Item]
    logs: List[LogEntry]
    partners: List[Partner]
    assets: List[Asset]
    version: str = ""
    timestamp: Optional[datetime] = None

    @field_validator("version", mode="before")
    @classmethod
    def _version_as_text(cls, v):
        # Informational only; numeric or null versions are kept as text
        return "" if v is None else str(v)


class ImportResult(CamelModel):
    version: str
    items: int
    logs: int
    partners: int
    assets: int
