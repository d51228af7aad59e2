from typing import Literal, Optional

from pydantic import AliasChoices, Field, field_validator

from schemas.common import CamelModel, RecordModel


PartnerRole = Literal["SUPPLIER", "CUSTOMER", "BOTH"]


class Partner(RecordModel):
    id: str
    name: str
    # Older backups store the role under "type"
    role: PartnerRole = Field("BOTH", validation_alias=AliasChoices("role", "type"))
    contact: Optional[str] = None
    address: Optional[str] = None
    note: Optional[str] = None


class PartnerCreate(CamelModel):
    name: str
    role: PartnerRole = "BOTH"
    contact: Optional[str] = None
    address: Optional[str] = None
    note: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("name is required")
        return v


class PartnerUpdate(CamelModel):
    name: Optional[str] = None
    role: Optional[PartnerRole] = None
    contact: Optional[str] = None
    address: Optional[str] = None
    note: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip_optional(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty")
        return v
