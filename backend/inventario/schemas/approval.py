from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ApprovalItemType(str, Enum):
    EQUIPMENT = "equipment"
    LICENSE = "license"


class PendingItemOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: Optional[str] = None
    item_type: ApprovalItemType = Field(alias="itemType")


class ApprovalIn(BaseModel):
    type: ApprovalItemType
    id: int
    username: Optional[str] = None


class RejectionIn(ApprovalIn):
    reason: str

    @field_validator("reason", mode="before")
    @classmethod
    def _reason_required(cls, value: Optional[str]) -> str:
        if value is None or not str(value).strip():
            raise ValueError("O motivo da rejeição é obrigatório.")
        return str(value).strip()
