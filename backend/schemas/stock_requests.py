from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

StockRequestStatus = Literal["pending", "accepted", "rejected"]
TerminalStatus = Literal["accepted", "rejected"]


class RequestLine(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    qty: int
    doc_id: Optional[str] = Field(default=None, alias="docId")
    price: Optional[float] = None
    image: Optional[str] = None
    unit: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        return v

    @field_validator("qty")
    @classmethod
    def _qty_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("qty must be > 0")
        return v

    @field_validator("doc_id", "image", "unit", "category", "description")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class StockRequestCreate(BaseModel):
    vendor_id: UUID
    items: List[RequestLine] = Field(min_length=1)


class StockRequestRead(BaseModel):
    id: str
    vendor_id: str
    dealer_id: str
    dealer_name: Optional[str] = None
    items: List[RequestLine]
    total_items: int
    status: StockRequestStatus
    created_at: datetime
    updated_at: datetime


class StockRequestStatusUpdate(BaseModel):
    status: TerminalStatus


class StockRequestStatusResult(BaseModel):
    success: bool
    request_id: str
    status: TerminalStatus
    applied: bool
