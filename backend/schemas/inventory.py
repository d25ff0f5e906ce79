from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, field_validator


InventoryLocation = Literal["DEALER", "VENDOR"]


class InventoryItemCreate(BaseModel):
    name: str
    unit: str = "pcs"
    quantity: int = 0
    sku: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    selling_price: Optional[float] = None
    cost_price: Optional[float] = None
    min_stock: Optional[int] = None
    expiry_date: Optional[date] = None
    image: Optional[str] = None
    description: Optional[str] = None

    @field_validator("name", "unit")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        return v

    @field_validator("quantity")
    @classmethod
    def _quantity_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("quantity must be >= 0")
        return v

    @field_validator("sku", "brand", "category", "image", "description")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = None
    unit: Optional[str] = None
    quantity: Optional[int] = None
    sku: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    selling_price: Optional[float] = None
    cost_price: Optional[float] = None
    min_stock: Optional[int] = None
    expiry_date: Optional[date] = None
    image: Optional[str] = None
    description: Optional[str] = None

    @field_validator("name", "unit")
    @classmethod
    def _strip_optional(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = (v or "").strip()
        if not v:
            raise ValueError("cannot be empty")
        return v


class InventoryItemOut(BaseModel):
    id: str
    location: InventoryLocation
    owner_id: str
    name: str
    sku: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    unit: str
    quantity: int
    selling_price: Optional[float] = None
    cost_price: Optional[float] = None
    min_stock: Optional[int] = None
    expiry_date: Optional[date] = None
    image: Optional[str] = None
    description: Optional[str] = None
    last_updated: datetime


class InventoryMovementOut(BaseModel):
    id: str
    location: InventoryLocation
    inventory_item_id: str
    change: int
    reason: Optional[str] = None
    source_type: Optional[str] = None
    source_id: Optional[str] = None
    created_at: datetime
    created_by_user_id: Optional[str] = None


class InventoryItemWithMovements(BaseModel):
    item: InventoryItemOut
    movements: List[InventoryMovementOut]
