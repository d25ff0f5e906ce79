from typing import Literal, Optional
from uuid import UUID

from fastapi_users import schemas
from pydantic import BaseModel, field_validator

SignupRole = Literal["vendor", "dealer", "customer"]


class UserRead(schemas.BaseUser[UUID]):
    role: str
    status: str
    name: Optional[str] = None
    business_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class UserCreate(schemas.BaseUserCreate):
    role: SignupRole = "customer"
    name: Optional[str] = None
    business_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    @field_validator("name", "business_name", "phone", "address")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class UserUpdate(schemas.BaseUserUpdate):
    name: Optional[str] = None
    business_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class VendorSummary(BaseModel):
    id: UUID
    name: str
    email: str
    address: Optional[str] = None
    phone: Optional[str] = None
