from fastapi_users.db import SQLAlchemyBaseUserTableUUID
from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.sql import func
from .database import Base, utcnow


class User(SQLAlchemyBaseUserTableUUID, Base):
    __tablename__ = "users"

    role = Column(Text, nullable=False, default="customer", index=True)  # vendor|dealer|customer|admin
    status = Column(Text, nullable=False, default="pending", index=True)  # pending|approved|rejected
    name = Column(String, nullable=True)
    business_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now())

    @property
    def uid(self) -> str:
        """String form of the id, used as owner id across inventory and requests."""
        return str(self.id)

    @property
    def display_name(self) -> str:
        return (self.business_name or "").strip() or (self.name or "").strip() or self.email

    @property
    def to_schema(self):
        """Convert User model to schema dictionary format"""
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "status": self.status,
            "name": self.name,
            "business_name": self.business_name,
            "phone": self.phone,
            "address": self.address,
        }
