import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base, utcnow


class InventoryMovement(Base):
    __tablename__ = "inventory_movements"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    location = Column(Text, nullable=False, index=True)  # 'DEALER' | 'VENDOR'

    inventory_item_id = Column(
        String,
        ForeignKey("inventory_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    change = Column(Integer, nullable=False)
    reason = Column(Text, nullable=True)  # TRANSFER_OUT | TRANSFER_IN | MANUAL | ADJUSTMENT
    source_type = Column(Text, nullable=True)  # stock_request | manual
    source_id = Column(String(36), nullable=True, index=True)

    created_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now(), index=True)
    created_by_user_id = Column(String(36), nullable=True)

    inventory_item = relationship("InventoryItem", back_populates="movements")

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "location": self.location,
            "inventory_item_id": self.inventory_item_id,
            "change": int(self.change),
            "reason": self.reason,
            "source_type": self.source_type,
            "source_id": self.source_id,
            "created_at": self.created_at,
            "created_by_user_id": self.created_by_user_id,
        }
