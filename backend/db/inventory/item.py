from sqlalchemy import Column, Date, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql import func

from core.converters import normalize_name, price_from_minor
from ..database import Base, utcnow


class InventoryItem(Base):
    __tablename__ = "inventory_items"
    __table_args__ = (UniqueConstraint("owner_id", "name_normalized", name="uq_inventory_items_owner_name"),)

    # `<owner_id>_<normalized name>` at creation time, see core.converters.inventory_key.
    # Renames keep the id, so lookups by name go through `name_normalized`.
    id = Column(String, primary_key=True)

    # 'DEALER' | 'VENDOR'
    location = Column(Text, nullable=False, index=True)
    owner_id = Column(String(36), nullable=False, index=True)

    name = Column(String, nullable=False, index=True)
    name_normalized = Column(String, nullable=False)
    sku = Column(String, nullable=True)
    brand = Column(String, nullable=True)
    category = Column(String, nullable=True)
    unit = Column(Text, nullable=False, default="pcs")

    # Not floored at zero: dealer stock may be overdrawn by a transfer.
    quantity = Column(Integer, nullable=False, default=0)

    selling_price_minor = Column(Integer, nullable=True)
    cost_price_minor = Column(Integer, nullable=True)
    min_stock = Column(Integer, nullable=True)
    expiry_date = Column(Date, nullable=True)
    image = Column(Text, nullable=True)
    description = Column(Text, nullable=True)

    last_updated = Column(DateTime, nullable=False, default=utcnow, server_default=func.now())

    movements = relationship("InventoryMovement", back_populates="inventory_item", cascade="all, delete-orphan")

    @validates("name")
    def _sync_name_normalized(self, key, value):
        self.name_normalized = normalize_name(value)
        return value

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "location": self.location,
            "owner_id": self.owner_id,
            "name": self.name,
            "sku": self.sku,
            "brand": self.brand,
            "category": self.category,
            "unit": self.unit,
            "quantity": int(self.quantity or 0),
            "selling_price": price_from_minor(self.selling_price_minor),
            "cost_price": price_from_minor(self.cost_price_minor),
            "min_stock": self.min_stock,
            "expiry_date": self.expiry_date,
            "image": self.image,
            "description": self.description,
            "last_updated": self.last_updated,
        }
