import uuid
from sqlalchemy import JSON, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func
from .database import Base, utcnow

STATUS_PENDING = "pending"
STATUS_ACCEPTED = "accepted"
STATUS_REJECTED = "rejected"
TERMINAL_STATUSES = (STATUS_ACCEPTED, STATUS_REJECTED)


class StockRequest(Base):
    """A dealer's ask for a vendor to take over stock.

    `items` holds the request lines as plain dicts:
    {"name", "qty", "doc_id", "price", "image", "unit", "category", "description"}.
    """
    __tablename__ = "stock_requests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    vendor_id = Column(String(36), nullable=False, index=True)
    dealer_id = Column(String(36), nullable=False, index=True)
    dealer_name = Column(String, nullable=True)
    items = Column(JSON, nullable=False, default=list)
    total_items = Column(Integer, nullable=False, default=0)
    status = Column(Text, nullable=False, default=STATUS_PENDING, index=True)  # pending|accepted|rejected
    created_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now())

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "vendor_id": self.vendor_id,
            "dealer_id": self.dealer_id,
            "dealer_name": self.dealer_name,
            "items": list(self.items or []),
            "total_items": int(self.total_items or 0),
            "status": self.status,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
