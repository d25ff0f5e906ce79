import uuid
from sqlalchemy import Boolean, Column, DateTime, String, Text
from sqlalchemy.sql import func
from .database import Base, utcnow


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False, default="")
    type = Column(Text, nullable=False, default="info", index=True)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now(), index=True)

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "type": self.type,
            "read": bool(self.read),
            "created_at": self.created_at,
        }
