from datetime import datetime
from typing import List

from pydantic import BaseModel


class NotificationRead(BaseModel):
    id: str
    title: str
    message: str
    type: str
    read: bool
    created_at: datetime


class NotificationList(BaseModel):
    unread: int
    items: List[NotificationRead]
