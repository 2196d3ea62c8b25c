from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict

class NotificationBase(BaseModel):
    title: str
    message: str
    type: str
    related_id: Optional[str] = None

class NotificationCreate(NotificationBase):
    user_id: str
    actor_id: Optional[str] = None  # ID of the user who triggered the notification

class NotificationInDBBase(NotificationBase):
    id: str
    user_id: str
    is_read: bool
    created_at: datetime
    actor_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class Notification(NotificationInDBBase):
    """Notification model returned to client"""
    pass

class UnreadCount(BaseModel):
    count: int
