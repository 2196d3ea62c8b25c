import enum

from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Text
from sqlalchemy.sql import func

from app.db.session import Base


class NotificationType(str, enum.Enum):
    STATUS_LIKE = "STATUS_LIKE"
    STATUS_REPLY = "STATUS_REPLY"
    SYSTEM = "SYSTEM"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), index=True)
    actor_id = Column(String, ForeignKey("users.id"), nullable=True)  # The user who triggered the notification
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String, default=NotificationType.SYSTEM.value)
    related_id = Column(String, nullable=True)  # ID of the related status or reply
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime, default=func.now())
