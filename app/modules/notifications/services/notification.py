from typing import List, Optional
import uuid
import logging

from sqlalchemy.orm import Session

from app.modules.notifications.models.notification import Notification
from app.modules.notifications.schemas.notification import NotificationCreate
from app.modules.notifications.services.push import PushSender
from app.modules.user_management.services.user import get_user

logger = logging.getLogger(__name__)

def get_notification(db: Session, notification_id: str) -> Optional[Notification]:
    """Get notification by ID"""
    return db.query(Notification).filter(Notification.id == notification_id).first()

def get_user_notifications(db: Session, user_id: str, skip: int = 0, limit: int = 50, unread_only: bool = False) -> List[Notification]:
    """Get notifications for a user"""
    query = db.query(Notification).filter(Notification.user_id == user_id)

    if unread_only:
        query = query.filter(Notification.is_read == False)

    return query.order_by(Notification.created_at.desc()).offset(skip).limit(limit).all()

def create_notification(db: Session, notification_in: NotificationCreate, push: Optional[PushSender] = None) -> Notification:
    """Store a notification and push it to the user's device when a token is registered"""
    notification = Notification(
        id=str(uuid.uuid4()),
        **notification_in.model_dump(),
    )

    db.add(notification)
    db.commit()
    db.refresh(notification)

    if push is not None:
        user = get_user(db, notification.user_id)
        if user and user.fcm_token:
            push.dispatch(
                user.fcm_token,
                notification.title,
                notification.message,
                {"type": notification.type, "notification_id": notification.id, "related_id": notification.related_id or ""},
            )

    return notification

def mark_as_read(db: Session, notification: Notification) -> Notification:
    """Mark a single notification as read"""
    notification.is_read = True
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification

def mark_all_as_read(db: Session, user_id: str) -> int:
    """Mark all notifications as read for a user"""
    result = db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read == False
    ).update({"is_read": True})

    db.commit()

    return result

def count_unread(db: Session, user_id: str) -> int:
    return db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read == False
    ).count()
