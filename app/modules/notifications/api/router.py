from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.errors import AuthorizationError, NotFoundError
from app.core.responses import ok
from app.db.session import get_db
from app.deps import get_current_user
from app.modules.user_management.models.user import User
from app.modules.notifications.schemas.notification import Notification as NotificationSchema, UnreadCount
from app.modules.notifications.services.notification import (
    count_unread,
    get_notification,
    get_user_notifications,
    mark_all_as_read,
    mark_as_read,
)

router = APIRouter()

@router.get("")
def read_notifications(
    db: Session = Depends(get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    unread_only: bool = False,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Get user's notifications with pagination and filter options"""
    notifications = get_user_notifications(db, current_user.id, skip, limit, unread_only)
    return ok(
        "Notifications retrieved",
        [NotificationSchema.model_validate(n).model_dump() for n in notifications],
    )

@router.get("/unread-count")
def read_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Number of unread notifications"""
    return ok("Unread count retrieved", UnreadCount(count=count_unread(db, current_user.id)).model_dump())

@router.put("/mark-all-read")
def mark_all_notifications_as_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Mark all of the user's notifications as read"""
    count = mark_all_as_read(db, current_user.id)
    return ok(f"Marked {count} notifications as read", {"count": count})

@router.put("/{notification_id}/read")
def mark_notification_as_read(
    notification_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Mark a specific notification as read"""
    notification = get_notification(db, notification_id=notification_id)
    if not notification:
        raise NotFoundError("Notification not found")

    if notification.user_id != current_user.id:
        raise AuthorizationError("Not enough permissions")

    notification = mark_as_read(db, notification)
    return ok("Notification marked as read", NotificationSchema.model_validate(notification).model_dump())
