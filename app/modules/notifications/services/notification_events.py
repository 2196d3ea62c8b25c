"""
Notification events service.
Creates notifications for status interactions. Failures are logged and never reach the caller.
"""
from typing import Optional
import logging

from sqlalchemy.orm import Session

from app.modules.notifications.models.notification import NotificationType
from app.modules.notifications.schemas.notification import NotificationCreate
from app.modules.notifications.services.notification import create_notification
from app.modules.notifications.services.push import PushSender
from app.modules.user_management.services.user import get_user

logger = logging.getLogger(__name__)

def create_status_like_notification(db: Session, push: Optional[PushSender], status, liker_id: str) -> bool:
    """
    Create a notification when a status is liked.

    Args:
        db: Database session
        push: Push sender used to notify the author's device
        status: The status that was liked
        liker_id: ID of the user who liked the status

    Returns:
        True if notification was created, False otherwise
    """
    try:
        if status.user_id == liker_id:
            logger.debug(f"User {liker_id} liked their own status, no notification created")
            return False

        liker = get_user(db, liker_id)
        if not liker:
            logger.warning(f"User {liker_id} not found when creating like notification")
            return False

        create_notification(db, NotificationCreate(
            user_id=status.user_id,
            actor_id=liker_id,
            title="New like",
            message=f"{liker.name} liked your status",
            type=NotificationType.STATUS_LIKE.value,
            related_id=status.id,
        ), push)
        logger.info(f"Created status like notification for user {status.user_id} from user {liker_id}")
        return True

    except Exception as e:
        db.rollback()
        logger.error(f"Error creating status like notification: {e}")
        return False

def create_status_reply_notification(db: Session, push: Optional[PushSender], status, reply, replier_id: str) -> bool:
    """
    Create a notification when someone replies to a status.

    Args:
        db: Database session
        push: Push sender used to notify the author's device
        status: The status that received the reply
        reply: The stored reply
        replier_id: ID of the user who replied

    Returns:
        True if notification was created, False otherwise
    """
    try:
        if status.user_id == replier_id:
            return False

        replier = get_user(db, replier_id)
        if not replier:
            logger.warning(f"User {replier_id} not found when creating reply notification")
            return False

        preview = (reply.text or "")[:80]
        create_notification(db, NotificationCreate(
            user_id=status.user_id,
            actor_id=replier_id,
            title="New reply",
            message=f"{replier.name} replied to your status: {preview}",
            type=NotificationType.STATUS_REPLY.value,
            related_id=status.id,
        ), push)
        logger.info(f"Created status reply notification for user {status.user_id} from user {replier_id}")
        return True

    except Exception as e:
        db.rollback()
        logger.error(f"Error creating status reply notification: {e}")
        return False
