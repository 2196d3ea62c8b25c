from typing import Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from app.modules.user_management.models.user import User
from app.modules.user_management.schemas.user import UserBasicInfo

logger = logging.getLogger(__name__)

def get_user(db: Session, user_id: str) -> Optional[User]:
    """Get user by ID"""
    return db.query(User).filter(User.id == user_id).first()

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Get user by email, case-insensitively"""
    return db.query(User).filter(User.email == email.strip().lower()).first()

def get_users_basic_info(db: Session, user_ids: List[str]) -> Dict[str, UserBasicInfo]:
    """Look up name and avatar for a set of users, keyed by user ID"""
    if not user_ids:
        return {}

    rows = (
        db.query(User.id, User.name, User.profile_pic_url)
        .filter(User.id.in_(list(set(user_ids))))
        .all()
    )
    return {
        row.id: UserBasicInfo(id=row.id, name=row.name, profile_pic_url=row.profile_pic_url)
        for row in rows
    }

def update_fcm_token(db: Session, user_id: str, token: str) -> bool:
    """Store the device token used for push notifications"""
    updated = db.query(User).filter(User.id == user_id).update(
        {User.fcm_token: token}, synchronize_session=False
    )
    db.commit()
    logger.info(f"Updated FCM token for user {user_id}")
    return updated > 0
