"""Six-digit one-time codes for resetting a forgotten password"""
from datetime import datetime, timedelta
from typing import Optional, Tuple
import enum
import logging
import uuid

from sqlalchemy.orm import Session

from app.core import security
from app.modules.password_reset.models.password_reset import PasswordResetToken
from app.modules.user_management.models.user import User
from app.modules.user_management.services.user import get_user_by_email

logger = logging.getLogger("app")

OTP_LENGTH = 6
OTP_TTL_MINUTES = 10


class ResetPasswordResult(str, enum.Enum):
    SUCCESS = "SUCCESS"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_OTP = "INVALID_OTP"


def issue_reset_code(db: Session, email: str) -> Optional[Tuple[User, str]]:
    """
    Replace the user's reset token with a fresh one.

    Returns the user and the plain code to email, or None when no account
    uses this email. Callers must not reveal which case happened.
    """
    user = get_user_by_email(db, email)
    if not user:
        logger.info("Password reset requested for unknown email")
        return None

    code = security.generate_numeric_code(OTP_LENGTH)
    try:
        db.query(PasswordResetToken).filter(PasswordResetToken.user_id == user.id).delete(
            synchronize_session=False
        )
        db.add(PasswordResetToken(
            id=str(uuid.uuid4()),
            user_id=user.id,
            otp_hash=security.get_password_hash(code),
            expires_at=datetime.utcnow() + timedelta(minutes=OTP_TTL_MINUTES),
            used=False,
        ))
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Issued password reset code for user {user.id}")
    return user, code


def reset_password(db: Session, email: str, otp: str, new_password: str) -> ResetPasswordResult:
    if not email or not email.strip():
        return ResetPasswordResult.INVALID_REQUEST
    if not otp or not otp.strip():
        return ResetPasswordResult.INVALID_OTP

    user = get_user_by_email(db, email)
    if not user:
        return ResetPasswordResult.USER_NOT_FOUND

    token = (
        db.query(PasswordResetToken)
        .filter(
            PasswordResetToken.user_id == user.id,
            PasswordResetToken.used == False,
            PasswordResetToken.expires_at >= datetime.utcnow(),
        )
        .first()
    )
    if token is None or not security.verify_password(otp.strip(), token.otp_hash):
        return ResetPasswordResult.INVALID_OTP

    user.password_hash = security.get_password_hash(new_password)
    token.used = True
    db.commit()
    logger.info(f"Password reset for user {user.id}")
    return ResetPasswordResult.SUCCESS
