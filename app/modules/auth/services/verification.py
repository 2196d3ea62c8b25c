"""Four-digit email verification codes"""
from datetime import datetime, timedelta
from typing import Tuple
import enum
import logging
import uuid

from sqlalchemy.orm import Session

from app.core import security
from app.core.errors import ConflictError, NotFoundError
from app.modules.user_management.models.user import EmailVerificationToken, RegistrationStage, User

logger = logging.getLogger("app")

CODE_LENGTH = 4
CODE_TTL_MINUTES = 10


class VerificationResult(str, enum.Enum):
    SUCCESS = "SUCCESS"
    INVALID_CODE = "INVALID_CODE"
    EXPIRED_CODE = "EXPIRED_CODE"


def issue_verification_code(db: Session, user_id: str) -> str:
    """Replace any existing code for the user and return the new plain code"""
    code = security.generate_numeric_code(CODE_LENGTH)
    db.query(EmailVerificationToken).filter(EmailVerificationToken.user_id == user_id).delete(
        synchronize_session=False
    )
    db.add(EmailVerificationToken(
        id=str(uuid.uuid4()),
        user_id=user_id,
        code_hash=security.get_password_hash(code),
        expires_at=datetime.utcnow() + timedelta(minutes=CODE_TTL_MINUTES),
    ))
    db.commit()
    return code


def verify_code(db: Session, user_id: str, code: str) -> VerificationResult:
    token = db.query(EmailVerificationToken).filter(EmailVerificationToken.user_id == user_id).first()
    if token is None or not security.verify_password(code, token.code_hash):
        return VerificationResult.INVALID_CODE
    if token.expires_at < datetime.utcnow():
        return VerificationResult.EXPIRED_CODE

    now = datetime.utcnow()
    db.query(User).filter(User.id == user_id).update(
        {
            User.is_email_verified: True,
            User.email_verified_at: now,
            User.registration_stage: RegistrationStage.EMAIL_VERIFIED.value,
        },
        synchronize_session=False,
    )
    db.delete(token)
    db.commit()
    logger.info(f"Email verified for user {user_id}")
    return VerificationResult.SUCCESS


def reissue_verification_code(db: Session, user_id: str) -> Tuple[User, str]:
    """New code for a user who has not verified yet"""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    if user.is_email_verified:
        raise ConflictError("Email already verified")
    return user, issue_verification_code(db, user_id)
