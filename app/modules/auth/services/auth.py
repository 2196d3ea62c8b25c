"""Registration, login and profile completion"""
from datetime import datetime
from typing import Optional, Tuple
import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core import security
from app.core.errors import AuthorizationError, ConflictError, NotFoundError
from app.modules.auth.schemas.auth import AuthResponse, RegistrationResult
from app.modules.auth.services.verification import issue_verification_code
from app.modules.business_profiles.schemas.business_profile import BusinessProfile as BusinessProfileSchema
from app.modules.business_profiles.services.business_profile import get_business_profile
from app.modules.user_management.models.user import AuthProvider, RegistrationStage, User, UserRole
from app.modules.user_management.schemas.user import User as UserSchema
from app.modules.user_management.services.user import get_user, get_user_by_email

logger = logging.getLogger("app")

NEXT_ACTIONS = {
    RegistrationStage.EMAIL_SUBMITTED.value: "verify_email",
    RegistrationStage.EMAIL_VERIFIED.value: "complete_profile",
    RegistrationStage.PROFILE_COMPLETED.value: "login",
    RegistrationStage.BUSINESS_ADDED.value: "login",
}


def next_action_for(stage: str) -> str:
    return NEXT_ACTIONS.get(stage, "contact_support")


def register_user(db: Session, name: str, email: str, password: str) -> Tuple[RegistrationResult, Optional[str]]:
    """
    Register an email/password account.

    Returns the registration state and, for new accounts only, the plain
    verification code to email to the user.
    """
    existing = get_user_by_email(db, email)
    if existing:
        return RegistrationResult(
            user_id=existing.id,
            current_stage=existing.registration_stage,
            next_action=next_action_for(existing.registration_stage),
            is_existing_user=True,
        ), None

    user = User(
        id=str(uuid.uuid4()),
        name=name.strip(),
        email=email,
        password_hash=security.get_password_hash(password),
        role=UserRole.USER.value,
        registration_stage=RegistrationStage.EMAIL_SUBMITTED.value,
        auth_provider=AuthProvider.EMAIL.value,
    )
    try:
        db.add(user)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Email already registered")

    code = issue_verification_code(db, user.id)
    logger.info(f"Registered user {user.id}")
    return RegistrationResult(
        user_id=user.id,
        current_stage=RegistrationStage.EMAIL_SUBMITTED.value,
        next_action="verify_email",
    ), code


def build_auth_response(db: Session, user: User) -> AuthResponse:
    profile = get_business_profile(db, user.id)
    return AuthResponse(
        token=security.create_access_token(user.id, role=user.role),
        user=UserSchema.model_validate(user),
        business_profile=BusinessProfileSchema.model_validate(profile) if profile else None,
    )


def _record_login(db: Session, user: User) -> None:
    user.last_login_at = datetime.utcnow()
    db.commit()
    db.refresh(user)


def login(db: Session, email: str, password: str) -> Optional[AuthResponse]:
    """Password login; None means the credentials are not accepted"""
    user = get_user_by_email(db, email)
    if not user or not user.password_hash:
        return None
    if not security.verify_password(password, user.password_hash):
        return None
    if not user.is_active or user.is_banned:
        logger.warning(f"Login refused for disabled account {user.id}")
        return None
    if not user.is_email_verified:
        raise AuthorizationError("Please verify your email before logging in")

    _record_login(db, user)
    return build_auth_response(db, user)


def register_oauth_user(db: Session, name: str, email: str, provider: AuthProvider) -> RegistrationResult:
    """Create an account for a provider-verified email"""
    if get_user_by_email(db, email):
        raise ConflictError("User already exists. Please use login instead.")

    now = datetime.utcnow()
    user = User(
        id=str(uuid.uuid4()),
        name=name or "Unknown User",
        email=email,
        role=UserRole.USER.value,
        registration_stage=RegistrationStage.EMAIL_VERIFIED.value,
        auth_provider=provider.value,
        is_email_verified=True,
        email_verified_at=now,
    )
    try:
        db.add(user)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User already exists. Please use login instead.")

    return RegistrationResult(
        user_id=user.id,
        current_stage=RegistrationStage.EMAIL_VERIFIED.value,
        next_action="login",
    )


def oauth_login(db: Session, email: str, provider: AuthProvider) -> AuthResponse:
    user = get_user_by_email(db, email)
    if not user:
        raise NotFoundError("User not found. Please register first.")
    if user.auth_provider != provider.value:
        raise ConflictError(f"This email is registered with {user.auth_provider} provider")
    if not user.is_active or user.is_banned:
        raise AuthorizationError("Account is disabled")

    _record_login(db, user)
    return build_auth_response(db, user)


def complete_profile(db: Session, user_id: str, username: str, profile_pic_url: Optional[str]) -> User:
    """
    Set the username and optional avatar of a verified account.
    Raises ConflictError when the username is taken.
    """
    user = get_user(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    if user.registration_stage != RegistrationStage.EMAIL_VERIFIED.value:
        raise AuthorizationError("Verify your email before completing your profile")

    taken = db.query(User.id).filter(User.username == username, User.id != user_id).first()
    if taken:
        raise ConflictError("Username unavailable")

    user.username = username
    if profile_pic_url:
        user.profile_pic_url = profile_pic_url
    user.registration_stage = RegistrationStage.PROFILE_COMPLETED.value
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Username unavailable")

    db.refresh(user)
    logger.info(f"User {user_id} completed profile as {username}")
    return user
