from typing import Optional
import uuid
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.modules.business_profiles.models.business_profile import BusinessFollower, BusinessProfile
from app.modules.business_profiles.schemas.business_profile import BusinessProfileCreate
from app.modules.user_management.models.user import RegistrationStage, User, UserRole

logger = logging.getLogger(__name__)

def get_business_profile(db: Session, user_id: str) -> Optional[BusinessProfile]:
    """Get the business profile owned by a user"""
    return db.query(BusinessProfile).filter(BusinessProfile.user_id == user_id).first()

def create_business_profile(db: Session, user: User, profile_in: BusinessProfileCreate) -> BusinessProfile:
    """
    Create a business profile and promote the owner to a business account
    """
    if not profile_in.is_terms_accepted:
        raise ValidationError("You must accept the terms to create a business profile")

    if get_business_profile(db, user.id):
        raise ConflictError("Business profile already exists")

    profile = BusinessProfile(id=str(uuid.uuid4()), user_id=user.id, **profile_in.model_dump())
    try:
        db.add(profile)
        db.query(User).filter(User.id == user.id).update(
            {
                User.role: UserRole.BUSINESS.value,
                User.registration_stage: RegistrationStage.BUSINESS_ADDED.value,
            },
            synchronize_session=False,
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Business profile already exists")

    db.refresh(profile)
    logger.info(f"User {user.id} created business profile {profile.id}")
    return profile

def follow_business(db: Session, follower_id: str, business_id: str) -> bool:
    """Follow a business account; False when already following"""
    if follower_id == business_id:
        raise ValidationError("You cannot follow yourself")

    business = db.query(User).filter(User.id == business_id, User.role == UserRole.BUSINESS.value).first()
    if not business:
        raise NotFoundError("Business not found")

    try:
        db.add(BusinessFollower(id=str(uuid.uuid4()), business_id=business_id, follower_id=follower_id))
        db.commit()
        return True
    except IntegrityError:
        db.rollback()
        return False

def unfollow_business(db: Session, follower_id: str, business_id: str) -> bool:
    """Stop following a business account; False when not following"""
    deleted = db.query(BusinessFollower).filter(
        BusinessFollower.business_id == business_id,
        BusinessFollower.follower_id == follower_id,
    ).delete(synchronize_session=False)
    db.commit()
    return deleted > 0
