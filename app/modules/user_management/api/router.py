from typing import Any
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.core.responses import ok
from app.db.session import get_db
from app.deps import get_current_user
from app.modules.business_profiles.schemas.business_profile import BusinessProfile as BusinessProfileSchema
from app.modules.business_profiles.services.business_profile import get_business_profile
from app.modules.user_management.models.user import User
from app.modules.user_management.schemas.user import User as UserSchema, UserBasicInfo
from app.modules.user_management.services.user import get_user

router = APIRouter()
logger = logging.getLogger("app")

def _validate_user(db: Session, user_id: str) -> User:
    """Return the user or raise NotFoundError"""
    user = get_user(db, user_id=user_id)
    if not user:
        raise NotFoundError("User not found")
    return user

@router.get("/me")
def read_user_me(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Get current user together with their business profile, if any"""
    profile = get_business_profile(db, current_user.id)
    return ok("User retrieved successfully", {
        "user": UserSchema.model_validate(current_user).model_dump(),
        "business_profile": BusinessProfileSchema.model_validate(profile).model_dump() if profile else None,
    })

@router.get("/{user_id}")
def read_user(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Public details of another user"""
    user = _validate_user(db, user_id)
    return ok("User retrieved successfully", UserBasicInfo.model_validate(user).model_dump())
