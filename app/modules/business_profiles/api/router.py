from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core import security
from app.core.errors import NotFoundError
from app.core.responses import ok
from app.db.session import get_db
from app.deps import get_current_user
from app.modules.business_profiles.schemas.business_profile import BusinessProfile as BusinessProfileSchema
from app.modules.business_profiles.schemas.business_profile import BusinessProfileCreate
from app.modules.business_profiles.services.business_profile import (
    create_business_profile,
    follow_business,
    get_business_profile,
    unfollow_business,
)
from app.modules.user_management.models.user import User, UserRole

router = APIRouter()

@router.post("", status_code=status.HTTP_201_CREATED)
def create_profile(
    profile_in: BusinessProfileCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Create a business profile. The response carries a new token with the BUSINESS role.
    """
    profile = create_business_profile(db, current_user, profile_in)
    token = security.create_access_token(current_user.id, role=UserRole.BUSINESS.value)
    return ok("Business profile created successfully", {
        "token": token,
        "business_profile": BusinessProfileSchema.model_validate(profile).model_dump(),
    })

@router.get("/me")
def read_my_profile(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    profile = get_business_profile(db, current_user.id)
    if not profile:
        raise NotFoundError("Business profile not found")
    return ok("Business profile retrieved", BusinessProfileSchema.model_validate(profile).model_dump())

@router.post("/{user_id}/follow")
def follow(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    followed = follow_business(db, current_user.id, user_id)
    return ok("Following business" if followed else "Already following", {"following": True})

@router.delete("/{user_id}/follow")
def unfollow(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    removed = unfollow_business(db, current_user.id, user_id)
    return ok("Unfollowed business" if removed else "Not following", {"following": False})
