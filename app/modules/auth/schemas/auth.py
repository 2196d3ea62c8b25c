from typing import Annotated, List, Optional
from pydantic import AfterValidator, BaseModel, EmailStr, Field

from app.modules.business_profiles.schemas.business_profile import BusinessProfile
from app.modules.user_management.schemas.user import User


def _normalize_email(email: Optional[str]) -> Optional[str]:
    """Normalize email to lowercase."""
    return email.strip().lower() if email else None


NormalizedEmail = Annotated[EmailStr, AfterValidator(_normalize_email)]


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: NormalizedEmail
    password: str = Field(..., min_length=8, max_length=128)


class RegistrationResult(BaseModel):
    user_id: str
    current_stage: str
    next_action: str
    is_existing_user: bool = False


class VerifyEmailRequest(BaseModel):
    user_id: str
    code: str = Field(..., min_length=4, max_length=4)


class ResendOtpRequest(BaseModel):
    user_id: str


class LoginRequest(BaseModel):
    email: NormalizedEmail
    password: str


class AuthResponse(BaseModel):
    token: str
    user: User
    business_profile: Optional[BusinessProfile] = None


class OAuthRequest(BaseModel):
    provider: str
    token: str


class CheckUsernameRequest(BaseModel):
    username: str
    user_id: Optional[str] = None


class UsernameAvailability(BaseModel):
    available: bool
    suggestions: List[str] = []
