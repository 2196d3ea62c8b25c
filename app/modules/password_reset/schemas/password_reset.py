from pydantic import BaseModel, Field

from app.modules.auth.schemas.auth import NormalizedEmail


class ForgotPasswordRequest(BaseModel):
    email: NormalizedEmail


class ResetPasswordRequest(BaseModel):
    email: NormalizedEmail
    otp: str = Field(..., max_length=6)
    new_password: str = Field(..., min_length=8, max_length=128)
