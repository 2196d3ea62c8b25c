import enum

from sqlalchemy import Boolean, Column, String, DateTime, ForeignKey
from sqlalchemy.sql import func

from app.db.session import Base


class UserRole(str, enum.Enum):
    USER = "USER"
    BUSINESS = "BUSINESS"
    ADMIN = "ADMIN"


class RegistrationStage(str, enum.Enum):
    EMAIL_SUBMITTED = "EMAIL_SUBMITTED"
    EMAIL_VERIFIED = "EMAIL_VERIFIED"
    PROFILE_COMPLETED = "PROFILE_COMPLETED"
    BUSINESS_ADDED = "BUSINESS_ADDED"


class AuthProvider(str, enum.Enum):
    EMAIL = "EMAIL"
    GOOGLE = "GOOGLE"
    FACEBOOK = "FACEBOOK"


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    username = Column(String, unique=True, index=True, nullable=True)
    password_hash = Column(String, nullable=True)  # Null for OAuth accounts
    role = Column(String, default=UserRole.USER.value, nullable=False)
    registration_stage = Column(String, default=RegistrationStage.EMAIL_SUBMITTED.value, nullable=False)
    auth_provider = Column(String, default=AuthProvider.EMAIL.value, nullable=False)
    is_email_verified = Column(Boolean, default=False)
    email_verified_at = Column(DateTime, nullable=True)
    profile_pic_url = Column(String, nullable=True)
    fcm_token = Column(String, nullable=True)
    is_active = Column(Boolean, default=True)
    is_banned = Column(Boolean, default=False)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class EmailVerificationToken(Base):
    __tablename__ = "email_verification_tokens"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), unique=True, index=True)
    code_hash = Column(String, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=func.now())
