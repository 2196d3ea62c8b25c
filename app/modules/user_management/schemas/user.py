from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr

class UserBase(BaseModel):
    name: str
    email: EmailStr
    username: Optional[str] = None
    profile_pic_url: Optional[str] = None

class UserInDBBase(UserBase):
    id: str
    role: str
    registration_stage: str
    auth_provider: str
    is_email_verified: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class User(UserInDBBase):
    """User model returned to client"""
    pass

class UserBasicInfo(BaseModel):
    """Author details shown next to statuses"""
    id: str
    name: str
    profile_pic_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class FCMTokenUpdate(BaseModel):
    token: str
