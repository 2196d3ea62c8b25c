from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

class BusinessProfileBase(BaseModel):
    business_name: str = Field(..., min_length=2, max_length=120)
    category: str = Field(..., min_length=2, max_length=60)
    phone_number: str = Field(..., min_length=7, max_length=20)
    description: Optional[str] = Field(None, max_length=1000)
    location: Optional[str] = None
    country: Optional[str] = None

class BusinessProfileCreate(BusinessProfileBase):
    is_terms_accepted: bool

    @field_validator("phone_number")
    @classmethod
    def validate_phone_number(cls, v: str) -> str:
        cleaned = v.replace(" ", "").replace("-", "")
        digits = cleaned[1:] if cleaned.startswith("+") else cleaned
        if not digits.isdigit():
            raise ValueError("Phone number may only contain digits and a leading +")
        return cleaned

class BusinessProfileInDBBase(BusinessProfileBase):
    id: str
    user_id: str
    is_terms_accepted: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class BusinessProfile(BusinessProfileInDBBase):
    """Business profile returned to client"""
    pass
