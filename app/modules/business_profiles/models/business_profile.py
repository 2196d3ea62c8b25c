from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from app.db.session import Base


class BusinessProfile(Base):
    __tablename__ = "business_profiles"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), unique=True, index=True, nullable=False)
    business_name = Column(String, nullable=False)
    category = Column(String, nullable=False)
    phone_number = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String, nullable=True)
    country = Column(String, nullable=True)
    is_terms_accepted = Column(Boolean, default=False)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class BusinessFollower(Base):
    __tablename__ = "business_followers"
    __table_args__ = (UniqueConstraint("business_id", "follower_id", name="uq_business_follower"),)

    id = Column(String, primary_key=True, index=True)
    business_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)  # The followed business user
    follower_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    created_at = Column(DateTime, default=func.now())
