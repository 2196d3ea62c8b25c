import enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from app.db.session import Base

STATUS_TTL_HOURS = 24


class MediaType(str, enum.Enum):
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"


class Status(Base):
    __tablename__ = "statuses"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    media_url = Column(String, nullable=False)
    media_type = Column(String, nullable=False)
    caption = Column(Text, nullable=True)
    blur_hash = Column(String, nullable=True)
    duration_millis = Column(Integer, default=0, nullable=False)
    view_count = Column(Integer, default=0, nullable=False)
    like_count = Column(Integer, default=0, nullable=False)
    reply_count = Column(Integer, default=0, nullable=False)
    expires_at = Column(DateTime, index=True, nullable=False)
    created_at = Column(DateTime, default=func.now(), index=True)
    updated_at = Column(DateTime, default=func.now())
    deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)
    version = Column(Integer, default=0, nullable=False)


class StatusView(Base):
    __tablename__ = "status_views"
    __table_args__ = (UniqueConstraint("status_id", "viewer_id", name="uq_status_view"),)

    id = Column(String, primary_key=True, index=True)
    status_id = Column(String, ForeignKey("statuses.id"), index=True, nullable=False)
    viewer_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    view_duration_millis = Column(Integer, default=0, nullable=False)
    viewed_at = Column(DateTime, default=func.now())


class StatusLike(Base):
    __tablename__ = "status_likes"
    __table_args__ = (UniqueConstraint("status_id", "user_id", name="uq_status_like"),)

    id = Column(String, primary_key=True, index=True)
    status_id = Column(String, ForeignKey("statuses.id"), index=True, nullable=False)
    user_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    created_at = Column(DateTime, default=func.now())


class StatusReply(Base):
    __tablename__ = "status_replies"

    id = Column(String, primary_key=True, index=True)
    status_id = Column(String, ForeignKey("statuses.id"), index=True, nullable=False)
    user_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    text = Column(Text, nullable=True)
    media_url = Column(String, nullable=True)
    media_type = Column(String, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now())
    deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)
    version = Column(Integer, default=0, nullable=False)
