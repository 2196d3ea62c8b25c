from typing import List, Optional
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def to_millis(value: Optional[datetime]) -> int:
    """Epoch milliseconds; naive datetimes are stored in UTC"""
    if value is None:
        return 0
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


class StatusUploadResponse(BaseModel):
    """Status as returned to its author"""
    id: str
    media_url: str
    caption: Optional[str] = None
    media_type: str
    blur_hash: Optional[str] = None
    duration_millis: int = 0
    view_count: int = 0
    like_count: int = 0
    reply_count: int = 0
    created_at: int
    last_updated: int
    expires_at: int
    version: int

    @classmethod
    def from_status(cls, status) -> "StatusUploadResponse":
        return cls(
            id=status.id,
            media_url=status.media_url,
            caption=status.caption,
            media_type=status.media_type,
            blur_hash=status.blur_hash,
            duration_millis=status.duration_millis or 0,
            view_count=status.view_count,
            like_count=status.like_count,
            reply_count=status.reply_count,
            created_at=to_millis(status.created_at),
            last_updated=to_millis(status.updated_at),
            expires_at=to_millis(status.expires_at),
            version=status.version,
        )


class OtherUserStatus(BaseModel):
    """Status as seen by another user"""
    id: str
    media_url: str
    caption: Optional[str] = None
    media_type: str
    created_at: int
    is_viewed: bool = False
    blur_hash: Optional[str] = None
    duration_millis: int = 0
    likes_count: int = 0
    views_count: int = 0
    replies_count: int = 0
    expires_at: int
    last_updated: int
    version: int

    @classmethod
    def from_status(cls, status, is_viewed: bool) -> "OtherUserStatus":
        return cls(
            id=status.id,
            media_url=status.media_url,
            caption=status.caption,
            media_type=status.media_type,
            created_at=to_millis(status.created_at),
            is_viewed=is_viewed,
            blur_hash=status.blur_hash,
            duration_millis=status.duration_millis or 0,
            likes_count=status.like_count,
            views_count=status.view_count,
            replies_count=status.reply_count,
            expires_at=to_millis(status.expires_at),
            last_updated=to_millis(status.updated_at),
            version=status.version,
        )


class StatusGroup(BaseModel):
    author_id: str
    author_name: str
    author_avatar: Optional[str] = None
    statuses: List[OtherUserStatus]
    updated_at: int
    unviewed_count: int


class StatusGroupsResponse(BaseModel):
    groups: List[StatusGroup]
    has_more: bool
    total_pages: int
    current_page: int


class CaptionUpdate(BaseModel):
    caption: Optional[str] = Field(None, max_length=2200)
    version: Optional[int] = Field(None, ge=0)


class ReplyCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=1000)


class StatusReply(BaseModel):
    id: str
    status_id: str
    user_id: str
    text: Optional[str] = None
    media_url: Optional[str] = None
    media_type: Optional[str] = None
    created_at: datetime
    version: int

    model_config = ConfigDict(from_attributes=True)
