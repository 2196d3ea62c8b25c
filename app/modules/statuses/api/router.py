from typing import Any, Optional
import logging

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.core.responses import ok
from app.db.session import get_db
from app.deps import (
    get_current_business_user,
    get_current_user,
    get_feed_aggregator,
    get_media_service,
    get_push_sender,
)
from app.modules.media.service import MediaService
from app.modules.notifications.services.push import PushSender
from app.modules.statuses.schemas.status import CaptionUpdate, ReplyCreate, StatusReply
from app.modules.statuses.services import status as status_service
from app.modules.statuses.services.feed import DEFAULT_PAGE_SIZE, FeedAggregator
from app.modules.user_management.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_status(
    caption: Optional[str] = Form(None),
    media_type: str = Form(..., alias="mediaType"),
    duration_millis: int = Form(0, alias="durationMillis", ge=0),
    file: UploadFile = File(...),
    media: MediaService = Depends(get_media_service),
    current_user: User = Depends(get_current_business_user),
) -> Any:
    """
    Create a status from an uploaded image or video. Business accounts only.
    """
    kind = status_service.parse_media_type(media_type)
    data = await file.read()
    logger.info(f"User {current_user.id} uploading {kind.value} status ({len(data)} bytes)")

    created = await status_service.upload_status(
        media,
        user_id=current_user.id,
        data=data,
        filename=file.filename,
        media_type=kind,
        caption=caption or None,
        duration_millis=duration_millis,
    )
    return ok("Status uploaded successfully", created.model_dump())

@router.get("")
def read_my_statuses(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Get the caller's active statuses"""
    statuses = status_service.get_my_statuses(db, current_user.id)
    return ok("Statuses retrieved", [s.model_dump() for s in statuses])

@router.get("/discover")
async def discover_statuses(
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, alias="pageSize", ge=1, le=50),
    feed: FeedAggregator = Depends(get_feed_aggregator),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Statuses from business accounts grouped per author"""
    result = await feed.get_feed(current_user.id, page, page_size)
    return ok("Statuses retrieved", result.model_dump())

@router.get("/users/{user_id}")
def read_user_statuses(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Get another user's active statuses"""
    statuses = status_service.get_statuses_for_viewer(db, user_id, current_user.id)
    return ok("Statuses retrieved", [s.model_dump() for s in statuses])

@router.delete("")
def delete_status(
    id: str = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Soft-delete one of the caller's statuses"""
    status_service.delete_status(db, id, current_user.id)
    return ok("Status deleted successfully")

@router.put("/{status_id}/caption")
def update_status_caption(
    status_id: str,
    caption_in: CaptionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Edit a caption; send the version you last saw to guard against concurrent edits"""
    updated = status_service.update_caption(db, status_id, current_user.id, caption_in.caption, caption_in.version)
    return ok("Caption updated", updated.model_dump())

@router.post("/{status_id}/view")
def view_status(
    status_id: str,
    duration: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Record that the caller viewed a status"""
    first_view = status_service.view_status(db, status_id, current_user.id, duration)
    return ok("View recorded" if first_view else "View updated", {"new_view": first_view})

@router.post("/{status_id}/like")
def like_status(
    status_id: str,
    db: Session = Depends(get_db),
    push: PushSender = Depends(get_push_sender),
    current_user: User = Depends(get_current_user),
) -> Any:
    liked = status_service.like(db, push, status_id, current_user.id)
    return ok("Status liked" if liked else "Already liked", {"liked": liked})

@router.delete("/{status_id}/like")
def unlike_status(
    status_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    removed = status_service.unlike(db, status_id, current_user.id)
    return ok("Like removed" if removed else "Not liked", {"removed": removed})

@router.post("/{status_id}/replies", status_code=status.HTTP_201_CREATED)
def reply_to_status(
    status_id: str,
    reply_in: ReplyCreate,
    db: Session = Depends(get_db),
    push: PushSender = Depends(get_push_sender),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Reply to a status; the author is notified"""
    reply = status_service.reply(db, push, status_id, current_user.id, reply_in.text)
    return ok("Reply added", StatusReply.model_validate(reply).model_dump())

@router.get("/{status_id}/replies")
def read_status_replies(
    status_id: str,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, alias="pageSize", ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    replies = status_service.list_replies(db, status_id, page, page_size)
    return ok("Replies retrieved", [StatusReply.model_validate(r).model_dump() for r in replies])

@router.delete("/replies/{reply_id}")
def delete_status_reply(
    reply_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    status_service.delete_reply(db, reply_id, current_user.id)
    return ok("Reply deleted")
