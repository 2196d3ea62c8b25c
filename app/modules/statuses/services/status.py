from typing import List, Optional
import logging

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from app.db.session import SessionLocal
from app.modules.media.service import MediaService
from app.modules.notifications.services.notification_events import (
    create_status_like_notification,
    create_status_reply_notification,
)
from app.modules.notifications.services.push import PushSender
from app.modules.statuses.models.status import MediaType, Status, StatusReply
from app.modules.statuses.schemas.status import OtherUserStatus, StatusUploadResponse
from app.modules.statuses.services import status_store

logger = logging.getLogger(__name__)

MAX_CAPTION_LENGTH = 2200


def parse_media_type(value: str) -> MediaType:
    try:
        return MediaType(value.strip().upper())
    except (AttributeError, ValueError):
        raise ValidationError("mediaType must be IMAGE or VIDEO")


def _create_in_new_session(**fields) -> Status:
    db = SessionLocal()
    try:
        return status_store.create_status(db, **fields)
    finally:
        db.close()


async def upload_status(
    media: MediaService,
    user_id: str,
    data: bytes,
    filename: Optional[str],
    media_type: MediaType,
    caption: Optional[str] = None,
    duration_millis: int = 0,
    create=_create_in_new_session,
) -> StatusUploadResponse:
    """
    Process and upload the media, then persist the status.
    If persisting fails the uploaded object is removed before the error propagates.
    """
    if caption is not None and len(caption) > MAX_CAPTION_LENGTH:
        raise ValidationError(f"Caption must be at most {MAX_CAPTION_LENGTH} characters")

    if media_type == MediaType.VIDEO:
        result = await media.upload_video(data, filename)
        duration_millis = result.duration_millis or duration_millis
    else:
        result = await media.upload_image(data, "status_images")
        duration_millis = 0

    try:
        status = await run_in_threadpool(
            create,
            user_id=user_id,
            media_url=result.url,
            media_type=media_type.value,
            caption=caption,
            blur_hash=result.blur_hash,
            duration_millis=duration_millis,
        )
    except Exception:
        await media.discard(result.url)
        raise

    return StatusUploadResponse.from_status(status)


def get_my_statuses(db: Session, user_id: str) -> List[StatusUploadResponse]:
    return [StatusUploadResponse.from_status(s) for s in status_store.get_user_statuses(db, user_id)]


def get_statuses_for_viewer(db: Session, author_id: str, viewer_id: str) -> List[OtherUserStatus]:
    """Another user's active statuses, flagged with what the viewer has seen"""
    statuses = status_store.get_user_statuses(db, author_id)
    viewed = status_store.get_viewed_status_ids(db, viewer_id, [author_id])
    return [OtherUserStatus.from_status(s, s.id in viewed) for s in statuses]


def _require_status(db: Session, status_id: str) -> Status:
    status = status_store.get_status(db, status_id)
    if not status:
        raise NotFoundError("Status not found")
    return status


def _require_author(status: Status, user_id: str) -> None:
    if status.user_id != user_id:
        raise AuthorizationError("You can only modify your own status")


def update_caption(
    db: Session, status_id: str, user_id: str, caption: Optional[str], expected_version: Optional[int] = None
) -> StatusUploadResponse:
    """Edit a caption with an optimistic version check"""
    status = _require_status(db, status_id)
    _require_author(status, user_id)

    version = status.version if expected_version is None else expected_version
    if not status_store.update_caption(db, status_id, user_id, caption, version):
        raise ConflictError(
            "Status was modified by another request",
            data={"current_version": status_store.get_version(db, status_id)},
        )

    db.expire_all()
    return StatusUploadResponse.from_status(_require_status(db, status_id))


def delete_status(db: Session, status_id: str, user_id: str) -> None:
    """Soft-delete a status at its current version"""
    status = _require_status(db, status_id)
    _require_author(status, user_id)

    version = status_store.get_version(db, status_id)
    if version is None or not status_store.soft_delete_status(db, status_id, user_id, version):
        raise ConflictError("Status was modified by another request")
    logger.info(f"User {user_id} deleted status {status_id}")


def view_status(db: Session, status_id: str, viewer_id: str, duration_millis: int = 0) -> bool:
    _require_status(db, status_id)
    return status_store.record_view(db, status_id, viewer_id, duration_millis)


def like(db: Session, push: PushSender, status_id: str, user_id: str) -> bool:
    status = _require_status(db, status_id)
    liked = status_store.like_status(db, status_id, user_id)
    if liked:
        create_status_like_notification(db, push, status, user_id)
    return liked


def unlike(db: Session, status_id: str, user_id: str) -> bool:
    _require_status(db, status_id)
    return status_store.unlike_status(db, status_id, user_id)


def reply(db: Session, push: PushSender, status_id: str, user_id: str, text: str) -> StatusReply:
    status = _require_status(db, status_id)
    created = status_store.add_reply(db, status_id, user_id, text)
    create_status_reply_notification(db, push, status, created, user_id)
    return created


def list_replies(db: Session, status_id: str, page: int, page_size: int) -> List[StatusReply]:
    _require_status(db, status_id)
    return status_store.get_replies(db, status_id, page, page_size)


def delete_reply(db: Session, reply_id: str, user_id: str) -> None:
    if not status_store.delete_reply(db, reply_id, user_id):
        raise NotFoundError("Reply not found")
