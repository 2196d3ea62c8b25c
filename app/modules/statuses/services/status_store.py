"""
Persistence for statuses and their views, likes and replies.

Every function here is one unit of work: it commits before returning, or
rolls back and re-raises. Mutations of a status bump its version so clients
holding a stale copy can detect the change.
"""
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Set
import logging
import uuid

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import PersistenceError
from app.modules.statuses.models.status import STATUS_TTL_HOURS, Status, StatusLike, StatusReply, StatusView
from app.modules.user_management.models.user import User, UserRole

logger = logging.getLogger(__name__)


def _active(query, now: Optional[datetime] = None):
    now = now or datetime.utcnow()
    return query.filter(Status.deleted == False, Status.expires_at > now)


def _business_statuses(db: Session, exclude_user_id: str):
    return _active(
        db.query(Status)
        .join(User, User.id == Status.user_id)
        .filter(User.role == UserRole.BUSINESS.value, Status.user_id != exclude_user_id)
    )


def create_status(
    db: Session,
    user_id: str,
    media_url: str,
    media_type: str,
    caption: Optional[str] = None,
    blur_hash: Optional[str] = None,
    duration_millis: int = 0,
) -> Status:
    """Insert a status expiring 24 hours from now"""
    now = datetime.utcnow()
    status = Status(
        id=str(uuid.uuid4()),
        user_id=user_id,
        media_url=media_url,
        media_type=media_type,
        caption=caption,
        blur_hash=blur_hash,
        duration_millis=duration_millis,
        view_count=0,
        like_count=0,
        reply_count=0,
        expires_at=now + timedelta(hours=STATUS_TTL_HOURS),
        created_at=now,
        updated_at=now,
        deleted=False,
        version=0,
    )
    try:
        db.add(status)
        db.commit()
    except Exception:
        db.rollback()
        raise

    created = db.query(Status).filter(Status.id == status.id).first()
    if created is None:
        raise PersistenceError(f"Status {status.id} could not be read back after insert")
    logger.info(f"Created status {created.id} for user {user_id}")
    return created


def get_status(db: Session, status_id: str) -> Optional[Status]:
    """Get a non-deleted status by ID, expired or not"""
    return db.query(Status).filter(Status.id == status_id, Status.deleted == False).first()


def get_user_statuses(db: Session, user_id: str, limit: int = 50) -> List[Status]:
    """Active statuses of one user, newest first"""
    return (
        _active(db.query(Status).filter(Status.user_id == user_id))
        .order_by(Status.created_at.desc())
        .limit(limit)
        .all()
    )


def get_active_by_authors(db: Session, author_ids: List[str]) -> Dict[str, List[Status]]:
    """Active statuses of several authors grouped by author, newest first"""
    if not author_ids:
        return {}

    statuses = (
        _active(db.query(Status).filter(Status.user_id.in_(author_ids)))
        .order_by(Status.created_at.desc())
        .all()
    )
    grouped: Dict[str, List[Status]] = defaultdict(list)
    for status in statuses:
        grouped[status.user_id].append(status)
    return dict(grouped)


def paginate_from_users(
    db: Session, author_ids: List[str], exclude_user_id: str, page: int, page_size: int
) -> List[Status]:
    """One page (1-indexed) of active statuses restricted to the given authors"""
    if not author_ids:
        return []

    return (
        _active(db.query(Status).filter(Status.user_id.in_(author_ids), Status.user_id != exclude_user_id))
        .order_by(Status.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )


def get_recent_business_statuses(db: Session, exclude_user_id: str, page: int, page_size: int) -> List[Status]:
    """One page of active statuses from every business account except the viewer"""
    return (
        _business_statuses(db, exclude_user_id)
        .order_by(Status.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )


def count_business_statuses(db: Session, exclude_user_id: str) -> int:
    """Number of active business statuses the viewer could see"""
    return _business_statuses(db, exclude_user_id).count()


def get_viewed_status_ids(db: Session, viewer_id: str, author_ids: List[str]) -> Set[str]:
    """IDs of statuses by the given authors that the viewer has opened"""
    if not author_ids:
        return set()

    rows = (
        db.query(StatusView.status_id)
        .join(Status, Status.id == StatusView.status_id)
        .filter(StatusView.viewer_id == viewer_id, Status.user_id.in_(author_ids))
        .all()
    )
    return {row.status_id for row in rows}


def get_version(db: Session, status_id: str) -> Optional[int]:
    row = db.query(Status.version).filter(Status.id == status_id, Status.deleted == False).first()
    return row.version if row else None


def _bump(db: Session, status_id: str, now: datetime, **counters) -> int:
    values = {Status.version: Status.version + 1, Status.updated_at: now}
    for column, delta in counters.items():
        attr = getattr(Status, column)
        values[attr] = attr + delta
    return db.query(Status).filter(Status.id == status_id).update(values, synchronize_session=False)


def record_view(db: Session, status_id: str, viewer_id: str, duration_millis: int = 0) -> bool:
    """
    Record that viewer opened a status.

    Returns True when this is the viewer's first view (view_count incremented),
    False when an existing view row was refreshed in place.
    """
    now = datetime.utcnow()
    existing = (
        db.query(StatusView)
        .filter(StatusView.status_id == status_id, StatusView.viewer_id == viewer_id)
        .first()
    )
    try:
        if existing is None:
            db.add(StatusView(
                id=str(uuid.uuid4()),
                status_id=status_id,
                viewer_id=viewer_id,
                view_duration_millis=duration_millis,
                viewed_at=now,
            ))
            db.flush()
            _bump(db, status_id, now, view_count=1)
            db.commit()
            return True

        existing.view_duration_millis = duration_millis
        existing.viewed_at = now
        db.commit()
        return False
    except IntegrityError:
        # A concurrent first view won the race; ours becomes an update
        db.rollback()
        db.query(StatusView).filter(
            StatusView.status_id == status_id, StatusView.viewer_id == viewer_id
        ).update(
            {StatusView.view_duration_millis: duration_millis, StatusView.viewed_at: now},
            synchronize_session=False,
        )
        db.commit()
        return False
    except Exception:
        db.rollback()
        raise


def like_status(db: Session, status_id: str, user_id: str) -> bool:
    """Like a status; False when the like already exists"""
    now = datetime.utcnow()
    try:
        db.add(StatusLike(id=str(uuid.uuid4()), status_id=status_id, user_id=user_id, created_at=now))
        db.flush()
        _bump(db, status_id, now, like_count=1)
        db.commit()
        return True
    except IntegrityError:
        db.rollback()
        logger.debug(f"User {user_id} already liked status {status_id}")
        return False
    except Exception:
        db.rollback()
        raise


def unlike_status(db: Session, status_id: str, user_id: str) -> bool:
    """Remove a like; False when there was nothing to remove"""
    now = datetime.utcnow()
    try:
        deleted = db.query(StatusLike).filter(
            StatusLike.status_id == status_id, StatusLike.user_id == user_id
        ).delete(synchronize_session=False)
        if deleted:
            _bump(db, status_id, now, like_count=-1)
        db.commit()
        return deleted > 0
    except Exception:
        db.rollback()
        raise


def add_reply(
    db: Session,
    status_id: str,
    user_id: str,
    text: Optional[str],
    media_url: Optional[str] = None,
    media_type: Optional[str] = None,
) -> StatusReply:
    """Insert a reply and bump the parent's reply counter in the same transaction"""
    now = datetime.utcnow()
    reply = StatusReply(
        id=str(uuid.uuid4()),
        status_id=status_id,
        user_id=user_id,
        text=text,
        media_url=media_url,
        media_type=media_type,
        created_at=now,
        updated_at=now,
        deleted=False,
        version=0,
    )
    try:
        db.add(reply)
        db.flush()
        _bump(db, status_id, now, reply_count=1)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(reply)
    return reply


def get_replies(db: Session, status_id: str, page: int = 1, page_size: int = 20) -> List[StatusReply]:
    """Replies to a status, newest first"""
    return (
        db.query(StatusReply)
        .filter(StatusReply.status_id == status_id, StatusReply.deleted == False)
        .order_by(StatusReply.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )


def delete_reply(db: Session, reply_id: str, user_id: str) -> bool:
    """Soft-delete a reply written by user_id"""
    now = datetime.utcnow()
    updated = db.query(StatusReply).filter(
        StatusReply.id == reply_id,
        StatusReply.user_id == user_id,
        StatusReply.deleted == False,
    ).update(
        {
            StatusReply.deleted: True,
            StatusReply.deleted_at: now,
            StatusReply.updated_at: now,
            StatusReply.version: StatusReply.version + 1,
        },
        synchronize_session=False,
    )
    db.commit()
    return updated > 0


def _conditional_update(db: Session, status_id: str, user_id: str, expected_version: int, values: dict) -> bool:
    try:
        updated = db.query(Status).filter(
            Status.id == status_id,
            Status.user_id == user_id,
            Status.version == expected_version,
            Status.deleted == False,
        ).update({**values, Status.version: expected_version + 1}, synchronize_session=False)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return updated == 1


def update_caption(db: Session, status_id: str, user_id: str, caption: Optional[str], expected_version: int) -> bool:
    """Change the caption if the author and version match; False means nothing changed"""
    return _conditional_update(
        db, status_id, user_id, expected_version,
        {Status.caption: caption, Status.updated_at: datetime.utcnow()},
    )


def soft_delete_status(db: Session, status_id: str, user_id: str, expected_version: int) -> bool:
    """Soft-delete if the author and version match; False means nothing changed"""
    now = datetime.utcnow()
    return _conditional_update(
        db, status_id, user_id, expected_version,
        {Status.deleted: True, Status.deleted_at: now, Status.updated_at: now},
    )


def delete_expired(db: Session) -> int:
    """Soft-delete every status past its expiry; returns how many were removed"""
    now = datetime.utcnow()
    try:
        removed = db.query(Status).filter(
            Status.expires_at < now, Status.deleted == False
        ).update(
            {
                Status.deleted: True,
                Status.deleted_at: now,
                Status.updated_at: now,
                Status.version: Status.version + 1,
            },
            synchronize_session=False,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"Soft-deleted {removed} expired statuses")
    return removed
