"""
Candidate authors for the discover feed.

Each source proposes business user IDs for a viewer. The ranker asks the
sources in priority order, keeps the first occurrence of every author and
tops the list up with random business users when it is too short.
"""
from typing import Iterable, List, Optional
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.modules.business_profiles.models.business_profile import BusinessFollower
from app.modules.statuses.models.status import Status
from app.modules.user_management.models.user import User, UserRole

logger = logging.getLogger(__name__)

MIN_CANDIDATES = 5
MAX_CANDIDATES = 20


def _business_users(db: Session, viewer_id: str):
    return db.query(User.id).filter(
        User.role == UserRole.BUSINESS.value,
        User.id != viewer_id,
        User.is_active == True,
    )


class CandidateSource:
    """Proposes author IDs for a viewer, best first"""
    name = "base"

    def candidates(self, db: Session, viewer_id: str, exclude: Iterable[str] = ()) -> List[str]:
        raise NotImplementedError


class FollowedAuthorsSource(CandidateSource):
    name = "followed"

    def candidates(self, db: Session, viewer_id: str, exclude: Iterable[str] = ()) -> List[str]:
        rows = (
            db.query(BusinessFollower.business_id)
            .filter(BusinessFollower.follower_id == viewer_id)
            .order_by(BusinessFollower.created_at.desc())
            .all()
        )
        return [row.business_id for row in rows]


class PopularAuthorsSource(CandidateSource):
    """Business users ordered by how many statuses they have posted"""
    name = "popular"

    def __init__(self, limit: int = 10):
        self.limit = limit

    def candidates(self, db: Session, viewer_id: str, exclude: Iterable[str] = ()) -> List[str]:
        status_count = func.count(Status.id)
        rows = (
            db.query(User.id, status_count.label("status_count"))
            .join(Status, Status.user_id == User.id)
            .filter(
                User.role == UserRole.BUSINESS.value,
                User.id != viewer_id,
                Status.deleted == False,
            )
            .group_by(User.id)
            .order_by(status_count.desc(), User.id)
            .limit(self.limit)
            .all()
        )
        return [row.id for row in rows]


class SimilarAuthorsSource(CandidateSource):
    # TODO: match on business category and location once the viewer's interests are stored
    name = "similar"

    def __init__(self, limit: int = 5):
        self.limit = limit

    def candidates(self, db: Session, viewer_id: str, exclude: Iterable[str] = ()) -> List[str]:
        rows = _business_users(db, viewer_id).order_by(func.random()).limit(self.limit).all()
        return [row.id for row in rows]


class RandomAuthorsSource(CandidateSource):
    name = "random"

    def candidates(self, db: Session, viewer_id: str, exclude: Iterable[str] = (), limit: int = MIN_CANDIDATES) -> List[str]:
        query = _business_users(db, viewer_id)
        excluded = list(exclude)
        if excluded:
            query = query.filter(User.id.notin_(excluded))
        rows = query.order_by(func.random()).limit(limit).all()
        return [row.id for row in rows]


class CandidateRanker:
    def __init__(
        self,
        sources: Optional[List[CandidateSource]] = None,
        fill_source: Optional[RandomAuthorsSource] = None,
        min_candidates: int = MIN_CANDIDATES,
        max_candidates: int = MAX_CANDIDATES,
    ):
        self.sources = sources if sources is not None else [
            FollowedAuthorsSource(),
            PopularAuthorsSource(limit=10),
            SimilarAuthorsSource(limit=5),
        ]
        self.fill_source = fill_source or RandomAuthorsSource()
        self.min_candidates = min_candidates
        self.max_candidates = max_candidates

    def rank(self, db: Session, viewer_id: str) -> List[str]:
        """Deduplicated candidate author IDs in priority order, capped at max_candidates"""
        ranked: List[str] = []
        seen = {viewer_id}

        def extend(ids: Iterable[str]) -> None:
            for author_id in ids:
                if author_id not in seen:
                    seen.add(author_id)
                    ranked.append(author_id)

        for source in self.sources:
            extend(source.candidates(db, viewer_id, exclude=seen))

        if len(ranked) < self.min_candidates:
            extend(self.fill_source.candidates(
                db, viewer_id, exclude=seen, limit=self.min_candidates - len(ranked)
            ))

        logger.debug(f"Ranked {len(ranked)} candidate authors for viewer {viewer_id}")
        return ranked[: self.max_candidates]
