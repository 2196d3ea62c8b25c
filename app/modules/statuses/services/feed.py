"""
Discover feed aggregation.

Small corpora are served as plain recent pagination. Once there are more
active business statuses than RECOMMENDATION_THRESHOLD, pages are drawn from
a ranked set of candidate authors instead; ranking only runs in that case.
Author info and viewed ids are read concurrently, each on its own session,
and joined before aggregation.
"""
import asyncio
import logging
import math
from typing import Callable, Dict, List, Set

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.modules.statuses.models.status import Status
from app.modules.statuses.schemas.status import OtherUserStatus, StatusGroup, StatusGroupsResponse
from app.modules.statuses.services import status_store
from app.modules.statuses.services.recommendation import CandidateRanker
from app.modules.user_management.schemas.user import UserBasicInfo
from app.modules.user_management.services.user import get_users_basic_info

logger = logging.getLogger(__name__)

RECOMMENDATION_THRESHOLD = 30
DEFAULT_PAGE_SIZE = 10
DEFAULT_AUTHOR_NAME = "Business User"


def group_by_author(
    statuses: List[Status],
    authors: Dict[str, UserBasicInfo],
    viewed_ids: Set[str],
) -> List[StatusGroup]:
    """Group a flat page of statuses per author, most recently updated first"""
    by_author: Dict[str, List[Status]] = {}
    for status in statuses:
        by_author.setdefault(status.user_id, []).append(status)

    groups = []
    for author_id, author_statuses in by_author.items():
        author = authors.get(author_id)
        if author is None:
            logger.warning(f"Skipping statuses of unknown author {author_id}")
            continue

        items = [OtherUserStatus.from_status(s, s.id in viewed_ids) for s in author_statuses]
        groups.append(StatusGroup(
            author_id=author_id,
            author_name=author.name or DEFAULT_AUTHOR_NAME,
            author_avatar=author.profile_pic_url,
            statuses=items,
            updated_at=max(item.last_updated for item in items),
            unviewed_count=sum(1 for item in items if not item.is_viewed),
        ))

    groups.sort(key=lambda group: group.updated_at, reverse=True)
    return groups


class FeedAggregator:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        ranker: CandidateRanker = None,
        threshold: int = RECOMMENDATION_THRESHOLD,
    ):
        self.session_factory = session_factory
        self.ranker = ranker or CandidateRanker()
        self.threshold = threshold

    def _read(self, fn, *args):
        db = self.session_factory()
        try:
            return fn(db, *args)
        finally:
            db.close()

    async def _run(self, fn, *args):
        return await run_in_threadpool(self._read, fn, *args)

    async def get_feed(self, viewer_id: str, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> StatusGroupsResponse:
        total = await self._run(status_store.count_business_statuses, viewer_id)

        candidates = []
        if total > self.threshold:
            candidates = await self._run(self.ranker.rank, viewer_id)

        if candidates:
            logger.info(f"Serving ranked feed to {viewer_id} from {len(candidates)} candidate authors")
            statuses = await self._run(status_store.paginate_from_users, candidates, viewer_id, page, page_size)
        else:
            logger.info(f"Serving recent feed to {viewer_id} ({total} active statuses)")
            statuses = await self._run(status_store.get_recent_business_statuses, viewer_id, page, page_size)

        total_pages = math.ceil(total / page_size) if total else 0

        if not statuses:
            return StatusGroupsResponse(groups=[], has_more=False, total_pages=total_pages, current_page=page)

        author_ids = list({status.user_id for status in statuses})
        authors, viewed_ids = await asyncio.gather(
            self._run(get_users_basic_info, author_ids),
            self._run(status_store.get_viewed_status_ids, viewer_id, author_ids),
        )

        return StatusGroupsResponse(
            groups=group_by_author(statuses, authors, viewed_ids),
            has_more=page < total_pages,
            total_pages=total_pages,
            current_page=page,
        )
