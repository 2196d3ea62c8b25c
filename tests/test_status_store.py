from datetime import datetime, timedelta

from app.modules.statuses.models.status import Status
from app.modules.statuses.services import status_store
from app.modules.user_management.models.user import UserRole

from conftest import make_status, make_user


def _reload(db, status_id):
    db.expire_all()
    return db.query(Status).filter(Status.id == status_id).first()


def test_create_status_sets_24h_expiry_and_version_zero(db):
    author = make_user(db, role=UserRole.BUSINESS)

    status = status_store.create_status(db, author.id, "https://cdn.test/a.jpg", "IMAGE", caption="Hello")

    assert status.version == 0
    assert status.view_count == status.like_count == status.reply_count == 0
    assert status.deleted is False
    assert timedelta(hours=23, minutes=59) < status.expires_at - status.created_at <= timedelta(hours=24)


def test_first_view_counts_once_and_repeat_view_only_refreshes(db):
    author = make_user(db, role=UserRole.BUSINESS)
    viewer = make_user(db)
    status = make_status(db, author.id)

    assert status_store.record_view(db, status.id, viewer.id, 1500) is True
    assert status_store.record_view(db, status.id, viewer.id, 3000) is False

    reloaded = _reload(db, status.id)
    assert reloaded.view_count == 1
    assert reloaded.version == 1
    assert status_store.get_viewed_status_ids(db, viewer.id, [author.id]) == {status.id}


def test_duplicate_like_is_rejected_without_touching_counters(db):
    author = make_user(db, role=UserRole.BUSINESS)
    fan = make_user(db)
    status = make_status(db, author.id)

    assert status_store.like_status(db, status.id, fan.id) is True
    assert status_store.like_status(db, status.id, fan.id) is False

    reloaded = _reload(db, status.id)
    assert reloaded.like_count == 1
    assert reloaded.version == 1


def test_unlike_without_like_changes_nothing(db):
    author = make_user(db, role=UserRole.BUSINESS)
    fan = make_user(db)
    status = make_status(db, author.id)

    assert status_store.unlike_status(db, status.id, fan.id) is False

    reloaded = _reload(db, status.id)
    assert reloaded.like_count == 0
    assert reloaded.version == 0


def test_like_then_unlike_restores_count_and_bumps_version_twice(db):
    author = make_user(db, role=UserRole.BUSINESS)
    fan = make_user(db)
    status = make_status(db, author.id)

    status_store.like_status(db, status.id, fan.id)
    assert status_store.unlike_status(db, status.id, fan.id) is True

    reloaded = _reload(db, status.id)
    assert reloaded.like_count == 0
    assert reloaded.version == 2


def test_reply_increments_reply_count(db):
    author = make_user(db, role=UserRole.BUSINESS)
    fan = make_user(db)
    status = make_status(db, author.id)

    reply = status_store.add_reply(db, status.id, fan.id, "Nice!")

    assert reply.text == "Nice!"
    assert _reload(db, status.id).reply_count == 1
    assert [r.id for r in status_store.get_replies(db, status.id)] == [reply.id]


def test_delete_reply_only_by_its_author(db):
    author = make_user(db, role=UserRole.BUSINESS)
    fan = make_user(db)
    status = make_status(db, author.id)
    reply = status_store.add_reply(db, status.id, fan.id, "Hi")

    assert status_store.delete_reply(db, reply.id, author.id) is False
    assert status_store.delete_reply(db, reply.id, fan.id) is True
    assert status_store.get_replies(db, status.id) == []


def test_caption_update_with_stale_version_is_a_no_op(db):
    author = make_user(db, role=UserRole.BUSINESS)
    status = make_status(db, author.id, caption="before")

    assert status_store.update_caption(db, status.id, author.id, "after", expected_version=0) is True
    assert status_store.update_caption(db, status.id, author.id, "stale", expected_version=0) is False

    reloaded = _reload(db, status.id)
    assert reloaded.caption == "after"
    assert reloaded.version == 1


def test_soft_delete_requires_author_and_hides_status(db):
    author = make_user(db, role=UserRole.BUSINESS)
    other = make_user(db)
    status = make_status(db, author.id)

    assert status_store.soft_delete_status(db, status.id, other.id, 0) is False
    assert status_store.soft_delete_status(db, status.id, author.id, 0) is True

    assert status_store.get_status(db, status.id) is None
    assert status_store.get_user_statuses(db, author.id) == []
    row = _reload(db, status.id)
    assert row.deleted is True
    assert row.deleted_at is not None


def test_soft_delete_with_stale_version_is_a_no_op(db):
    author = make_user(db, role=UserRole.BUSINESS)
    fan = make_user(db)
    status = make_status(db, author.id)
    assert status_store.like_status(db, status.id, fan.id) is True

    assert status_store.soft_delete_status(db, status.id, author.id, 0) is False

    row = _reload(db, status.id)
    assert row.deleted is False
    assert row.deleted_at is None
    assert row.version == 1
    assert row.like_count == 1


def test_active_queries_skip_expired_statuses(db):
    author = make_user(db, role=UserRole.BUSINESS)
    viewer = make_user(db)
    live = make_status(db, author.id)
    make_status(db, author.id, created_at=datetime.utcnow() - timedelta(hours=25), expired=True)

    assert [s.id for s in status_store.get_user_statuses(db, author.id)] == [live.id]
    assert status_store.count_business_statuses(db, viewer.id) == 1


def test_delete_expired_soft_deletes_only_expired(db):
    author = make_user(db, role=UserRole.BUSINESS)
    live = make_status(db, author.id)
    old = make_status(db, author.id, created_at=datetime.utcnow() - timedelta(hours=25), expired=True)

    assert status_store.delete_expired(db) == 1
    assert _reload(db, old.id).deleted is True
    assert _reload(db, live.id).deleted is False


def test_business_statuses_exclude_viewer_and_regular_users(db):
    business = make_user(db, role=UserRole.BUSINESS)
    viewer = make_user(db, role=UserRole.BUSINESS)
    regular = make_user(db)
    make_status(db, business.id)
    make_status(db, viewer.id)
    make_status(db, regular.id)

    recent = status_store.get_recent_business_statuses(db, viewer.id, page=1, page_size=10)

    assert [s.user_id for s in recent] == [business.id]


def test_active_statuses_are_grouped_per_author_newest_first(db):
    first = make_user(db, role=UserRole.BUSINESS)
    second = make_user(db, role=UserRole.BUSINESS)
    older = make_status(db, first.id, created_at=datetime.utcnow() - timedelta(hours=2))
    newer = make_status(db, first.id, created_at=datetime.utcnow() - timedelta(hours=1))
    other = make_status(db, second.id)

    grouped = status_store.get_active_by_authors(db, [first.id, second.id])

    assert [s.id for s in grouped[first.id]] == [newer.id, older.id]
    assert [s.id for s in grouped[second.id]] == [other.id]
    assert status_store.get_active_by_authors(db, []) == {}
