from app.core.errors import PersistenceError
from app.modules.notifications.models.notification import Notification
from app.modules.statuses.models.status import Status
from app.modules.statuses.services import status_store
from app.modules.user_management.models.user import UserRole

from conftest import auth_headers, make_status, make_user

STATUS_URL = "/api/v1/status"


def _upload(client, user, media_type="IMAGE", caption="Grand opening"):
    return client.post(
        STATUS_URL,
        headers=auth_headers(user),
        data={"mediaType": media_type, "caption": caption},
        files={"file": ("shop.jpg", b"raw-image-bytes", "image/jpeg")},
    )


def test_regular_user_cannot_post_status(client, db, media):
    user = make_user(db)

    response = _upload(client, user)

    assert response.status_code == 403
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Create a business profile to add status."
    assert media.uploaded == []


def test_business_user_posts_image_status(client, db, media):
    business = make_user(db, role=UserRole.BUSINESS)

    response = _upload(client, business)

    assert response.status_code == 201, response.text
    data = response.json()["data"]
    assert data["media_url"] == media.uploaded[0]
    assert data["media_type"] == "IMAGE"
    assert data["caption"] == "Grand opening"
    assert data["blur_hash"]
    assert data["duration_millis"] == 0
    assert data["version"] == 0
    assert abs(data["expires_at"] - data["created_at"] - 24 * 60 * 60 * 1000) <= 1


def test_video_status_keeps_transcoded_duration(client, db, media):
    business = make_user(db, role=UserRole.BUSINESS)

    response = client.post(
        STATUS_URL,
        headers=auth_headers(business),
        data={"mediaType": "video", "durationMillis": "1000"},
        files={"file": ("clip.mov", b"raw-video-bytes", "video/quicktime")},
    )

    assert response.status_code == 201, response.text
    assert response.json()["data"]["duration_millis"] == 4000


def test_unknown_media_type_is_rejected(client, db, media):
    business = make_user(db, role=UserRole.BUSINESS)

    response = _upload(client, business, media_type="AUDIO")

    assert response.status_code == 400
    assert media.uploaded == []


def test_failed_insert_removes_uploaded_media(client, db, media, monkeypatch):
    business = make_user(db, role=UserRole.BUSINESS)

    def broken_insert(*args, **kwargs):
        raise PersistenceError("insert lost")

    monkeypatch.setattr(status_store, "create_status", broken_insert)

    response = _upload(client, business)

    assert response.status_code == 500
    assert response.json()["message"] == "Something went wrong on our end."
    assert media.discarded == media.uploaded
    assert len(media.discarded) == 1
    assert db.query(Status).count() == 0


def test_invalid_pagination_is_a_400(client, db):
    user = make_user(db)

    for query in ("page=0", "pageSize=0", "pageSize=51", "page=abc"):
        response = client.get(f"{STATUS_URL}/discover?{query}", headers=auth_headers(user))
        assert response.status_code == 400, query
        assert response.json()["message"] == "Invalid pagination parameters"


def test_discover_groups_statuses_by_author(client, db):
    viewer = make_user(db)
    business = make_user(db, name="Bakery", role=UserRole.BUSINESS)
    make_status(db, business.id)
    make_status(db, business.id)

    response = client.get(f"{STATUS_URL}/discover?page=1&pageSize=10", headers=auth_headers(viewer))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["current_page"] == 1
    assert data["has_more"] is False
    assert [g["author_name"] for g in data["groups"]] == ["Bakery"]
    assert data["groups"][0]["unviewed_count"] == 2


def test_requests_without_token_are_rejected(client):
    response = client.get(f"{STATUS_URL}/discover")

    assert response.status_code == 401


def test_my_statuses_and_other_users_statuses(client, db):
    business = make_user(db, role=UserRole.BUSINESS)
    viewer = make_user(db)
    status = make_status(db, business.id)
    status_store.record_view(db, status.id, viewer.id)

    mine = client.get(STATUS_URL, headers=auth_headers(business)).json()["data"]
    theirs = client.get(f"{STATUS_URL}/users/{business.id}", headers=auth_headers(viewer)).json()["data"]

    assert [s["id"] for s in mine] == [status.id]
    assert theirs[0]["is_viewed"] is True
    assert theirs[0]["views_count"] == 1


def test_delete_status_rules(client, db):
    business = make_user(db, role=UserRole.BUSINESS)
    other = make_user(db)
    status = make_status(db, business.id)

    assert client.delete(f"{STATUS_URL}?id=missing", headers=auth_headers(business)).status_code == 404
    assert client.delete(f"{STATUS_URL}?id={status.id}", headers=auth_headers(other)).status_code == 403
    assert client.delete(f"{STATUS_URL}?id={status.id}", headers=auth_headers(business)).status_code == 200
    assert client.delete(f"{STATUS_URL}?id={status.id}", headers=auth_headers(business)).status_code == 404


def test_caption_update_with_stale_version_conflicts(client, db):
    business = make_user(db, role=UserRole.BUSINESS)
    status = make_status(db, business.id, caption="old")
    url = f"{STATUS_URL}/{status.id}/caption"

    first = client.put(url, headers=auth_headers(business), json={"caption": "new", "version": 0})
    stale = client.put(url, headers=auth_headers(business), json={"caption": "newer", "version": 0})

    assert first.status_code == 200
    assert first.json()["data"]["caption"] == "new"
    assert first.json()["data"]["version"] == 1
    assert stale.status_code == 409
    assert stale.json()["data"] == {"current_version": 1}


def test_like_twice_and_unlike(client, db, push):
    business = make_user(db, role=UserRole.BUSINESS, fcm_token="device-token")
    fan = make_user(db, name="Fan")
    status = make_status(db, business.id)
    url = f"{STATUS_URL}/{status.id}/like"

    first = client.post(url, headers=auth_headers(fan))
    second = client.post(url, headers=auth_headers(fan))

    assert first.json()["message"] == "Status liked"
    assert second.json()["message"] == "Already liked"
    assert client.delete(url, headers=auth_headers(fan)).json()["message"] == "Like removed"
    assert client.delete(url, headers=auth_headers(fan)).json()["message"] == "Not liked"

    notifications = db.query(Notification).filter(Notification.user_id == business.id).all()
    assert len(notifications) == 1
    assert notifications[0].type == "STATUS_LIKE"
    assert len(push.sent) == 1
    assert push.sent[0][0] == "device-token"


def test_view_is_counted_once(client, db):
    business = make_user(db, role=UserRole.BUSINESS)
    viewer = make_user(db)
    status = make_status(db, business.id)
    url = f"{STATUS_URL}/{status.id}/view?duration=2500"

    assert client.post(url, headers=auth_headers(viewer)).json()["data"] == {"new_view": True}
    assert client.post(url, headers=auth_headers(viewer)).json()["data"] == {"new_view": False}

    db.expire_all()
    assert db.query(Status).filter(Status.id == status.id).first().view_count == 1


def test_replies_flow(client, db):
    business = make_user(db, role=UserRole.BUSINESS)
    fan = make_user(db, name="Fan")
    status = make_status(db, business.id)
    url = f"{STATUS_URL}/{status.id}/replies"

    created = client.post(url, headers=auth_headers(fan), json={"text": "Open on Sunday?"})
    assert created.status_code == 201
    reply_id = created.json()["data"]["id"]

    listed = client.get(url, headers=auth_headers(business)).json()["data"]
    assert [r["id"] for r in listed] == [reply_id]

    assert client.delete(f"{STATUS_URL}/replies/{reply_id}", headers=auth_headers(business)).status_code == 404
    assert client.delete(f"{STATUS_URL}/replies/{reply_id}", headers=auth_headers(fan)).status_code == 200
    assert client.get(url, headers=auth_headers(business)).json()["data"] == []

    notification = db.query(Notification).filter(Notification.user_id == business.id).one()
    assert notification.type == "STATUS_REPLY"
    assert "Open on Sunday?" in notification.message


def test_empty_reply_is_rejected(client, db):
    business = make_user(db, role=UserRole.BUSINESS)
    status = make_status(db, business.id)

    response = client.post(f"{STATUS_URL}/{status.id}/replies", headers=auth_headers(business), json={"text": ""})

    assert response.status_code == 400
