import os
import sys
import tempfile
import uuid
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Configure test environment before the app reads its settings
_DB_DIR = tempfile.mkdtemp(prefix="bizstatus_tests_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["SUPABASE_URL"] = "https://storage.test"
os.environ["SUPABASE_SERVICE_KEY"] = "service-key"
os.environ["STORAGE_BUCKET"] = "media"

# Ensure the package root is on sys.path when pytest changes CWD to this tests dir
PKG_ROOT = Path(__file__).resolve().parents[1]
if str(PKG_ROOT) not in sys.path:
    sys.path.insert(0, str(PKG_ROOT))

from fastapi.testclient import TestClient  # noqa: E402

from app.core import security  # noqa: E402
from app.core.errors import ValidationError  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import SessionLocal, engine  # noqa: E402
from app.main import app  # noqa: E402
from app.modules.media.service import MediaUploadResult  # noqa: E402
from app.modules.statuses.models.status import Status  # noqa: E402
from app.modules.user_management.models.user import RegistrationStage, User, UserRole  # noqa: E402


class FakeMediaService:
    """Records uploads and discards instead of talking to storage"""

    def __init__(self):
        self.uploaded = []
        self.discarded = []

    async def upload_image(self, data, folder="status_images"):
        url = f"https://storage.test/storage/v1/object/public/media/{folder}/image_{len(self.uploaded)}.jpg"
        self.uploaded.append(url)
        return MediaUploadResult(url=url, mime_type="image/jpeg", blur_hash="LEHV6nWB2yk8pyo0adR*.7kCMdnj")

    async def upload_video(self, data, filename=None, folder="status_videos"):
        url = f"https://storage.test/storage/v1/object/public/media/{folder}/video_{len(self.uploaded)}.mp4"
        self.uploaded.append(url)
        return MediaUploadResult(url=url, mime_type="video/mp4", blur_hash="LEHV6nWB2yk8pyo0adR*.7kCMdnj", duration_millis=4000)

    def object_path(self, url):
        marker = "/public/media/"
        if marker not in url:
            raise ValidationError("URL does not point to this storage bucket")
        return url.rsplit(marker, 1)[1]

    async def delete(self, url):
        self.discarded.append(url)

    async def discard(self, url):
        if url:
            self.discarded.append(url)


class FakePushSender:
    def __init__(self):
        self.sent = []

    def dispatch(self, token, title, body, data=None):
        if token:
            self.sent.append((token, title, body, data))


class FakeEmailSender:
    def __init__(self):
        self.verification_codes = {}
        self.reset_codes = {}

    def send_verification_code(self, to_email, name, code):
        self.verification_codes[to_email] = code
        return True

    def send_password_reset_code(self, to_email, name, code):
        self.reset_codes[to_email] = code
        return True


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def media():
    return FakeMediaService()


@pytest.fixture
def push():
    return FakePushSender()


@pytest.fixture
def email_sender():
    return FakeEmailSender()


@pytest.fixture
def client(media, push, email_sender):
    originals = (app.state.media, app.state.push, app.state.email)
    app.state.media = media
    app.state.push = push
    app.state.email = email_sender
    try:
        yield TestClient(app)
    finally:
        app.state.media, app.state.push, app.state.email = originals


def make_user(db, name="Test User", role=UserRole.USER, password=None, verified=True, stage=None, **fields):
    """Insert a user directly; verified users default to a completed profile"""
    if stage is None:
        stage = RegistrationStage.PROFILE_COMPLETED if verified else RegistrationStage.EMAIL_SUBMITTED
    if role == UserRole.BUSINESS and stage == RegistrationStage.PROFILE_COMPLETED:
        stage = RegistrationStage.BUSINESS_ADDED

    user_id = str(uuid.uuid4())
    user = User(
        id=user_id,
        name=name,
        email=fields.pop("email", f"{user_id[:8]}@example.com"),
        password_hash=security.get_password_hash(password) if password else None,
        role=role.value,
        registration_stage=stage.value,
        is_email_verified=verified,
        **fields,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_status(db, user_id, created_at=None, expired=False, **fields):
    """Insert a status with an explicit creation time"""
    created_at = created_at or datetime.utcnow()
    expires_at = datetime.utcnow() - timedelta(minutes=1) if expired else created_at + timedelta(hours=24)
    status = Status(
        id=str(uuid.uuid4()),
        user_id=user_id,
        media_url=fields.pop("media_url", "https://storage.test/storage/v1/object/public/media/status_images/x.jpg"),
        media_type=fields.pop("media_type", "IMAGE"),
        expires_at=expires_at,
        created_at=created_at,
        updated_at=created_at,
        **fields,
    )
    db.add(status)
    db.commit()
    db.refresh(status)
    return status


def auth_headers(user):
    return {"Authorization": f"Bearer {security.create_access_token(user.id, role=user.role)}"}
