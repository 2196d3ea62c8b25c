from datetime import datetime, timedelta

from app.modules.password_reset.models.password_reset import PasswordResetToken

from conftest import make_user

RESET_URL = "/api/v1/password-reset"
LOGIN_URL = "/api/v1/auth/login"


def test_forgot_and_reset_password(client, db, email_sender):
    make_user(db, email="owner@example.com", password="old-password")

    forgot = client.post(f"{RESET_URL}/forgot", json={"email": "owner@example.com"})
    assert forgot.status_code == 200
    code = email_sender.reset_codes["owner@example.com"]
    assert len(code) == 6

    reset = client.post(f"{RESET_URL}/reset", json={"email": "owner@example.com", "otp": code, "new_password": "new-password"})
    assert reset.status_code == 200

    assert client.post(LOGIN_URL, json={"email": "owner@example.com", "password": "new-password"}).status_code == 200
    assert client.post(LOGIN_URL, json={"email": "owner@example.com", "password": "old-password"}).status_code == 401

    reused = client.post(f"{RESET_URL}/reset", json={"email": "owner@example.com", "otp": code, "new_password": "another-one"})
    assert reused.status_code == 401


def test_unknown_email_gets_same_answer_without_mail(client, db, email_sender):
    make_user(db, email="owner@example.com")

    known = client.post(f"{RESET_URL}/forgot", json={"email": "owner@example.com"})
    unknown = client.post(f"{RESET_URL}/forgot", json={"email": "ghost@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json()["message"] == unknown.json()["message"]
    assert list(email_sender.reset_codes) == ["owner@example.com"]


def test_resend_replaces_previous_code(client, db, email_sender):
    user = make_user(db, email="owner@example.com", password="old-password")
    client.post(f"{RESET_URL}/forgot", json={"email": "owner@example.com"})
    first = email_sender.reset_codes["owner@example.com"]

    client.post(f"{RESET_URL}/resend-otp", json={"email": "owner@example.com"})
    second = email_sender.reset_codes["owner@example.com"]

    assert db.query(PasswordResetToken).filter(PasswordResetToken.user_id == user.id).count() == 1
    if first != second:
        stale = client.post(f"{RESET_URL}/reset", json={"email": "owner@example.com", "otp": first, "new_password": "new-password"})
        assert stale.status_code == 401
    fresh = client.post(f"{RESET_URL}/reset", json={"email": "owner@example.com", "otp": second, "new_password": "new-password"})
    assert fresh.status_code == 200


def test_expired_code_is_rejected(client, db, email_sender):
    make_user(db, email="owner@example.com", password="old-password")
    client.post(f"{RESET_URL}/forgot", json={"email": "owner@example.com"})
    code = email_sender.reset_codes["owner@example.com"]
    db.query(PasswordResetToken).update({PasswordResetToken.expires_at: datetime.utcnow() - timedelta(minutes=1)})
    db.commit()

    response = client.post(f"{RESET_URL}/reset", json={"email": "owner@example.com", "otp": code, "new_password": "new-password"})

    assert response.status_code == 401


def test_reset_for_unknown_user_is_not_found(client, db):
    response = client.post(f"{RESET_URL}/reset", json={"email": "ghost@example.com", "otp": "123456", "new_password": "new-password"})

    assert response.status_code == 404


def test_blank_otp_is_invalid(client, db):
    make_user(db, email="owner@example.com")

    response = client.post(f"{RESET_URL}/reset", json={"email": "owner@example.com", "otp": " ", "new_password": "new-password"})

    assert response.status_code == 401
