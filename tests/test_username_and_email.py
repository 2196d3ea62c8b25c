import smtplib

import pytest

from app.core.email import EmailSender
from app.core.errors import ValidationError
from app.modules.auth.services.username import generate_suggestions, is_username_available, normalize_username

from conftest import make_user


@pytest.mark.parametrize("raw, expected", [
    ("bakery", "@bakery"),
    ("@Bakery", "@bakery"),
    ("  @corner.shop_1 ", "@corner.shop_1"),
])
def test_normalize_username(raw, expected):
    assert normalize_username(raw) == expected


@pytest.mark.parametrize("raw", ["ab", "has space", "way_too_long_username", "emoji😀"])
def test_invalid_usernames(raw):
    with pytest.raises(ValidationError):
        normalize_username(raw)


def test_availability_ignores_own_username(db):
    owner = make_user(db, username="@bakery")

    assert is_username_available(db, "bakery") is False
    assert is_username_available(db, "bakery", exclude_user_id=owner.id) is True


def test_suggestions_are_free_and_well_formed(db):
    user = make_user(db, name="Jane Baker", username="@jane")

    suggestions = generate_suggestions(db, "jane", user_id=user.id)

    assert 0 < len(suggestions) <= 5
    assert "@jane" not in suggestions
    for suggestion in suggestions:
        normalize_username(suggestion)


class RecordingSMTP:
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host = host

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, username, password):
        pass

    def sendmail(self, from_addr, to_addrs, message):
        RecordingSMTP.sent.append((from_addr, to_addrs, message))


def _sender():
    return EmailSender("smtp.test", 587, "user", "pass", "no-reply@bizstatus.app", "Bizstatus")


def test_verification_mail_contains_code(monkeypatch):
    RecordingSMTP.sent = []
    monkeypatch.setattr(smtplib, "SMTP", RecordingSMTP)

    assert _sender().send_verification_code("owner@example.com", "Owner", "4821") is True

    from_addr, to_addrs, message = RecordingSMTP.sent[0]
    assert to_addrs == ["owner@example.com"]
    assert "Your verification code" in message


def test_mail_failures_return_false(monkeypatch):
    def refuse(*args, **kwargs):
        raise smtplib.SMTPConnectError(421, "unavailable")

    monkeypatch.setattr(smtplib, "SMTP", refuse)

    assert _sender().send_password_reset_code("owner@example.com", "Owner", "123456") is False
