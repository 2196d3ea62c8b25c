import threading
import time
from concurrent.futures import ThreadPoolExecutor

from app.modules.notifications.services import push as push_module
from app.modules.notifications.services.push import PushSender


def _fake_firebase(monkeypatch):
    apps = []

    def initialize_app(credential=None, name="[DEFAULT]"):
        # Firebase refuses a second app with the same name
        if any(app == name for app in apps):
            raise ValueError(f'The Firebase app named "{name}" already exists.')
        time.sleep(0.05)
        apps.append(name)
        return name

    monkeypatch.setattr(push_module.firebase_admin, "initialize_app", initialize_app)
    return apps


def test_concurrent_first_dispatches_initialize_firebase_once(monkeypatch, tmp_path):
    apps = _fake_firebase(monkeypatch)
    sender = PushSender(str(tmp_path / "missing.json"))
    start = threading.Barrier(4)

    def first_use():
        start.wait()
        return sender.initialize()

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(lambda _: first_use(), range(4)))

    assert results == [True, True, True, True]
    assert apps == ["push"]
    sender.shutdown()


def test_send_uses_initialized_app(monkeypatch, tmp_path):
    _fake_firebase(monkeypatch)
    sent = []

    def fake_send(message, app=None):
        sent.append((message.token, app))
        return "message-1"

    monkeypatch.setattr(push_module.messaging, "send", fake_send)
    sender = PushSender(str(tmp_path / "missing.json"))

    assert sender.send("device-token", "Title", "Body", {"status_id": 7}) is True
    assert sender.send("", "Title", "Body") is False
    assert sent == [("device-token", "push")]
    sender.shutdown()
