from habit_engine.services import notifications
from habit_engine.services.notifications import (
    CHANNEL_FALLBACK,
    CHANNEL_HOST,
    NotificationGateway,
    PlyerNotifier,
    console_alert,
)

from conftest import RecordingAlert, RecordingHost


def test_permitted_host_receives_notification():
    host = RecordingHost(permitted=True)
    alerts = RecordingAlert()
    gateway = NotificationGateway(host=host, fallback=alerts)

    assert gateway.request_permission() is True
    assert gateway.deliver("Title", "Body") == CHANNEL_HOST
    assert host.shown == [("Title", "Body")]
    assert alerts.alerts == []


def test_permission_is_requested_once():
    host = RecordingHost(permitted=False)
    gateway = NotificationGateway(host=host, fallback=RecordingAlert())
    gateway.request_permission()
    gateway.request_permission()
    assert host.permission_requests == 1


def test_denied_permission_uses_fallback():
    host = RecordingHost(permitted=False)
    alerts = RecordingAlert()
    gateway = NotificationGateway(host=host, fallback=alerts)
    gateway.request_permission()

    assert gateway.deliver("Title", "Body") == CHANNEL_FALLBACK
    assert host.shown == []
    assert alerts.alerts == [("Title", "Body")]


def test_failing_host_falls_back_exactly_once():
    host = RecordingHost(permitted=True, fail=True)
    alerts = RecordingAlert()
    gateway = NotificationGateway(host=host, fallback=alerts)
    gateway.request_permission()

    assert gateway.deliver("Title", "Body") == CHANNEL_FALLBACK
    assert alerts.alerts == [("Title", "Body")]


def test_missing_host_uses_fallback():
    alerts = RecordingAlert()
    gateway = NotificationGateway(host=None, fallback=alerts)
    assert gateway.request_permission() is False
    assert gateway.deliver("Title", "Body") == CHANNEL_FALLBACK
    assert len(alerts.alerts) == 1


def test_plyer_notifier_forwards_to_plyer(monkeypatch):
    calls = []

    class StubPlyer:
        def notify(self, **kwargs):
            calls.append(kwargs)

    monkeypatch.setattr(notifications, "plyer_notify", StubPlyer())
    PlyerNotifier(app_name="Habits", timeout=5).show("Title", "Body")
    assert calls == [{"title": "Title", "message": "Body", "app_name": "Habits", "timeout": 5}]


def test_console_alert_writes_to_stderr(capsys):
    console_alert("Title", "Body")
    assert capsys.readouterr().err == "Title\n\nBody\n"
