import asyncio
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from habit_engine.clock import Clock
from habit_engine.data.local_store import MemoryStore
from habit_engine.services.notifications import NotificationGateway
from habit_engine.state.store import DomainStore

IST = ZoneInfo("Asia/Kolkata")


def ist(year, month, day, hour=0, minute=0, second=0):
    return datetime(year, month, day, hour, minute, second, tzinfo=IST)


class FakeClock(Clock):
    def __init__(self, start, timezone_name="Asia/Kolkata"):
        self.current = start
        super().__init__(timezone_name, now_fn=lambda: self.current)

    def set(self, value):
        self.current = value

    def advance(self, **kwargs):
        self.current = self.current + timedelta(**kwargs)


class FakeRemote:
    def __init__(self, snapshot=None, enabled=True):
        self.snapshot = snapshot
        self.enabled = enabled
        self.pull_gate = None
        self.pull_error = None
        self.push_error = None
        self.push_delay = 0
        self.pull_calls = 0
        self.pushes = []
        self.push_attempts = 0

    def is_enabled(self):
        return self.enabled

    async def fetch_state(self):
        self.pull_calls += 1
        if self.pull_gate is not None:
            await self.pull_gate.wait()
        if self.pull_error is not None:
            raise self.pull_error
        return self.snapshot

    async def save_state(self, payload):
        self.push_attempts += 1
        await asyncio.sleep(self.push_delay)
        if self.push_error is not None:
            raise self.push_error
        self.pushes.append(payload)


class RecordingHost:
    def __init__(self, permitted=True, fail=False):
        self.permitted = permitted
        self.fail = fail
        self.permission_requests = 0
        self.shown = []

    def request_permission(self):
        self.permission_requests += 1
        return self.permitted

    def show(self, title, body):
        if self.fail:
            raise RuntimeError("notification backend unavailable")
        self.shown.append((title, body))


class RecordingAlert:
    def __init__(self):
        self.alerts = []

    def __call__(self, title, body):
        self.alerts.append((title, body))

    @property
    def titles(self):
        return [title for title, _ in self.alerts]


@pytest.fixture
def clock():
    return FakeClock(ist(2026, 10, 19, 10, 0))


@pytest.fixture
def local_store():
    return MemoryStore()


@pytest.fixture
def store(clock):
    return DomainStore(clock)


@pytest.fixture
def alerts():
    return RecordingAlert()


@pytest.fixture
def gateway(alerts):
    return NotificationGateway(host=None, fallback=alerts)


@pytest.fixture
def events(store):
    captured = []
    store.subscribe(captured.append)
    return captured
