from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import pytest


@pytest.fixture(autouse=True)
def utc_timezone(monkeypatch):
    """Pin local time to UTC so midnight arithmetic is deterministic."""
    monkeypatch.setenv("TZ", "UTC")
    if hasattr(time, "tzset"):
        time.tzset()
    yield
    monkeypatch.undo()
    if hasattr(time, "tzset"):
        time.tzset()


class FakeClient:
    """In-process stand-in for `TrassirClient`."""

    def __init__(self, host: str = "10.0.1.1", **responses: Any) -> None:
        self.host = host
        self.responses: Dict[str, Any] = {
            "login": {"success": 1, "sid": "fresh-sid"},
            "health": {"cpu_load": 12},
            "channels": {"channels": []},
            "settings": {},
            "get_video": {"success": 1, "token": "tok-1"},
            "archive_seek": {"success": 1},
            "timeline": [],
        }
        self.responses.update(responses)
        self.calls: List[tuple] = []
        self.closed = False

    def login(self, username: str, password: str) -> Any:
        self.calls.append(("login", username))
        return self.responses["login"]

    def health(self, sid: str) -> Any:
        self.calls.append(("health", sid))
        return self.responses["health"]

    def channels(self, sid: str) -> Any:
        self.calls.append(("channels", sid))
        return self.responses["channels"]

    def health_setting(self, sid: str, setting: str) -> Any:
        self.calls.append(("setting", setting))
        return self.responses["settings"].get(setting)

    def get_video(self, sid: str, channel_guid: str) -> Any:
        self.calls.append(("get_video", channel_guid))
        return self.responses["get_video"]

    def archive_seek(self, sid: str, token: str, timestamp: str) -> Any:
        self.calls.append(("archive_seek", token, timestamp))
        return self.responses["archive_seek"]

    def timeline(self, sid: str) -> Any:
        self.calls.append(("timeline", sid))
        return self.responses["timeline"]

    def close(self) -> None:
        self.closed = True

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


class FakeStream:
    """Records open/release of the archive trigger stream."""

    instances: List["FakeStream"] = []

    def __init__(self, token: str) -> None:
        self.token = token
        self.opened = False
        self.released = False
        FakeStream.instances.append(self)

    def open(self) -> "FakeStream":
        self.opened = True
        return self

    def release(self) -> None:
        self.released = True


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def fake_streams() -> List[FakeStream]:
    FakeStream.instances = []
    return FakeStream.instances


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


def timeline_entry(token: str, day: str, events: Optional[List[tuple]] = None) -> Dict[str, Any]:
    return {
        "token": token,
        "day_start": day,
        "timeline": [{"begin": b, "end": e} for b, e in (events or [])],
    }
