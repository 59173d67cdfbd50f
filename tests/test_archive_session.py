from __future__ import annotations

import time

import pytest

from analytics.archive_session import ArchiveSessionController, seek_timestamp
from conftest import FakeClient, FakeStream
from monitoring.errors import SeekFailure, StreamConnectFailure, TokenAcquisitionFailure

NOW = 1781524800.0  # 2026-06-15 12:00:00 UTC


def test_seek_timestamp_format() -> None:
    assert seek_timestamp(NOW) == "20260615T120000"


def test_prepare_runs_token_stream_seek(fake_streams) -> None:
    client = FakeClient()
    session = ArchiveSessionController(client, FakeStream).prepare("sid", "g-1", NOW)
    assert session.token == "tok-1"
    assert fake_streams[0].opened and not fake_streams[0].released
    assert ("archive_seek", "tok-1", "20260615T120000") in client.calls

    with session:
        pass
    assert fake_streams[0].released


@pytest.mark.parametrize("reply", [None, {"success": 0}, {"success": 1}])
def test_token_failure_never_opens_stream(fake_streams, reply) -> None:
    client = FakeClient(get_video=reply)
    with pytest.raises(TokenAcquisitionFailure):
        ArchiveSessionController(client, FakeStream).prepare("sid", "g-1", NOW)
    assert fake_streams == []
    assert client.count("archive_seek") == 0


def test_stream_failure_stops_before_seek() -> None:
    class BrokenStream(FakeStream):
        def open(self):
            raise StreamConnectFailure("refused")

    client = FakeClient()
    with pytest.raises(StreamConnectFailure):
        ArchiveSessionController(client, BrokenStream).prepare("sid", "g-1", NOW)
    assert client.count("archive_seek") == 0


def test_seek_failure_releases_stream(fake_streams) -> None:
    client = FakeClient(archive_seek={"success": 0, "error": "no archive"})
    with pytest.raises(SeekFailure):
        ArchiveSessionController(client, FakeStream).prepare("sid", "g-1", NOW)
    assert fake_streams[0].released


def test_session_releases_stream_on_error(fake_streams) -> None:
    session = ArchiveSessionController(FakeClient(), FakeStream).prepare("sid", "g-1", time.time())
    with pytest.raises(RuntimeError):
        with session:
            raise RuntimeError("timeline exploded")
    assert fake_streams[0].released
