from __future__ import annotations

import pytest
import requests

from camera_adapters.trassir_api import TrassirClient, clean_json
from monitoring.errors import TransportError


class FakeResponse:
    def __init__(self, text: str, status_code: int = 200) -> None:
        self.text = text
        self.status_code = status_code


class FakeSession:
    def __init__(self, reply=None, error=None) -> None:
        self.reply = reply
        self.error = error
        self.requests = []
        self.verify = True
        self.closed = False

    def get(self, url, params=None, timeout=None, allow_redirects=True):
        self.requests.append((url, params, timeout))
        if self.error is not None:
            raise self.error
        return self.reply

    def close(self):
        self.closed = True


def test_clean_json_strips_block_comments() -> None:
    body = '/* Trassir SDK */\n{"success": 1, /* inline */ "sid": "abc"}\n'
    assert clean_json(body) == '{"success": 1,  "sid": "abc"}'


def test_client_disables_verification_and_sets_timeouts() -> None:
    session = FakeSession(FakeResponse('{"cpu_load": 3}'))
    client = TrassirClient("10.0.1.1", 8080, connect_timeout=2, read_timeout=4, session=session)
    assert session.verify is False
    assert client.health("sid-1") == {"cpu_load": 3}
    url, params, timeout = session.requests[0]
    assert url == "https://10.0.1.1:8080/health"
    assert params == {"sid": "sid-1"}
    assert timeout == (2, 4)


def test_undecodable_body_is_none() -> None:
    client = TrassirClient("h", 1, session=FakeSession(FakeResponse("<html>oops</html>")))
    assert client.get_json("/login") is None


def test_transport_errors_are_wrapped() -> None:
    session = FakeSession(error=requests.ConnectTimeout("timed out"))
    client = TrassirClient("h", 1, session=session)
    with pytest.raises(TransportError) as excinfo:
        client.timeline("sid")
    assert "timed out" in excinfo.value.message


@pytest.mark.parametrize(
    "body, expected",
    [('{"value": 1}', 1), ('{"value": "42"}', "42"), ('{"other": 1}', None), ("garbage", None)],
)
def test_health_setting_value(body, expected) -> None:
    session = FakeSession(FakeResponse(body))
    client = TrassirClient("h", 1, session=session)
    assert client.health_setting("sid", "cpu_usage") == expected
    assert session.requests[0][0] == "https://h:1/settings/health/cpu_usage"


def test_archive_endpoints_parameters() -> None:
    session = FakeSession(FakeResponse('{"success": 1, "token": "t"}'))
    client = TrassirClient("h", 1, session=session)
    client.get_video("sid", "guid-1")
    client.archive_seek("sid", "t", "20260615T120000")
    assert session.requests[0][1] == {
        "channel": "guid-1",
        "container": "mjpeg",
        "stream": "archive_main",
        "sid": "sid",
    }
    assert session.requests[1][1]["command"] == "seek"
    assert session.requests[1][1]["timestamp"] == "20260615T120000"
    client.close()
    assert session.closed
