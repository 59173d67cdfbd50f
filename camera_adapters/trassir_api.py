"""Trassir server HTTP API client.

The server speaks JSON over HTTPS, typically with a self-signed
certificate, and decorates some responses with ``/* ... */`` comments
that are not valid JSON. `TrassirClient` hides both quirks behind a few
endpoint helpers. Connect and read timeouts are always enforced.

Network failures of any kind (DNS, TLS, refused connection, timeout)
are reported as `TransportError` carrying the underlying message. A
response that arrives but does not decode is returned as ``None`` and
left for the caller to judge.
"""

from __future__ import annotations

import json
import logging
import re
import warnings
from typing import Any, Dict, Optional, Tuple

import requests
from urllib3.exceptions import InsecureRequestWarning

from monitoring.errors import TransportError

logger = logging.getLogger(__name__)

_COMMENT_RE = re.compile(r"/\*.*?\*/", re.S)


def clean_json(text: str) -> str:
    """Strip ``/* ... */`` comments and surrounding whitespace."""
    return _COMMENT_RE.sub("", text).strip()


class TrassirClient:
    """Thin client for the Trassir SDK endpoints used by the checks.

    Parameters
    ----------
    host, port :
        Address of the server API.
    connect_timeout, read_timeout : float
        Seconds allowed to establish the connection and to read a reply.
    session : requests.Session, optional
        Session to issue requests with; a new one is created if omitted.
    """

    def __init__(
        self,
        host: str,
        port: int | str,
        connect_timeout: float = 5.0,
        read_timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.base_url = f"https://{host}:{port}"
        self.timeout: Tuple[float, float] = (connect_timeout, read_timeout)
        self.session = session or requests.Session()
        self.session.verify = False

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET `path` and return the decoded body, or ``None`` if undecodable."""
        url = f"{self.base_url}{path}"
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", InsecureRequestWarning)
                resp = self.session.get(url, params=params, timeout=self.timeout, allow_redirects=True)
        except requests.RequestException as exc:
            raise TransportError(f"API request failed: {exc}") from exc
        body = clean_json(resp.text)
        logger.debug("GET %s -> %s %s", path, resp.status_code, body)
        try:
            return json.loads(body)
        except ValueError:
            logger.debug("Response from %s is not valid JSON", path)
            return None

    def login(self, username: str, password: str) -> Any:
        return self.get_json("/login", {"username": username, "password": password})

    def health(self, sid: str) -> Any:
        return self.get_json("/health", {"sid": sid})

    def channels(self, sid: str) -> Any:
        return self.get_json("/channels", {"sid": sid})

    def health_setting(self, sid: str, setting: str) -> Any:
        """Return the ``value`` of a health setting, or ``None`` if absent."""
        data = self.get_json(f"/settings/health/{setting}", {"sid": sid})
        if not isinstance(data, dict):
            logger.debug("Failed to decode JSON for setting '%s'", setting)
            return None
        if "value" not in data:
            logger.debug("'value' not found in JSON for setting '%s'", setting)
            return None
        return data["value"]

    def get_video(self, sid: str, channel_guid: str) -> Any:
        return self.get_json(
            "/get_video",
            {"channel": channel_guid, "container": "mjpeg", "stream": "archive_main", "sid": sid},
        )

    def archive_seek(self, sid: str, token: str, timestamp: str) -> Any:
        return self.get_json(
            "/archive_command",
            {"command": "seek", "timestamp": timestamp, "direction": 0, "sid": sid, "token": token},
        )

    def timeline(self, sid: str) -> Any:
        return self.get_json("/archive_status", {"type": "timeline", "sid": sid})

    def close(self) -> None:
        self.session.close()
