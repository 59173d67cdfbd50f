"""Session id and channel identity resolution.

Logging in on every check would churn server sessions, so the session id
is cached per host. A cached id is never trusted blindly: it is probed
with a cheap authenticated ``/health`` call first and replaced by a
fresh login when the probe fails.

Channel names are resolved to GUIDs through the server channel list,
cached for a configurable age. Matching is by case-sensitive substring
and the first channel in list order wins, so ``Camera-1`` also matches
``Entrance-Camera-12``. Pick channel names that are unique as
substrings.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from monitoring.errors import (
    AuthenticationFailure,
    ChannelListUnavailable,
    ChannelNotFound,
    ConfigurationError,
)
from storage.api_cache import ApiCache

from .trassir_api import TrassirClient

logger = logging.getLogger(__name__)

SID_KEY = "sid"
CHANNELS_KEY = "channels"


@dataclass(frozen=True)
class ChannelIdentity:
    name: str
    guid: str


def find_channel(channels: List[Dict[str, Any]], name: str) -> Optional[ChannelIdentity]:
    """Return the first channel whose name contains `name`."""
    if not name:
        return None
    for channel in channels:
        if not isinstance(channel, dict):
            continue
        channel_name = channel.get("name")
        guid = channel.get("guid")
        if isinstance(channel_name, str) and name in channel_name and guid:
            return ChannelIdentity(channel_name, str(guid))
    return None


class SessionResolver:
    """Resolve session ids and channel GUIDs through a per-host cache."""

    def __init__(self, client: TrassirClient, cache: ApiCache) -> None:
        self.client = client
        self.cache = cache

    def resolve_session(self, username: str, password: str) -> str:
        """Return a valid session id, logging in only when needed.

        Raises
        ------
        AuthenticationFailure
            If the login response lacks a success flag or a session id.
        """
        host = self.client.host
        cached = self.cache.read(SID_KEY)
        if cached and isinstance(cached.get("sid"), str):
            sid = cached["sid"]
            logger.debug("[%s] Read SID from cache", host)
            if self._session_alive(sid):
                logger.debug("[%s] SID is valid, using cached SID.", host)
                return sid
            logger.debug("[%s] Cached SID is invalid or expired.", host)

        data = self.client.login(username, password)
        if isinstance(data, dict) and data.get("success") and data.get("sid"):
            sid = str(data["sid"])
            self._store(SID_KEY, {"sid": sid}, mode=0o600)
            logger.debug("[%s] New SID acquired and cached", host)
            return sid
        raise AuthenticationFailure(f"Failed to acquire valid session ID for {host}.")

    def _store(self, key: str, payload: Dict[str, Any], mode: int = 0o644) -> None:
        # A cache that cannot be written only costs a login on the next run.
        try:
            self.cache.write(key, payload, mode=mode)
        except ConfigurationError as exc:
            logger.warning("[%s] %s", self.client.host, exc.message)

    def _session_alive(self, sid: str) -> bool:
        data = self.client.health(sid)
        return isinstance(data, dict) and "cpu_load" in data

    def resolve_channel_id(self, sid: str, name: str, max_cache_age_hours: float) -> ChannelIdentity:
        """Return the identity of the first channel whose name contains `name`.

        A fresh-enough cached list is tried first. If it has no match the
        list is fetched from the server once more before giving up.

        Raises
        ------
        ChannelNotFound
            If `name` is empty or no channel matches.
        ChannelListUnavailable
            If the server returns no usable channel list.
        """
        host = self.client.host
        if not name:
            raise ChannelNotFound(f"Channel not found on {host}: empty channel name")

        cached = self._cached_channels(max_cache_age_hours)
        if cached is not None:
            identity = find_channel(cached, name)
            if identity is not None:
                return identity
            logger.debug("Channel %s not in cached list for %s, refreshing", name, host)

        identity = find_channel(self._refresh_channels(sid), name)
        if identity is None:
            raise ChannelNotFound(f"Channel not found on {host}: {name}")
        return identity

    def _cached_channels(self, max_cache_age_hours: float) -> Optional[List[Dict[str, Any]]]:
        payload = self.cache.read(CHANNELS_KEY)
        if not payload or not isinstance(payload.get("channels"), list):
            return None
        age = self.cache.age(payload)
        if age is None or age > max_cache_age_hours * 3600:
            return None
        logger.debug("Using cached channel list for %s (age: %d sec)", self.client.host, age)
        return payload["channels"]

    def _refresh_channels(self, sid: str) -> List[Dict[str, Any]]:
        host = self.client.host
        data = self.client.channels(sid)
        if not isinstance(data, dict) or not isinstance(data.get("channels"), list):
            raise ChannelListUnavailable(f"Failed to fetch valid channel list from server for {host}.")
        channels = data["channels"]
        self._store(CHANNELS_KEY, {"channels": channels, "timestamp": time.time()})
        logger.debug("Channel list updated and cached for %s", host)
        return channels
