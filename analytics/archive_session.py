"""Archive playback session setup.

The timeline of a channel is only (re)built by the server while someone
plays back its archive. Preparing a session therefore takes three steps,
each depending on the previous one:

1. request an archive playback token for the channel,
2. open the MJPEG stream for that token so playback actually starts,
3. seek the archive to "now" so the server indexes the current window.

The stream from step 2 must be closed on every path out of a channel
check. `ArchiveSession` is a context manager for that purpose, and
`prepare` closes the stream itself if the seek fails.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from camera_adapters.mjpeg_stream import MJPEGStream
from camera_adapters.trassir_api import TrassirClient
from monitoring.errors import SeekFailure, TokenAcquisitionFailure

logger = logging.getLogger(__name__)

StreamFactory = Callable[[str], MJPEGStream]


def seek_timestamp(now_adjusted: float) -> str:
    """Format an instant the way the archive command expects, e.g. 20180117T110734."""
    return time.strftime("%Y%m%dT%H%M%S", time.localtime(now_adjusted))


@dataclass
class ArchiveSession:
    token: str
    stream: MJPEGStream

    def release(self) -> None:
        self.stream.release()

    def __enter__(self) -> "ArchiveSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()


class ArchiveSessionController:
    """Open archive playback sessions for channel checks.

    Parameters
    ----------
    client : TrassirClient
        API client for the token and seek commands.
    stream_factory : callable
        Builds an unopened stream for a playback token.
    """

    def __init__(self, client: TrassirClient, stream_factory: StreamFactory) -> None:
        self.client = client
        self.stream_factory = stream_factory

    def prepare(self, sid: str, channel_guid: str, now_adjusted: float) -> ArchiveSession:
        data = self.client.get_video(sid, channel_guid)
        if not isinstance(data, dict) or not data.get("success") or not data.get("token"):
            raise TokenAcquisitionFailure("Failed to get video token.")
        token = str(data["token"])

        stream = self.stream_factory(token)
        stream.open()
        session = ArchiveSession(token=token, stream=stream)
        try:
            data = self.client.archive_seek(sid, token, seek_timestamp(now_adjusted))
            if not isinstance(data, dict) or not data.get("success"):
                raise SeekFailure("Archive seek command failed.")
        except BaseException:
            session.release()
            raise
        return session
