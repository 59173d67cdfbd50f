"""Camera adapters package.

This package contains the server-facing side of the checks: the HTTP
client for the Trassir SDK endpoints, the raw MJPEG stream used to wake
up a channel's archive, and the resolver that turns credentials and
human channel names into session ids and channel GUIDs.
"""

from .trassir_api import TrassirClient
from .mjpeg_stream import MJPEGStream
from .session import ChannelIdentity, SessionResolver

__all__ = [
    "TrassirClient",
    "MJPEGStream",
    "ChannelIdentity",
    "SessionResolver",
]
