"""MJPEG archive stream adapter.

Opening the archive stream for a playback token is what makes the
server start materialising that channel's archive. The check never
consumes video: it sends the request, reads the response header and
keeps the socket open until the timeline has been read. The interface
mirrors the other camera adapters (`open`/`release`) and can be used as
a context manager.
"""

from __future__ import annotations

import logging
import socket
from typing import Optional

from monitoring.errors import StreamConnectFailure

logger = logging.getLogger(__name__)

MAX_HEADER_LINES = 10


class MJPEGStream:
    """Raw HTTP connection to ``http://<host>:<port>/<token>``.

    Attributes
    ----------
    host, port :
        Address of the stream transport.
    token : str
        Archive playback token the stream is opened for.
    header : str
        Response header read after the request, for diagnostics.
    """

    def __init__(self, host: str, port: int, token: str, timeout: float = 5.0) -> None:
        self.host = host
        self.port = int(port)
        self.token = token
        self.timeout = timeout
        self.header = ""
        self.sock: Optional[socket.socket] = None

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}/{self.token}"

    def open(self) -> "MJPEGStream":
        """Connect, send the request and read the response header."""
        if self.sock is not None:
            return self
        try:
            self.sock = socket.create_connection((self.host, self.port), timeout=self.timeout)
            request = (
                f"GET /{self.token} HTTP/1.1\r\n"
                f"Host: {self.host}\r\n"
                "Connection: keep-alive\r\n"
                "\r\n"
            )
            self.sock.sendall(request.encode("ascii"))
            self.header = self._read_header()
        except OSError as exc:
            self.release()
            raise StreamConnectFailure(f"Unable to connect to MJPEG stream: {exc}") from exc
        logger.debug("MJPEG stream %s header:\n%s", self.url, self.header)
        return self

    def _read_header(self) -> str:
        assert self.sock is not None
        lines = []
        with self.sock.makefile("rb") as reader:
            for _ in range(MAX_HEADER_LINES):
                try:
                    line = reader.readline(512)
                except socket.timeout:
                    # The connection is what starts playback; a slow header is not fatal.
                    logger.debug("Timed out reading MJPEG stream header")
                    break
                if not line or not line.strip():
                    break
                lines.append(line.decode("latin-1"))
        return "".join(lines)

    @property
    def is_open(self) -> bool:
        return self.sock is not None

    def release(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self.sock is not None:
            try:
                self.sock.close()
            finally:
                self.sock = None
            logger.debug("MJPEG stream closed gracefully")

    def __enter__(self) -> "MJPEGStream":
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.release()
