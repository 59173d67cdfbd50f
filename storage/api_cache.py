"""On-disk cache for API session ids and channel lists.

Checks against the same server run concurrently and share one cache
directory. Entries are small JSON envelopes written atomically: the
payload goes to a temporary file in the same directory which is then
renamed over the target, so a reader sees either the old or the new
entry, never a partial one.

Every envelope carries a format ``version``. Entries with another
version, unreadable files and malformed JSON are all treated as cache
misses; the caller then fetches fresh data and overwrites them.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, Optional

from monitoring.errors import ConfigurationError

logger = logging.getLogger(__name__)

CACHE_VERSION = 1


def safe_host(host: str) -> str:
    """Map a host name to a string usable as a file name prefix."""
    return re.sub(r"[^a-zA-Z0-9_\-]", "_", host)


class ApiCache:
    """Per-host key/value cache backed by one JSON file per key.

    Parameters
    ----------
    cache_dir : str or Path
        Directory holding the cache files. Created on first use.
    host : str
        Server host the entries belong to.
    """

    def __init__(self, cache_dir: str | Path, host: str) -> None:
        self.cache_dir = Path(cache_dir)
        self.host = host

    def path_for(self, key: str) -> Path:
        return self.cache_dir / f"{safe_host(self.host)}.{key}.cache"

    def read(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the cached payload for `key`, or ``None`` on a miss."""
        path = self.path_for(key)
        try:
            with path.open("r", encoding="utf-8") as f:
                envelope = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.debug("Ignoring unreadable cache file %s: %s", path, exc)
            return None
        if not isinstance(envelope, dict) or envelope.get("version") != CACHE_VERSION:
            logger.debug("Ignoring cache file %s with unsupported format", path)
            return None
        payload = envelope.get("data")
        if not isinstance(payload, dict):
            return None
        return payload

    def write(self, key: str, payload: Dict[str, Any], mode: int = 0o644) -> None:
        """Atomically replace the entry for `key` with `payload`."""
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigurationError(f"Failed to create cache directory: {self.cache_dir}") from exc
        envelope = {"version": CACHE_VERSION, "timestamp": time.time(), "data": payload}
        path = self.path_for(key)
        try:
            fd, tmp_name = tempfile.mkstemp(dir=str(self.cache_dir), prefix=path.name, suffix=".tmp")
        except OSError as exc:
            raise ConfigurationError(f"Cannot write cache file {path}: {exc}") from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(envelope, f)
            os.chmod(tmp_name, mode)
            os.replace(tmp_name, path)
        except OSError as exc:
            self._discard(tmp_name)
            raise ConfigurationError(f"Cannot write cache file {path}: {exc}") from exc
        except BaseException:
            self._discard(tmp_name)
            raise
        logger.debug("Cache entry %s written", path)

    @staticmethod
    def _discard(tmp_name: str) -> None:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass

    def age(self, payload: Dict[str, Any]) -> Optional[float]:
        """Seconds since `payload` was written, or ``None`` if unknown."""
        stamp = payload.get("timestamp")
        if not isinstance(stamp, (int, float)) or isinstance(stamp, bool):
            return None
        return time.time() - stamp
