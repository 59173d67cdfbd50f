from __future__ import annotations

import json
import os
import time

import pytest

from monitoring.errors import ConfigurationError
from storage.api_cache import CACHE_VERSION, ApiCache, safe_host


def test_safe_host() -> None:
    assert safe_host("10.0.1.1") == "10_0_1_1"
    assert safe_host("nvr-01.example_lan") == "nvr-01_example_lan"


def test_write_then_read(tmp_path) -> None:
    cache = ApiCache(tmp_path / "cache", "10.0.1.1")
    cache.write("sid", {"sid": "abc"})
    assert cache.read("sid") == {"sid": "abc"}
    assert cache.path_for("sid").name == "10_0_1_1.sid.cache"
    # Only the final file remains; no temp files linger.
    assert sorted(p.name for p in (tmp_path / "cache").iterdir()) == ["10_0_1_1.sid.cache"]


def test_write_replaces_existing_entry(tmp_path) -> None:
    cache = ApiCache(tmp_path, "host")
    cache.write("sid", {"sid": "old"})
    cache.write("sid", {"sid": "new"})
    assert cache.read("sid") == {"sid": "new"}


def test_write_sets_mode(tmp_path) -> None:
    cache = ApiCache(tmp_path, "host")
    cache.write("sid", {"sid": "secret"}, mode=0o600)
    assert os.stat(cache.path_for("sid")).st_mode & 0o777 == 0o600


def test_missing_entry_is_a_miss(tmp_path) -> None:
    assert ApiCache(tmp_path, "host").read("sid") is None


def test_unversioned_or_garbage_entries_are_misses(tmp_path) -> None:
    cache = ApiCache(tmp_path, "host")
    path = cache.path_for("sid")
    path.write_text("plain-sid-from-older-release")
    assert cache.read("sid") is None

    path.write_text(json.dumps({"version": CACHE_VERSION + 1, "data": {"sid": "x"}}))
    assert cache.read("sid") is None

    path.write_text(json.dumps({"version": CACHE_VERSION, "data": "not-a-dict"}))
    assert cache.read("sid") is None


def test_age_uses_payload_timestamp(tmp_path) -> None:
    cache = ApiCache(tmp_path, "host")
    assert cache.age({"timestamp": time.time() - 120}) >= 119
    assert cache.age({}) is None
    assert cache.age({"timestamp": "yesterday"}) is None


def test_unusable_cache_dir_is_a_configuration_error(tmp_path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    cache = ApiCache(blocker, "host")
    with pytest.raises(ConfigurationError):
        cache.write("sid", {"sid": "abc"})
