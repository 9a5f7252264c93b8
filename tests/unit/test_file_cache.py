"""Unit tests for LocalCache."""

import json
from datetime import datetime, timedelta, UTC

import pytest

from envsec.domain.errors import CacheError, CacheExpiredError, CacheMissError, CacheNotFoundError
from envsec.infra.file_cache import LocalCache, user_cache_dir

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


class Clock:
    """Settable clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    """Clock frozen at NOW."""
    return Clock(NOW)


@pytest.fixture
def cache(tmp_path, clock):
    """Cache rooted in a temporary directory."""
    return LocalCache("jetpack.io/envsec", base_dir=tmp_path, clock=clock)


def test_set_then_get(cache):
    """Test a fresh entry is returned."""
    cache.set("key", b"\x00binary\xff", timedelta(minutes=5))

    assert cache.get("key") == b"\x00binary\xff"


def test_missing_key(cache):
    """Test a missing key is reported as not found."""
    with pytest.raises(CacheNotFoundError):
        cache.get("absent")


def test_expired_entry(cache, clock):
    """Test an entry is never returned after its expiry."""
    cache.set("key", b"v", timedelta(minutes=5))
    clock.now = NOW + timedelta(minutes=5, seconds=1)

    with pytest.raises(CacheExpiredError):
        cache.get("key")


def test_not_found_and_expired_are_both_misses(cache, clock):
    """Test callers can treat both miss kinds alike."""
    cache.set_until("key", b"v", NOW - timedelta(seconds=1))

    with pytest.raises(CacheMissError):
        cache.get("key")
    with pytest.raises(CacheMissError):
        cache.get("other")


def test_set_until_absolute_expiry(cache, clock):
    """Test absolute expiry is honored up to the instant."""
    cache.set_until("key", b"v", NOW + timedelta(hours=1))
    clock.now = NOW + timedelta(hours=1)

    assert cache.get("key") == b"v"


def test_envelope_layout(cache, tmp_path):
    """Test one file per key holding value and expiry."""
    cache.set_until("awsfed-org", b"creds", NOW + timedelta(hours=1))

    path = tmp_path / "jetpack.io" / "envsec" / "filecache-awsfed-org"
    envelope = json.loads(path.read_text())
    assert set(envelope) == {"value", "expiry"}
    assert datetime.fromisoformat(envelope["expiry"]) == NOW + timedelta(hours=1)


def test_last_write_wins(cache):
    """Test overwriting a key replaces the entry."""
    cache.set("key", b"first", timedelta(minutes=1))
    cache.set("key", b"second", timedelta(minutes=1))

    assert cache.get("key") == b"second"


def test_corrupt_entry(cache, tmp_path):
    """Test an unreadable entry raises a cache error that is not a miss."""
    cache.set("key", b"v", timedelta(minutes=1))
    (tmp_path / "jetpack.io" / "envsec" / "filecache-key").write_text("not json")

    with pytest.raises(CacheError) as exc_info:
        cache.get("key")
    assert not isinstance(exc_info.value, CacheMissError)


def test_user_cache_dir_honors_xdg(monkeypatch, tmp_path):
    """Test XDG_CACHE_HOME overrides the default location."""
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))

    assert user_cache_dir() == tmp_path
