"""On-disk cache with per-entry expiry.

Each key is stored in its own file under the user cache directory. The file
holds a JSON envelope with the base64-encoded value and its absolute expiry,
so freshness never depends on file timestamps. Writers are not synchronized;
the last write wins.
"""

import base64
import binascii
import json
import os
from datetime import datetime, timedelta, UTC
from pathlib import Path
from typing import Callable, Optional

from ..domain.errors import CacheError, CacheExpiredError, CacheNotFoundError
from ..domain.interfaces import Cache

FILE_PREFIX = "filecache-"


def user_cache_dir() -> Path:
    """Base cache directory following the XDG convention."""
    xdg = os.getenv("XDG_CACHE_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".cache"


class LocalCache(Cache):
    """File-per-key cache rooted at ``<cache dir>/<app_name>``."""

    def __init__(
        self,
        app_name: str,
        base_dir: Optional[Path] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ):
        """Initialize cache."""
        self.directory = (base_dir or user_cache_dir()) / app_name
        self.clock = clock

    def set(self, key: str, value: bytes, ttl: timedelta) -> None:
        """Cache a value for a duration."""
        self.set_until(key, value, self.clock() + ttl)

    def set_until(self, key: str, value: bytes, expires_at: datetime) -> None:
        """Cache a value until an absolute time."""
        envelope = {
            "value": base64.b64encode(value).decode("ascii"),
            "expiry": _as_utc(expires_at).isoformat(),
        }
        self.directory.mkdir(parents=True, exist_ok=True)
        self._path(key).write_text(json.dumps(envelope), encoding="utf-8")

    def get(self, key: str) -> bytes:
        """Get a cached value.

        Raises:
            CacheNotFoundError: No entry exists for the key.
            CacheExpiredError: The entry's expiry has passed.
            CacheError: The entry could not be decoded.
        """
        path = self._path(key)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise CacheNotFoundError(key) from None

        try:
            envelope = json.loads(content)
            expiry = _as_utc(datetime.fromisoformat(envelope["expiry"]))
            value = base64.b64decode(envelope["value"], validate=True)
        except (ValueError, KeyError, TypeError, binascii.Error) as e:
            raise CacheError(f"corrupt cache entry {path}: {e}") from e

        if self.clock() > expiry:
            raise CacheExpiredError(key)
        return value

    def _path(self, key: str) -> Path:
        """File holding a key."""
        return self.directory / f"{FILE_PREFIX}{key}"


def _as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)
