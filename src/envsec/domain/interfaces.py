"""Domain interfaces (Protocols)."""

from datetime import datetime, timedelta
from typing import Protocol, Optional, Dict, List, Any

from .env_id import EnvironmentID
from .secret import SecretEntry


class Store(Protocol):
    """Secret store interface.

    Implementations perform no name validation; that happens in the service
    layer so every backend shares it.
    """

    def list(self, env_id: EnvironmentID) -> List[SecretEntry]:
        """List all secrets of an environment, sorted by name."""
        ...

    def get(self, env_id: EnvironmentID, name: str) -> Optional[str]:
        """Get the value of a secret, or None if it does not exist."""
        ...

    def get_all(self, env_id: EnvironmentID, names: List[str]) -> List[SecretEntry]:
        """Get the values of several secrets."""
        ...

    def set(self, env_id: EnvironmentID, name: str, value: str) -> None:
        """Create or overwrite a secret."""
        ...

    def set_all(self, env_id: EnvironmentID, values: Dict[str, str]) -> None:
        """Create or overwrite several secrets."""
        ...

    def delete(self, env_id: EnvironmentID, name: str) -> None:
        """Delete a secret."""
        ...

    def delete_all(self, env_id: EnvironmentID, names: List[str]) -> None:
        """Delete several secrets."""
        ...


class Cache(Protocol):
    """Key to bytes cache with expiry."""

    def get(self, key: str) -> bytes:
        """Get a cached value; raises CacheMissError on a miss."""
        ...

    def set(self, key: str, value: bytes, ttl: timedelta) -> None:
        """Cache a value for a duration."""
        ...

    def set_until(self, key: str, value: bytes, expires_at: datetime) -> None:
        """Cache a value until an absolute time."""
        ...


class Logger(Protocol):
    """Logger interface."""

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def error(self, message: str, **kwargs: Any) -> None:
        """Log error message."""
        ...

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message."""
        ...
