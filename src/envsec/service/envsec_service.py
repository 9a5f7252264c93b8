"""Envsec service: validated secret operations for one environment."""

from typing import Dict, List, Optional

from ..domain.env_id import EnvironmentID
from ..domain.interfaces import Logger, Store
from ..domain.secret import SecretEntry
from ..domain.validation import ensure_valid_names, parse_set_args


class Envsec:
    """Secret operations bound to a store and an environment.

    Callers construct one per command and pass it down explicitly.
    """

    def __init__(self, store: Store, env_id: EnvironmentID, logger: Logger):
        """Initialize envsec service."""
        self.store = store
        self.env_id = env_id
        self.logger = logger

    def list(self) -> List[SecretEntry]:
        """List the environment's secrets, sorted by name."""
        return self.store.list(self.env_id)

    def get(self, name: str) -> Optional[str]:
        """Get a secret value, or None if it is not set."""
        return self.store.get(self.env_id, name)

    def get_all(self, names: List[str]) -> List[SecretEntry]:
        """Get several secrets."""
        return self.store.get_all(self.env_id, names)

    def set(self, name: str, value: str) -> None:
        """Set one secret."""
        self.set_map({name: value})

    def set_map(self, env_map: Dict[str, str]) -> None:
        """Validate every name, then set all secrets."""
        ensure_valid_names(env_map.keys())
        self.store.set_all(self.env_id, env_map)
        self.logger.info(
            "Set environment variables",
            names=sorted(env_map),
            environment=self.env_id.env_name.lower(),
        )

    def set_from_args(self, args: List[str]) -> None:
        """Set secrets from NAME=VALUE arguments."""
        self.set_map(parse_set_args(args))

    def delete(self, name: str) -> None:
        """Delete one secret."""
        self.store.delete(self.env_id, name)
        self.logger.info(
            "Deleted environment variables",
            names=[name],
            environment=self.env_id.env_name.lower(),
        )

    def delete_all(self, names: List[str]) -> None:
        """Delete several secrets."""
        self.store.delete_all(self.env_id, names)
        self.logger.info(
            "Deleted environment variables",
            names=list(names),
            environment=self.env_id.env_name.lower(),
        )
