"""Domain errors."""

from typing import List, Optional, Sequence, Type


class EnvsecError(Exception):
    """Base class for envsec errors."""


class ValidationError(EnvsecError, ValueError):
    """Invalid input detected before any network call."""


class ValueTooLargeError(ValidationError):
    """Secret value exceeds the backend's size limit."""

    def __init__(self, name: str, size: int, limit: int):
        """Initialize error."""
        self.name = name
        self.size = size
        self.limit = limit
        super().__init__(
            f"value of {name} is {size} bytes; parameter values are limited in size to {limit // 1024}KB"
        )


class FaultyParameterError(EnvsecError):
    """The provider refused to delete a specific parameter."""

    def __init__(self, name: str, cause: Optional[Exception] = None, names: Optional[Sequence[str]] = None):
        """Initialize error.

        names lists every secret of the refused batch; it defaults to name.
        """
        self.name = name
        self.names = list(names) if names else [name]
        super().__init__(f"Faulty Parameter: {name}")
        self.__cause__ = cause


class BatchItemError(EnvsecError):
    """A provider call failed for a group of secrets."""

    def __init__(self, operation: str, names: Sequence[str], cause: Exception):
        """Initialize error."""
        self.operation = operation
        self.names = list(names)
        self.cause = cause
        super().__init__(f"failed to {operation} {', '.join(self.names)}: {cause}")
        self.__cause__ = cause


class AggregateError(EnvsecError):
    """Several independent failures collected from one batch operation."""

    def __init__(self, errors: Sequence[Exception]):
        """Initialize error."""
        self._errors = list(errors)
        lines = "\n".join(f"  * {e}" for e in self._errors)
        super().__init__(f"{len(self._errors)} errors occurred:\n{lines}")

    def errors(self) -> List[Exception]:
        """Return every constituent error."""
        return list(self._errors)

    def find(self, error_type: Type[Exception]) -> Optional[Exception]:
        """Return the first constituent error of the given type."""
        for e in self._errors:
            if isinstance(e, error_type):
                return e
        return None

    def failed_names(self) -> List[str]:
        """Names of every secret that failed."""
        names: List[str] = []
        for e in self._errors:
            if isinstance(e, (BatchItemError, FaultyParameterError)):
                names.extend(e.names)
            elif isinstance(e, ValueTooLargeError):
                names.append(e.name)
        return names


class RemoteAPIError(EnvsecError):
    """Error response from the remote secrets service."""

    def __init__(self, code: str, message: str, status_code: int = 0):
        """Initialize error."""
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(f"{code}: {message}")


class CacheError(EnvsecError):
    """Local cache entry could not be read."""


class CacheMissError(CacheError):
    """No usable cache entry."""


class CacheNotFoundError(CacheMissError):
    """Cache entry does not exist."""


class CacheExpiredError(CacheMissError):
    """Cache entry exists but has expired."""
