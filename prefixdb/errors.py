"""Error hierarchy shared by connections, drivers and the factory."""

from __future__ import annotations


class DatabaseError(RuntimeError):
    """Base class for every error raised by prefixdb."""


class ConfigurationError(DatabaseError):
    """Raised when a connection is missing configuration or is unknown."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class DatabaseConnectionError(DatabaseError):
    """Raised when a driver cannot establish a handle."""


class QueryError(DatabaseError):
    """Raised when preparing or executing a statement fails."""


__all__ = [
    "ConfigurationError",
    "DatabaseConnectionError",
    "DatabaseError",
    "QueryError",
]
