"""Minimal database access layer with table-prefix rewriting."""

from __future__ import annotations

__version__ = "0.1.0"

from .config import ConnectionConfig, FileConfig, load_config, save_config
from .connection import Connection
from .errors import ConfigurationError, DatabaseConnectionError, DatabaseError, QueryError
from .factory import ConnectionFactory

__all__ = [
    "ConfigurationError",
    "Connection",
    "ConnectionConfig",
    "ConnectionFactory",
    "DatabaseConnectionError",
    "DatabaseError",
    "FileConfig",
    "QueryError",
    "__version__",
    "load_config",
    "save_config",
]
