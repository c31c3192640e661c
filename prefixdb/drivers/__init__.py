"""Database drivers and the contract they implement."""

from .registry import ENTRY_POINT_GROUP, DriverRegistry, get_default_registry
from .types import (
    BufferedCursor,
    ConnectOptions,
    DatabaseDriver,
    DatabaseHandle,
    DataSourceName,
    PreparedStatement,
    ResultCursor,
    Row,
    parse_dsn,
)

__all__ = [
    "BufferedCursor",
    "ConnectOptions",
    "DataSourceName",
    "DatabaseDriver",
    "DatabaseHandle",
    "DriverRegistry",
    "ENTRY_POINT_GROUP",
    "PreparedStatement",
    "ResultCursor",
    "Row",
    "get_default_registry",
    "parse_dsn",
]
