"""Contract between connections and the database client libraries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol, Sequence, runtime_checkable

from prefixdb.errors import ConfigurationError

Row = dict[str, Any]
Params = Sequence[object]


@dataclass(frozen=True, slots=True)
class ConnectOptions:
    """Options applied when a driver opens a handle.

    Handles always raise on error and always fetch rows as mappings keyed by
    column name; ``connect_timeout`` is the only tunable.
    """

    connect_timeout: float = 5.0


@dataclass(frozen=True, slots=True)
class DataSourceName:
    """Parsed ``driver:key=value;key=value`` descriptor."""

    driver: str
    params: Mapping[str, str] = field(default_factory=dict)

    @property
    def host(self) -> str:
        return self.params.get("host", "localhost")

    @property
    def port(self) -> int | None:
        value = self.params.get("port")
        return int(value) if value else None

    @property
    def dbname(self) -> str:
        return self.params.get("dbname", "")


def parse_dsn(dsn: str) -> DataSourceName:
    """Split a descriptor such as ``mysql:host=db;port=3306;dbname=app``."""

    driver, sep, rest = dsn.partition(":")
    if not sep or not driver:
        raise ConfigurationError(f'Malformed connection descriptor "{dsn}".')
    params: dict[str, str] = {}
    for chunk in rest.split(";"):
        if not chunk:
            continue
        key, _, value = chunk.partition("=")
        params[key.strip()] = value.strip()
    return DataSourceName(driver=driver, params=params)


@runtime_checkable
class ResultCursor(Protocol):
    """Rows produced by an executed statement."""

    def fetch_one(self) -> Row | None:
        """Return the next row, or ``None`` once exhausted."""

    def fetch_all(self) -> list[Row]:
        """Return every remaining row."""

    def fetch_column(self) -> object | None:
        """Return the first column of the next row, or ``None`` once exhausted."""


@runtime_checkable
class PreparedStatement(Protocol):
    """Statement compiled once and executed with positional parameters."""

    def execute(self, params: Params) -> ResultCursor: ...


@runtime_checkable
class DatabaseHandle(Protocol):
    """Live handle opened by a driver."""

    def prepare(self, text: str) -> PreparedStatement: ...

    def last_insert_id(self) -> str: ...


@runtime_checkable
class DatabaseDriver(Protocol):
    """Factory for database handles."""

    name: str

    def open(self, dsn: str, user: str, password: str, options: ConnectOptions) -> DatabaseHandle: ...


class BufferedCursor:
    """Cursor over rows already fetched from the server."""

    def __init__(self, rows: Sequence[Row]) -> None:
        self._rows = list(rows)
        self._position = 0

    def fetch_one(self) -> Row | None:
        if self._position >= len(self._rows):
            return None
        row = self._rows[self._position]
        self._position += 1
        return row

    def fetch_all(self) -> list[Row]:
        rows = self._rows[self._position :]
        self._position = len(self._rows)
        return rows

    def fetch_column(self) -> object | None:
        row = self.fetch_one()
        if row is None:
            return None
        return next(iter(row.values()), None)


def qmark_to_format(text: str) -> str:
    """Rewrite ``?`` markers into ``%s`` (escaping literal ``%``)."""

    return text.replace("%", "%%").replace("?", "%s")


def qmark_to_numeric(text: str) -> str:
    """Rewrite ``?`` markers into ``$1``, ``$2``, ..."""

    parts = text.split("?")
    rendered = [parts[0]]
    for index, part in enumerate(parts[1:], start=1):
        rendered.append(f"${index}")
        rendered.append(part)
    return "".join(rendered)


__all__ = [
    "BufferedCursor",
    "ConnectOptions",
    "DataSourceName",
    "DatabaseDriver",
    "DatabaseHandle",
    "Params",
    "PreparedStatement",
    "ResultCursor",
    "Row",
    "parse_dsn",
    "qmark_to_format",
    "qmark_to_numeric",
]
