"""Single database connection with table-prefix rewriting and statement reuse."""

from __future__ import annotations

import logging
import threading
from typing import Any, Sequence

from .config import ConfigSource, ConnectionConfig, coerce_config
from .drivers import (
    ConnectOptions,
    DatabaseDriver,
    DatabaseHandle,
    DriverRegistry,
    PreparedStatement,
    ResultCursor,
    Row,
    get_default_registry,
)
from .values import is_empty

LOG = logging.getLogger(__name__)


class Connection:
    """Owns one database handle, a table prefix and a prepared-statement cache.

    Queries mark table names with braces, ``SELECT * FROM {users}``; the
    braces are rewritten into the configured prefix before the statement is
    prepared. Prepared statements are cached by their rewritten text and
    reused for the lifetime of the connection.
    """

    def __init__(
        self,
        config: ConfigSource,
        *,
        driver: DatabaseDriver | None = None,
        registry: DriverRegistry | None = None,
    ) -> None:
        self._config: ConnectionConfig = coerce_config(config)
        if driver is None:
            driver = (registry or get_default_registry()).get(self._config.driver)
        self._prefix = self._config.prefix
        self._statements: dict[str, PreparedStatement] = {}
        self._lock = threading.Lock()
        options = ConnectOptions(connect_timeout=self._config.connect_timeout)
        self._handle: DatabaseHandle = driver.open(
            self._config.dsn,
            self._config.user,
            self._config.password,
            options,
        )

    @property
    def prefix(self) -> str:
        """Table prefix substituted for ``{`` markers."""

        return self._prefix

    @property
    def dsn(self) -> str:
        return self._config.dsn

    @property
    def cached_statements(self) -> int:
        """Number of distinct prepared statements held by this connection."""

        return len(self._statements)

    def prefix_query(self, query: str) -> str:
        """Replace ``{`` with the prefix and drop ``}``.

        This is plain character substitution: braces inside string literals
        are rewritten too.
        """

        return query.replace("{", self._prefix).replace("}", "")

    def execute(self, query: str, params: Sequence[object] | None = None) -> ResultCursor:
        """Execute a query and return its cursor."""

        statement = self._prepare(self.prefix_query(query))
        return statement.execute(tuple(params or ()))

    def get_row(self, query: str, params: Sequence[object] | None = None) -> Row | None:
        """Return the first row, or ``None`` when the query yields nothing."""

        return self.execute(query, params).fetch_one()

    def get_rows(self, query: str, params: Sequence[object] | None = None) -> list[Row]:
        """Return all rows in result order."""

        return self.execute(query, params).fetch_all()

    def get_col(
        self,
        query: str,
        params: Sequence[object] | None = None,
        *,
        stop_on_empty: bool = True,
    ) -> list[Any]:
        """Return the first column of each row.

        By default collection stops at the first empty value (``None``,
        ``False``, zero, ``""`` or ``"0"``) even if more rows follow. Callers
        rely on that truncation, so pass ``stop_on_empty=False`` to read the
        whole column instead.
        """

        cursor = self.execute(query, params)
        if not stop_on_empty:
            return [next(iter(row.values()), None) for row in cursor.fetch_all()]
        column: list[Any] = []
        while not is_empty(value := cursor.fetch_column()):
            column.append(value)
        return column

    def get_field(self, query: str, params: Sequence[object] | None = None) -> Any:
        """Return the first column of the first row, or ``None``."""

        return self.execute(query, params).fetch_column()

    def last_id(self) -> str:
        """Identifier generated by the most recent insert on this handle."""

        return str(self._handle.last_insert_id())

    @staticmethod
    def get_placeholders(values: Sequence[object]) -> str:
        """Return ``"? , ? , ?"`` with one marker per value."""

        return " , ".join("?" for _ in values)

    def _prepare(self, text: str) -> PreparedStatement:
        with self._lock:
            statement = self._statements.get(text)
            if statement is None:
                LOG.debug("Preparing statement: %s", text)
                statement = self._handle.prepare(text)
                self._statements[text] = statement
            return statement

    def __repr__(self) -> str:
        return f"Connection(dsn={self.dsn!r}, prefix={self._prefix!r})"


__all__ = ["Connection"]
