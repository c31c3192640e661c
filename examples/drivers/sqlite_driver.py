"""Sample third-party driver over sqlite3, used for manual and automated tests.

Register it from another distribution with::

    [project.entry-points."prefixdb.drivers"]
    sqlite = "examples.drivers.sqlite_driver:SqliteDriver"

and point a connection at it with ``driver = "sqlite"`` and ``dbname`` set to
a file path or ``:memory:``.
"""

from __future__ import annotations

import sqlite3

from prefixdb.drivers import BufferedCursor, ConnectOptions, Row, parse_dsn
from prefixdb.errors import DatabaseConnectionError, QueryError


class SqliteStatement:
    def __init__(self, connection: sqlite3.Connection, text: str) -> None:
        self._connection = connection
        self.text = text

    def execute(self, params) -> BufferedCursor:  # type: ignore[no-untyped-def]
        try:
            cursor = self._connection.execute(self.text, tuple(params))
            rows: list[Row] = [dict(row) for row in cursor.fetchall()]
        except sqlite3.Error as exc:
            raise QueryError(str(exc)) from exc
        return BufferedCursor(rows)


class SqliteHandle:
    def __init__(self, connection: sqlite3.Connection) -> None:
        self.connection = connection
        self.prepared: list[str] = []

    def prepare(self, text: str) -> SqliteStatement:
        self.prepared.append(text)
        return SqliteStatement(self.connection, text)

    def last_insert_id(self) -> str:
        (value,) = self.connection.execute("SELECT last_insert_rowid()").fetchone()
        return str(value)


class SqliteDriver:
    """Driver descriptor exposed through the ``prefixdb.drivers`` entry point."""

    name = "sqlite"

    def __init__(self) -> None:
        self.handles: list[SqliteHandle] = []

    def open(self, dsn: str, user: str, password: str, options: ConnectOptions) -> SqliteHandle:
        source = parse_dsn(dsn)
        try:
            connection = sqlite3.connect(
                source.dbname,
                timeout=options.connect_timeout,
                isolation_level=None,
                check_same_thread=False,
            )
        except sqlite3.Error as exc:
            raise DatabaseConnectionError(str(exc)) from exc
        connection.row_factory = sqlite3.Row
        handle = SqliteHandle(connection)
        self.handles.append(handle)
        return handle
