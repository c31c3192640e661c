"""MySQL driver backed by PyMySQL."""

from __future__ import annotations

import logging

import pymysql
import pymysql.cursors

from prefixdb.errors import DatabaseConnectionError, QueryError

from .types import ConnectOptions, Params, Row, parse_dsn, qmark_to_format

LOG = logging.getLogger(__name__)


class PyMySQLCursor:
    """Adapts a PyMySQL ``DictCursor`` to the cursor contract.

    The underlying cursor is closed once its rows are exhausted.
    """

    def __init__(self, cursor: pymysql.cursors.DictCursor) -> None:
        self._cursor = cursor
        self._closed = False

    def fetch_one(self) -> Row | None:
        if self._closed:
            return None
        try:
            row = self._cursor.fetchone()
        except pymysql.MySQLError as exc:
            self.close()
            raise QueryError(str(exc)) from exc
        if row is None:
            self.close()
        return row

    def fetch_all(self) -> list[Row]:
        if self._closed:
            return []
        try:
            return list(self._cursor.fetchall())
        except pymysql.MySQLError as exc:
            raise QueryError(str(exc)) from exc
        finally:
            self.close()

    def fetch_column(self) -> object | None:
        row = self.fetch_one()
        if row is None:
            return None
        return next(iter(row.values()), None)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._cursor.close()


class PyMySQLStatement:
    """Client-side prepared statement; PyMySQL interpolates on execute."""

    def __init__(self, connection: pymysql.connections.Connection, text: str) -> None:
        self._connection = connection
        self.text = text
        self._sql = qmark_to_format(text)

    def execute(self, params: Params) -> PyMySQLCursor:
        cursor = self._connection.cursor(pymysql.cursors.DictCursor)
        try:
            cursor.execute(self._sql, tuple(params))
        except pymysql.MySQLError as exc:
            cursor.close()
            raise QueryError(str(exc)) from exc
        return PyMySQLCursor(cursor)


class PyMySQLHandle:
    """Open PyMySQL connection."""

    def __init__(self, connection: pymysql.connections.Connection) -> None:
        self._connection = connection

    def prepare(self, text: str) -> PyMySQLStatement:
        return PyMySQLStatement(self._connection, text)

    def last_insert_id(self) -> str:
        return str(self._connection.insert_id())


class PyMySQLDriver:
    """Opens MySQL handles with autocommit and mapping rows."""

    name = "mysql"

    def open(self, dsn: str, user: str, password: str, options: ConnectOptions) -> PyMySQLHandle:
        source = parse_dsn(dsn)
        kwargs: dict[str, object] = {
            "host": source.host,
            "user": user,
            "password": password,
            "database": source.dbname,
            "cursorclass": pymysql.cursors.DictCursor,
            "autocommit": True,
            "connect_timeout": max(1, int(options.connect_timeout)),
        }
        if source.port is not None:
            kwargs["port"] = source.port
        try:
            connection = pymysql.connect(**kwargs)
        except pymysql.MySQLError as exc:
            raise DatabaseConnectionError(f"Failed to connect to {source.host}: {exc}") from exc
        LOG.debug("Opened MySQL connection to %s/%s", source.host, source.dbname)
        return PyMySQLHandle(connection)


__all__ = ["PyMySQLCursor", "PyMySQLDriver", "PyMySQLHandle", "PyMySQLStatement"]
