"""PostgreSQL driver that drives asyncpg from blocking callers."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Coroutine, TypeVar

import asyncpg

from prefixdb.errors import DatabaseConnectionError, QueryError

from .types import BufferedCursor, ConnectOptions, Params, parse_dsn, qmark_to_numeric

LOG = logging.getLogger(__name__)

T = TypeVar("T")


class _LoopRunner:
    """Background event loop that runs asyncpg coroutines to completion."""

    def __init__(self) -> None:
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._loop.run_forever,
            name="prefixdb-asyncpg-driver",
            daemon=True,
        )
        self._thread.start()

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result()

    def shutdown(self) -> None:
        if not self._loop.is_running():  # pragma: no cover - already stopped
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=1)


class AsyncpgStatement:
    """Server-side prepared statement."""

    def __init__(self, runner: _LoopRunner, statement: Any, text: str) -> None:
        self._runner = runner
        self._statement = statement
        self.text = text

    def execute(self, params: Params) -> BufferedCursor:
        try:
            records = self._runner.run(self._statement.fetch(*params))
        except Exception as exc:
            raise QueryError(str(exc)) from exc
        return BufferedCursor([dict(record) for record in records])


class AsyncpgHandle:
    """Open asyncpg connection bound to the driver's loop."""

    def __init__(self, runner: _LoopRunner, connection: Any) -> None:
        self._runner = runner
        self._connection = connection

    def prepare(self, text: str) -> AsyncpgStatement:
        try:
            statement = self._runner.run(self._connection.prepare(qmark_to_numeric(text)))
        except Exception as exc:
            raise QueryError(str(exc)) from exc
        return AsyncpgStatement(self._runner, statement, text)

    def last_insert_id(self) -> str:
        try:
            value = self._runner.run(self._connection.fetchval("SELECT lastval()"))
        except Exception as exc:
            raise QueryError(str(exc)) from exc
        return str(value)


class AsyncpgDriver:
    """Opens PostgreSQL handles; each driver owns one background loop."""

    name = "pgsql"

    def __init__(self) -> None:
        self._runner: _LoopRunner | None = None
        self._lock = threading.Lock()

    def open(self, dsn: str, user: str, password: str, options: ConnectOptions) -> AsyncpgHandle:
        source = parse_dsn(dsn)
        kwargs: dict[str, object] = {
            "host": source.host,
            "user": user,
            "password": password,
            "database": source.dbname,
            "timeout": options.connect_timeout,
        }
        if source.port is not None:
            kwargs["port"] = source.port
        runner = self._ensure_runner()
        try:
            connection = runner.run(asyncpg.connect(**kwargs))
        except Exception as exc:
            raise DatabaseConnectionError(f"Failed to connect to {source.host}: {exc}") from exc
        LOG.debug("Opened PostgreSQL connection to %s/%s", source.host, source.dbname)
        return AsyncpgHandle(runner, connection)

    def shutdown(self) -> None:
        """Stop the background event loop."""

        if self._runner is not None:
            self._runner.shutdown()
            self._runner = None

    def _ensure_runner(self) -> _LoopRunner:
        with self._lock:
            if self._runner is None:
                self._runner = _LoopRunner()
            return self._runner


__all__ = ["AsyncpgDriver", "AsyncpgHandle", "AsyncpgStatement"]
