"""Tests for the named connection factory."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from prefixdb import ConfigurationError, Connection, ConnectionConfig, ConnectionFactory

from fakes import FakeDriver


def test_unknown_connection_raises(driver: FakeDriver) -> None:
    factory = ConnectionFactory(driver=driver)

    with pytest.raises(ConfigurationError, match='"missing"'):
        factory.get_connection("missing")

    assert driver.opened == []


def test_set_config_enables_connection_and_memoizes(config: dict[str, object], driver: FakeDriver) -> None:
    factory = ConnectionFactory(driver=driver)
    with pytest.raises(ConfigurationError):
        factory.get_connection("missing")

    factory.set_config("missing", config)
    first = factory.get_connection("missing")
    second = factory.get_connection("missing")

    assert isinstance(first, Connection)
    assert first is second
    assert len(driver.opened) == 1


def test_initial_map_is_used(config: dict[str, object], driver: FakeDriver) -> None:
    factory = ConnectionFactory({"main": config, "reports": {**config, "prefix": "rpt_"}}, driver=driver)

    main = factory.get_connection("main")
    reports = factory.get_connection("reports")

    assert main is not reports
    assert reports.prefix == "rpt_"
    assert factory.names == ("main", "reports")


def test_set_config_returns_factory_for_chaining(config: dict[str, object], driver: FakeDriver) -> None:
    factory = ConnectionFactory(driver=driver)

    result = factory.set_config("a", config).set_config("b", config)

    assert result is factory
    assert factory.names == ("a", "b")


def test_get_config_unknown_raises() -> None:
    factory = ConnectionFactory()

    with pytest.raises(ConfigurationError, match='No configuration available for connection "nope"'):
        factory.get_config("nope")


def test_get_config_returns_a_copy(config: dict[str, object]) -> None:
    factory = ConnectionFactory({"main": config})

    copied = factory.get_config("main")
    copied["user"] = "intruder"  # type: ignore[index]

    assert factory.get_config("main")["user"] == "app_user"  # type: ignore[index]


def test_get_config_copies_models() -> None:
    model = ConnectionConfig(dbname="app", user="u", password="p")
    factory = ConnectionFactory({"main": model})

    copied = factory.get_config("main")

    assert copied == model
    assert copied is not model


def test_later_config_does_not_affect_live_connection(config: dict[str, object], driver: FakeDriver) -> None:
    factory = ConnectionFactory({"main": config}, driver=driver)
    live = factory.get_connection("main")

    factory.set_config("main", {**config, "prefix": "new_"})

    assert factory.get_connection("main") is live
    assert live.prefix == ""
    assert factory.get_config("main")["prefix"] == "new_"  # type: ignore[index]
    assert len(driver.opened) == 1


def test_failed_construction_is_not_memoized(config: dict[str, object], driver: FakeDriver) -> None:
    factory = ConnectionFactory({"main": {"dbname": "app"}}, driver=driver)

    with pytest.raises(ConfigurationError) as excinfo:
        factory.get_connection("main")
    assert excinfo.value.field == "user"

    factory.set_config("main", config)

    assert isinstance(factory.get_connection("main"), Connection)


def test_from_file_reads_connections(tmp_path: Path, driver: FakeDriver) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        """
[connections.main]
host = "db.internal"
dbname = "app"
user = "app"
password = "secret"
prefix = "app_"
"""
    )

    factory = ConnectionFactory.from_file(config_path, driver=driver)
    connection = factory.get_connection("main")

    assert factory.names == ("main",)
    assert connection.prefix == "app_"
    assert driver.opened[0][0] == "mysql:host=db.internal;port=3306;dbname=app"


def test_concurrent_get_connection_opens_once(config: dict[str, object]) -> None:
    driver = FakeDriver(delay=0.05)
    factory = ConnectionFactory({"main": config}, driver=driver)
    barrier = threading.Barrier(8)

    def _run() -> Connection:
        barrier.wait()
        connection = factory.get_connection("main")
        connection.execute("SELECT 1")
        return connection

    with ThreadPoolExecutor(max_workers=8) as pool:
        connections = [future.result() for future in [pool.submit(_run) for _ in range(8)]]

    assert len(driver.opened) == 1
    assert all(connection is connections[0] for connection in connections)
    assert driver.handle.prepared == ["SELECT 1"]
