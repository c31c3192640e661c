"""Shared fixtures."""

from __future__ import annotations

import pytest

from fakes import FakeDriver
from prefixdb.drivers.registry import get_default_registry


@pytest.fixture
def driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture
def config() -> dict[str, object]:
    return {"dbname": "app", "user": "app_user", "password": "secret"}


@pytest.fixture
def fresh_default_registry():
    """Reset the process-wide driver registry around a test."""

    get_default_registry.cache_clear()
    yield
    get_default_registry.cache_clear()
