"""Driver lookup by name, with entry-point discovery for third-party drivers."""

from __future__ import annotations

import importlib.metadata as metadata
import inspect
import logging
import threading
from functools import lru_cache
from typing import Callable

from prefixdb.errors import ConfigurationError

from .types import DatabaseDriver

LOG = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "prefixdb.drivers"

DriverSource = DatabaseDriver | Callable[[], DatabaseDriver]


def _builtin_drivers() -> dict[str, DriverSource]:
    from .mysql import PyMySQLDriver
    from .pgsql import AsyncpgDriver

    return {"mysql": PyMySQLDriver, "pgsql": AsyncpgDriver}


class DriverRegistry:
    """Resolves driver names to driver instances.

    Builtin drivers and drivers exposed under the ``prefixdb.drivers`` entry
    point group are instantiated on first use and reused afterwards.
    """

    def __init__(
        self,
        *,
        entry_point_group: str = ENTRY_POINT_GROUP,
        builtin_drivers: dict[str, DriverSource] | None = None,
        discover: bool = True,
    ) -> None:
        self._entry_point_group = entry_point_group
        self._sources: dict[str, DriverSource] = dict(
            _builtin_drivers() if builtin_drivers is None else builtin_drivers
        )
        self._instances: dict[str, DatabaseDriver] = {}
        self._discover = discover
        self._discovered = False
        self._lock = threading.Lock()

    def register(self, name: str, driver: DriverSource) -> None:
        """Register or replace a driver under ``name``."""

        with self._lock:
            self._sources[name] = driver
            self._instances.pop(name, None)

    def discover(self) -> list[str]:
        """Add drivers advertised through entry points; builtins win on clashes."""

        eps = metadata.entry_points()
        group = eps.select(group=self._entry_point_group)
        found: list[str] = []
        with self._lock:
            for entry_point in sorted(group, key=lambda ep: ep.name):
                if entry_point.name in self._sources:
                    LOG.debug("Ignoring duplicate driver entry point %s", entry_point.name)
                    continue
                self._sources[entry_point.name] = entry_point.load()
                found.append(entry_point.name)
            self._discovered = True
        if found:
            LOG.debug("Discovered drivers: %s", ", ".join(found))
        return found

    def get(self, name: str) -> DatabaseDriver:
        """Return the driver registered under ``name``."""

        if self._discover and not self._discovered and name not in self._sources:
            self.discover()
        with self._lock:
            driver = self._instances.get(name)
            if driver is not None:
                return driver
            source = self._sources.get(name)
            if source is None:
                raise ConfigurationError(f'Unknown database driver "{name}".', field="driver")
            driver = source() if inspect.isclass(source) or not hasattr(source, "open") else source
            self._instances[name] = driver
            return driver

    @property
    def names(self) -> tuple[str, ...]:
        """Names of every known driver."""

        return tuple(sorted(self._sources))


@lru_cache
def get_default_registry() -> DriverRegistry:
    """Process-wide registry used when no registry is injected."""

    return DriverRegistry()


__all__ = [
    "DriverRegistry",
    "DriverSource",
    "ENTRY_POINT_GROUP",
    "get_default_registry",
]
