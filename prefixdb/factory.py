"""Registry of named, lazily opened connections."""

from __future__ import annotations

import copy
import logging
import threading
from pathlib import Path
from typing import Mapping

from .config import ConfigSource, load_config
from .connection import Connection
from .drivers import DatabaseDriver, DriverRegistry
from .errors import ConfigurationError

LOG = logging.getLogger(__name__)


class ConnectionFactory:
    """Hands out one Connection per configured name.

    A connection is opened on the first ``get_connection`` call for its name
    and returned on every later call. Changing a name's config afterwards
    does not touch the connection that is already open.
    """

    def __init__(
        self,
        configs: Mapping[str, ConfigSource] | None = None,
        *,
        driver: DatabaseDriver | None = None,
        registry: DriverRegistry | None = None,
    ) -> None:
        self._configs: dict[str, ConfigSource] = dict(configs or {})
        self._connections: dict[str, Connection] = {}
        self._driver = driver
        self._registry = registry
        self._lock = threading.Lock()

    @classmethod
    def from_file(
        cls,
        path: Path | None = None,
        *,
        driver: DatabaseDriver | None = None,
        registry: DriverRegistry | None = None,
    ) -> ConnectionFactory:
        """Build a factory from the connections listed in the config file."""

        return cls(load_config(path).connection_map(), driver=driver, registry=registry)

    @property
    def names(self) -> tuple[str, ...]:
        """Configured connection names."""

        return tuple(sorted(self._configs))

    def get_connection(self, name: str) -> Connection:
        """Return the connection for ``name``, opening it on first use."""

        with self._lock:
            connection = self._connections.get(name)
            if connection is None:
                config = self.get_config(name)
                LOG.info("Opening database connection %r", name)
                connection = Connection(config, driver=self._driver, registry=self._registry)
                self._connections[name] = connection
            return connection

    def get_config(self, name: str) -> ConfigSource:
        """Return a copy of the configuration stored for ``name``."""

        if name not in self._configs:
            raise ConfigurationError(f'No configuration available for connection "{name}".')
        return copy.deepcopy(self._configs[name])

    def set_config(self, name: str, config: ConfigSource) -> ConnectionFactory:
        """Store configuration for ``name``; returns the factory for chaining."""

        self._configs[name] = config
        return self


__all__ = ["ConnectionFactory"]
