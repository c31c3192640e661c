"""Connection configuration models and config-file helpers."""

from __future__ import annotations

from pathlib import Path

import tomllib

from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError
from .values import is_empty

CONFIG_FILE = Path.home() / ".config" / "prefixdb" / "config.toml"

REQUIRED_FIELDS = ("user", "password", "dbname")

_STRING_FIELDS = ("driver", "host", "dbname", "user", "password", "prefix")

_TOML_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\b": "\\b",
    "\t": "\\t",
    "\n": "\\n",
    "\f": "\\f",
    "\r": "\\r",
}


class ConnectionConfig(BaseModel):
    """Settings for one logical database connection."""

    model_config = ConfigDict(extra="ignore")

    driver: str = "mysql"
    host: str = "localhost"
    port: int = 3306
    dbname: str = ""
    user: str = ""
    password: str = ""
    prefix: str = ""
    connect_timeout: float = 5.0

    @property
    def dsn(self) -> str:
        """Connection descriptor handed to the driver."""

        return f"{self.driver}:host={self.host};port={self.port};dbname={self.dbname}"


ConfigSource = ConnectionConfig | Mapping[str, object]


class FileConfig(BaseModel):
    """Shape of the configuration file."""

    default_connection: str | None = None
    connections: dict[str, ConnectionConfig] = Field(default_factory=dict)

    def connection_map(self) -> dict[str, ConnectionConfig]:
        """Return a copy of the configured connections keyed by name."""

        return {name: config.model_copy() for name, config in self.connections.items()}


def coerce_config(config: ConfigSource) -> ConnectionConfig:
    """Validate a config source and apply defaults.

    Required properties are checked in a fixed order (user, password, dbname)
    and the first one that is missing or empty is reported.
    """

    if isinstance(config, ConnectionConfig):
        data: dict[str, object] = config.model_dump()
    else:
        data = dict(config)
    for field in REQUIRED_FIELDS:
        if is_empty(data.get(field)):
            raise ConfigurationError(
                f'Database configuration missing required property "{field}".',
                field=field,
            )
    try:
        resolved = ConnectionConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid database configuration: {exc}") from exc
    if "{" in resolved.prefix or "}" in resolved.prefix:
        raise ConfigurationError(
            f'Table prefix "{resolved.prefix}" must not contain "{{" or "}}".',
            field="prefix",
        )
    return resolved


def load_config(path: Path | None = None) -> FileConfig:
    """Load configuration from disk; fall back to an empty config if missing."""

    try:
        data = _read_config_file(path or CONFIG_FILE)
    except FileNotFoundError:
        return FileConfig()
    except (tomllib.TOMLDecodeError, OSError):
        return FileConfig()
    return FileConfig(**data)


def save_config(config: FileConfig, path: Path | None = None) -> None:
    """Persist configuration to disk."""

    target = path or CONFIG_FILE
    target.parent.mkdir(parents=True, exist_ok=True)
    lines: list[str] = []
    if config.default_connection:
        lines.append(f"default_connection = {_toml_str(config.default_connection)}")
    for name, connection in config.connections.items():
        lines.append("")
        lines.append(f"[connections.{_toml_str(name)}]")
        for key in _STRING_FIELDS:
            value = getattr(connection, key)
            if value:
                lines.append(f"{key} = {_toml_str(value)}")
        lines.append(f"port = {connection.port}")
        lines.append(f"connect_timeout = {connection.connect_timeout}")
    target.write_text("\n".join(lines).lstrip("\n") + "\n")


def _toml_str(value: str) -> str:
    """Render ``value`` as a TOML basic string."""

    escaped: list[str] = []
    for char in value:
        if char in _TOML_ESCAPES:
            escaped.append(_TOML_ESCAPES[char])
        elif ord(char) < 0x20 or char == "\x7f":
            escaped.append(f"\\u{ord(char):04x}")
        else:
            escaped.append(char)
    return '"' + "".join(escaped) + '"'


def _read_config_file(path: Path) -> dict[str, object]:
    with path.open("rb") as handle:
        raw = tomllib.load(handle)
    data: dict[str, object] = {}
    default_connection = raw.get("default_connection")
    if isinstance(default_connection, str):
        data["default_connection"] = default_connection
    connections = raw.get("connections")
    if isinstance(connections, dict):
        parsed_connections: dict[str, ConnectionConfig] = {}
        for name, entry in connections.items():
            if not isinstance(entry, dict):
                continue
            parsed: dict[str, object] = {}
            for key in _STRING_FIELDS:
                value = entry.get(key)
                if isinstance(value, str):
                    parsed[key] = value
            port = entry.get("port")
            if isinstance(port, int):
                parsed["port"] = port
            timeout = entry.get("connect_timeout")
            if isinstance(timeout, (int, float)):
                parsed["connect_timeout"] = float(timeout)
            parsed_connections[str(name)] = ConnectionConfig(**parsed)
        data["connections"] = parsed_connections
    return data


__all__ = [
    "CONFIG_FILE",
    "ConfigSource",
    "ConnectionConfig",
    "FileConfig",
    "REQUIRED_FIELDS",
    "coerce_config",
    "load_config",
    "save_config",
]
