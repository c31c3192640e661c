"""Utility that launches a sample MySQL Docker container for prefixdb."""

from __future__ import annotations

import argparse
import subprocess
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from prefixdb.config import CONFIG_FILE, ConnectionConfig, load_config, save_config

DEFAULT_CONTAINER = "prefixdb-sample-db"
DEFAULT_PORT = 3307
DEFAULT_PASSWORD = "prefixdb"
DEFAULT_DB = "prefixdb_demo"
DEFAULT_USER = "prefixdb"
DEFAULT_PREFIX = "demo_"
DEFAULT_NAME = "sample"
DOCKER_IMAGE = "mysql:8.4"


def run(cmd: list[str], *, check: bool = True, **kwargs) -> subprocess.CompletedProcess[str]:
    print("$", " ".join(cmd))
    return subprocess.run(cmd, check=check, text=True, **kwargs)


def container_exists(name: str) -> bool:
    result = subprocess.run(
        ["docker", "ps", "-a", "--filter", f"name={name}", "--format", "{{.ID}}"],
        text=True,
        capture_output=True,
    )
    return bool(result.stdout.strip())


def start_container(name: str, port: int, password: str, database: str, user: str) -> None:
    if container_exists(name):
        print(f"Container '{name}' already exists. Reusing it.")
        run(["docker", "start", name], check=False)
    else:
        run(
            [
                "docker",
                "run",
                "-d",
                "--name",
                name,
                "-e",
                f"MYSQL_ROOT_PASSWORD={password}",
                "-e",
                f"MYSQL_DATABASE={database}",
                "-e",
                f"MYSQL_USER={user}",
                "-e",
                f"MYSQL_PASSWORD={password}",
                "-p",
                f"{port}:3306",
                DOCKER_IMAGE,
            ]
        )
    wait_for_start(name, password)


def wait_for_start(name: str, password: str, retries: int = 30, delay: float = 1.0) -> None:
    for _ in range(retries):
        result = subprocess.run(
            ["docker", "exec", name, "mysqladmin", "ping", "-uroot", f"-p{password}", "--silent"],
            text=True,
            capture_output=True,
        )
        if result.returncode == 0:
            return
        time.sleep(delay)
    print("Warning: database did not report ready state; continuing anyway.")


def seed_data(name: str, database: str, user: str, password: str, prefix: str) -> None:
    sql = f"""
    CREATE TABLE IF NOT EXISTS {prefix}accounts (
        id INT AUTO_INCREMENT PRIMARY KEY,
        email VARCHAR(255) NOT NULL UNIQUE,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );
    CREATE TABLE IF NOT EXISTS {prefix}orders (
        id INT AUTO_INCREMENT PRIMARY KEY,
        account_id INT NOT NULL,
        total DECIMAL(10,2) NOT NULL,
        FOREIGN KEY (account_id) REFERENCES {prefix}accounts(id)
    );
    INSERT IGNORE INTO {prefix}accounts (email) VALUES
        ('anna@example.com'),
        ('ben@example.com'),
        ('cara@example.com');
    """.strip()

    run(
        ["docker", "exec", "-i", name, "mysql", f"-u{user}", f"-p{password}", database],
        input=sql,
    )


def update_config(name: str, port: int, user: str, database: str, password: str, prefix: str) -> None:
    config = load_config()
    if name in config.connections:
        print(f"Connection '{name}' already present in config; leaving as-is.")
        return
    connections = dict(config.connections)
    connections[name] = ConnectionConfig(
        driver="mysql",
        host="127.0.0.1",
        port=port,
        dbname=database,
        user=user,
        password=password,
        prefix=prefix,
    )
    updates: dict[str, object] = {"connections": connections}
    if not config.default_connection:
        updates["default_connection"] = name
    save_config(config.model_copy(update=updates))
    print(f"Added '{name}' connection to {CONFIG_FILE}.")


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--container", default=DEFAULT_CONTAINER, help="Docker container name")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Host port to expose MySQL on")
    parser.add_argument("--password", default=DEFAULT_PASSWORD, help="MySQL password")
    parser.add_argument("--database", default=DEFAULT_DB, help="Database name to create")
    parser.add_argument("--user", default=DEFAULT_USER, help="Database user")
    parser.add_argument("--prefix", default=DEFAULT_PREFIX, help="Table prefix for the sample tables")
    parser.add_argument("--name", default=DEFAULT_NAME, help="Connection name written to the config file")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or sys.argv[1:])
    try:
        start_container(args.container, args.port, args.password, args.database, args.user)
        seed_data(args.container, args.database, args.user, args.password, args.prefix)
    except FileNotFoundError:
        print("Docker is not installed or not on PATH.")
        return 1
    update_config(args.name, args.port, args.user, args.database, args.password, args.prefix)
    print(
        "Sample database is ready. Try: "
        f'python -m prefixdb -c {args.name} "SELECT * FROM {{accounts}}"'
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
