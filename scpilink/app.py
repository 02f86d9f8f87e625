"""Command-line entry point of the SCPI client."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from pathlib import Path

from .cli import CliThread
from .client import Client, ClientError

_JOIN_INTERVAL = 0.2


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be read or is malformed."""


@dataclass(frozen=True)
class Config:
    """Where the server listens."""

    address: str
    port: int


def load_config(path: Path | str) -> Config:
    """Read a JSON object with "address" and "port" from the given file."""
    try:
        raw = Path(path).read_bytes()
    except OSError as exc:
        raise ConfigError("Cannot open config file") from exc
    try:
        document = json.loads(raw)
    except ValueError as exc:
        raise ConfigError(f"Error parsing config file: {exc}") from exc
    if not isinstance(document, dict):
        raise ConfigError("Error parsing config file: expected a JSON object")
    address = document.get("address")
    port = document.get("port")
    if not isinstance(address, str):
        raise ConfigError("Error parsing config file: address must be a string")
    if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= 0xFFFF:
        raise ConfigError("Error parsing config file: port must be an integer from 0 to 65535")
    return Config(address, port)


def main(argv: list[str] | None = None) -> int:
    """Connect to the server named in the config file and run the command line."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 1:
        print("Usage: scpilink <config.json>", file=sys.stderr)
        return 1
    try:
        config = load_config(args[0])
    except ConfigError as exc:
        print(exc, file=sys.stderr)
        return 1

    with Client(config.address, config.port) as client:
        try:
            client.connect()
        except ClientError as exc:
            print(f"Error: {exc}", file=sys.stderr)
        cli = CliThread(client)
        cli.start()
        try:
            while cli.is_alive():
                cli.join(_JOIN_INTERVAL)
        except KeyboardInterrupt:
            cli.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())