"""SCPI commands and the factory that creates them by name."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import ClassVar, Protocol

from .server_info import ServerInfo
from .validator import is_commands_match

_SAMPLE_SIZE_BYTES = 2


class _Client(Protocol):
    server_info: ServerInfo

    def send_command(self, command: str) -> None: ...

    def read_response(self, expected_size: int) -> bytes: ...

    def read_large_response_to_file(self, response_file: Path, data_size: int) -> None: ...


class Command(ABC):
    """A command executed against a client; returns a message describing the result."""

    name_short: ClassVar[str]
    name_full: ClassVar[str]

    @abstractmethod
    def execute(self, client: _Client) -> str:
        """Run the command on the client and return the result message."""


Creator = Callable[[], Command]


class CommandFactory:
    """Registry of command creators keyed by their short and full names."""

    def __init__(self) -> None:
        self._creators: dict[tuple[str, str], Creator] = {}
        self._command_names: list[str] = []

    def register_command(self, name_short: str, name_full: str, creator: Creator) -> None:
        """Register a creator under both names of a command."""
        self._creators[(name_short, name_full)] = creator
        self._command_names.append(name_full)

    def create(self, name: str) -> Command | None:
        """Create the command whose short or full name matches, or return None."""
        for (short, full) in sorted(self._creators):
            if is_commands_match(short, name) or is_commands_match(full, name):
                return self._creators[(short, full)]()
        return None

    def available_commands(self) -> list[str]:
        """Full names of every registered command, in registration order."""
        return list(self._command_names)


class GetState(Command):
    """Asks whether the server is running."""

    name_short = "SYST:STAT?"
    name_full = "SYSTem:STATe?"
    response_size = 1

    def execute(self, client: _Client) -> str:
        client.send_command(self.name_short)
        response = client.read_response(self.response_size)
        state = bool(response[0])
        client.server_info.is_running = state
        return f"Result: {1 if state else 0}"


class GetDataSize(Command):
    """Asks how many measurement points the server holds."""

    name_short = "MEAS:POIN?"
    name_full = "MEASure:POINts?"
    response_size = 4

    def execute(self, client: _Client) -> str:
        client.send_command(self.name_short)
        response = client.read_response(self.response_size)
        data_size = int.from_bytes(response[: self.response_size], "big")
        client.server_info.data_size = data_size
        return f"Result: {data_size}"


class GetData(Command):
    """Downloads the measurement data into a file."""

    name_short = "MEAS:DATA?"
    name_full = "MEASure:DATA?"

    def __init__(self, path: Path | str = "data") -> None:
        self.path = Path(path)

    def execute(self, client: _Client) -> str:
        server_info = client.server_info
        data_size = server_info.data_size
        client.send_command(self.name_short)
        client.read_large_response_to_file(self.path, data_size * _SAMPLE_SIZE_BYTES)
        server_info.data_path = self.path
        return f"Result saved to: {self.path}"


def _build_default_factory() -> CommandFactory:
    factory = CommandFactory()
    for command_class in (GetState, GetDataSize, GetData):
        factory.register_command(command_class.name_short, command_class.name_full, command_class)
    return factory


_DEFAULT_FACTORY = _build_default_factory()


def default_factory() -> CommandFactory:
    """The shared factory holding every built-in command."""
    return _DEFAULT_FACTORY