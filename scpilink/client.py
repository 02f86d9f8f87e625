"""TCP client that runs SCPI commands against an instrument server."""

from __future__ import annotations

import socket
import threading
from pathlib import Path

from .commands import CommandFactory, default_factory
from .server_info import ServerInfo
from .validator import is_scpi_command

RESPONSE_TIMEOUT = 3.0
CHUNK_SIZE = 4 * 1024


class ClientError(RuntimeError):
    """Raised when a command cannot be sent, read or executed."""


class Client:
    """A connection to a SCPI server together with the last state it reported.

    Used as a context manager, the connection is closed on exit; connecting
    is left to :meth:`connect`.
    """

    def __init__(
        self,
        address: str,
        port: int,
        *,
        factory: CommandFactory | None = None,
        timeout: float = RESPONSE_TIMEOUT,
        chunk_size: int = CHUNK_SIZE,
    ) -> None:
        self.address = str(address)
        self.port = port
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.server_info = ServerInfo()
        self._factory = factory if factory is not None else default_factory()
        self._sock: socket.socket | None = None
        self._lock = threading.RLock()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _open(self, failure: str) -> None:
        try:
            sock = socket.create_connection((self.address, self.port), timeout=self.timeout)
        except OSError as exc:
            raise ClientError(f"{failure} {self.address}:{self.port}") from exc
        self._sock = sock

    def _drop(self) -> None:
        sock, self._sock = self._sock, None
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        sock.close()

    def connect(self) -> None:
        """Open the connection, replacing any existing one."""
        with self._lock:
            self._drop()
            self._open("Failed to connect to")

    def reconnect(self) -> None:
        """Connect again if the connection is not open; otherwise do nothing."""
        with self._lock:
            if not self.is_connected():
                self._open("Failed to reconnect to")

    def is_connected(self) -> bool:
        """Whether the connection is open."""
        return self._sock is not None

    def close(self) -> None:
        """Close the connection if it is open."""
        with self._lock:
            self._drop()

    def execute_command(self, command_name: str) -> str:
        """Create the named command, run it and return its result message."""
        with self._lock:
            if not is_scpi_command(command_name.strip()):
                raise ClientError("Is not SCPI command")
            command = self._factory.create(command_name)
            if command is None:
                raise ClientError("A not-yet-supported or invalid command")
            return command.execute(self)

    def send_command(self, command: str) -> None:
        """Send the text of a command to the server."""
        if self._sock is None:
            raise ClientError("Socket is not connected")
        try:
            self._sock.sendall(command.encode("utf-8"))
        except OSError as exc:
            self._drop()
            raise ClientError(f"Failed to send command: {exc}") from exc

    def _receive(self, size: int, timeout_message: str) -> bytes:
        assert self._sock is not None
        try:
            return self._sock.recv(size)
        except TimeoutError as exc:
            raise ClientError(timeout_message) from exc
        except OSError:
            self._drop()
            return b""

    def read_response(self, expected_size: int) -> bytes:
        """Read exactly expected_size bytes of response."""
        if self._sock is None:
            raise ClientError("Socket is not connected")
        parts: list[bytes] = []
        received = 0
        while received < expected_size:
            chunk = self._receive(expected_size - received, "Failed to read response: timeout")
            if not chunk:
                self._drop()
                raise ClientError("Connection closed before receiving complete data")
            parts.append(chunk)
            received += len(chunk)
        return b"".join(parts)

    def read_large_response_to_file(self, response_file: Path | str, data_size: int) -> None:
        """Read data_size bytes of response in chunks and write them to response_file."""
        if self._sock is None:
            raise ClientError("Socket is not open")
        try:
            target = Path(response_file).open("wb")
        except OSError as exc:
            raise ClientError("Failed to open file for writing") from exc
        with target:
            received = 0
            while received < data_size:
                size = min(self.chunk_size, data_size - received)
                chunk = self._receive(size, "Timeout waiting for data from socket")
                if not chunk:
                    self._drop()
                    raise ClientError("Socket closed unexpectedly")
                try:
                    target.write(chunk)
                except OSError as exc:
                    raise ClientError("Failed to write to file") from exc
                received += len(chunk)