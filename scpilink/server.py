"""A small SCPI instrument server answering state, point count and data queries."""

from __future__ import annotations

import socket
import socketserver
import sys
import threading
from typing import TextIO

DEFAULT_PORT = 1337
POINT_COUNT = 1000
SAMPLE_VALUE = 1
UNKNOWN_RESPONSE = b"ERROR: Unknown command\n"
_RECV_SIZE = 4096

_STATE_RESPONSE = bytes([1])
_POINTS_RESPONSE = POINT_COUNT.to_bytes(4, "big")
_DATA_RESPONSE = SAMPLE_VALUE.to_bytes(2, "big") * POINT_COUNT

_RESPONSES = {
    "SYSTem:STATe?": _STATE_RESPONSE,
    "SYST:STAT?": _STATE_RESPONSE,
    "MEASure:POINts?": _POINTS_RESPONSE,
    "MEAS:POIN?": _POINTS_RESPONSE,
    "MEASure:DATA?": _DATA_RESPONSE,
    "MEAS:DATA?": _DATA_RESPONSE,
}


def respond(command: str) -> bytes:
    """The bytes the server sends back for the given command text."""
    return _RESPONSES.get(command.strip(), UNKNOWN_RESPONSE)


class _Handler(socketserver.BaseRequestHandler):
    server: _TcpServer

    def handle(self) -> None:
        while True:
            try:
                data = self.request.recv(_RECV_SIZE)
            except OSError:
                return
            if not data:
                return
            command = data.decode("utf-8", errors="replace").strip()
            response = respond(command)
            if command not in _RESPONSES:
                self.server.log(f"Unknown command: {command}")
            self.server.log(f"Received command: {command}\nResponse sent.")
            try:
                self.request.sendall(response)
            except OSError:
                return


class _TcpServer(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, address: tuple[str, int], out: TextIO) -> None:
        self._out = out
        self._log_lock = threading.Lock()
        super().__init__(address, _Handler)

    def log(self, message: str) -> None:
        with self._log_lock:
            print(message, file=self._out, flush=True)


class ScpiServer:
    """Listens on a TCP port and answers SCPI queries; raises OSError if it cannot listen."""

    def __init__(self, port: int = DEFAULT_PORT, host: str = "", out: TextIO | None = None) -> None:
        self._server = _TcpServer((host, port), out if out is not None else sys.stdout)
        self._serving = False
        self._closed = False
        self._server.log(f"Server started on port {self.port}")

    @property
    def port(self) -> int:
        """The port the server is bound to."""
        return self._server.server_address[1]

    def __enter__(self) -> ScpiServer:
        return self

    def __exit__(self, *args: object) -> None:
        self.shutdown()

    def serve_forever(self) -> None:
        """Handle connections until shutdown is called."""
        self._serving = True
        try:
            self._server.serve_forever()
        finally:
            self._serving = False

    def shutdown(self) -> None:
        """Stop serving and release the listening socket."""
        if self._serving:
            self._server.shutdown()
        if not self._closed:
            self._closed = True
            self._server.server_close()


def main(argv: list[str] | None = None) -> int:
    """Run the server on the port given as the only argument."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 1:
        print("Usage: scpilink-server <port>", file=sys.stderr)
        return 1
    try:
        port = int(args[0])
    except ValueError:
        print(f"Invalid port: {args[0]}", file=sys.stderr)
        return 1
    if not 0 <= port <= 0xFFFF:
        print(f"Invalid port: {args[0]}", file=sys.stderr)
        return 1
    try:
        server = ScpiServer(port)
    except OSError as exc:
        print(f"Failed to start server: {exc}", file=sys.stderr)
        return 1
    with server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
    return 0


if __name__ == "__main__":
    sys.exit(main())


__all__ = ["ScpiServer", "main", "respond", "socket"]