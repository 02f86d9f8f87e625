"""Interactive command line for a SCPI client."""

from __future__ import annotations

import sys
import threading
from collections.abc import Iterable, Iterator
from typing import Protocol, TextIO

HELP_MESSAGE = "Available commands: exit, help, reconnect, <SCPI command>"
PROMPT = "> "


class _Client(Protocol):
    def execute_command(self, command_name: str) -> str: ...

    def reconnect(self) -> None: ...

    def is_connected(self) -> bool: ...


def run_cli(client: _Client, lines: Iterable[str], out: TextIO, err: TextIO) -> bool:
    """Process input lines until 'exit' or the end of input.

    Returns True if the session ended with 'exit'.
    """
    print(HELP_MESSAGE, file=out)
    iterator = iter(lines)
    while True:
        out.write(PROMPT)
        out.flush()
        raw = next(iterator, None)
        if raw is None:
            return False
        line = raw.removesuffix("\n")

        if line == "exit":
            return True

        if line == "help":
            print(HELP_MESSAGE, file=out)
            continue

        if line == "reconnect":
            try:
                client.reconnect()
            except Exception as exc:
                print(f"Reconnect error: {exc}", file=err)
            if client.is_connected():
                print("Reconnected successfully", file=out)
            continue

        if line:
            try:
                result = client.execute_command(line.strip())
            except Exception as exc:
                print(f"Error: {exc}", file=err)
            else:
                print(result, file=out)


class CliThread(threading.Thread):
    """Background thread running the command line on the given streams."""

    def __init__(
        self,
        client: _Client,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        super().__init__(name="scpi-cli", daemon=True)
        self._client = client
        self._stdin = stdin
        self._stdout = stdout
        self._stderr = stderr
        self._stopped = threading.Event()

    def _input_lines(self, stdin: TextIO) -> Iterator[str]:
        while not self._stopped.is_set():
            line = stdin.readline()
            if not line or self._stopped.is_set():
                return
            yield line

    def run(self) -> None:
        stdin = self._stdin if self._stdin is not None else sys.stdin
        out = self._stdout if self._stdout is not None else sys.stdout
        err = self._stderr if self._stderr is not None else sys.stderr
        run_cli(self._client, self._input_lines(stdin), out, err)

    def stop(self) -> None:
        """Ask the loop to finish before reading the next line."""
        self._stopped.set()