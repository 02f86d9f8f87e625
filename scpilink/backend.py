"""Mediator between a client and a user interface, keeping a short command history."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from .client import ClientError
from .commands import default_factory

MAX_HISTORY_SIZE = 10

HistoryListener = Callable[[str], None]


class _Client(Protocol):
    def execute_command(self, command_name: str) -> str: ...

    def reconnect(self) -> None: ...


class Backend:
    """Runs commands on a client and records their outcome, newest first.

    Every change of the history is reported to the callables in
    ``history_changed`` with the whole history joined by newlines.
    """

    def __init__(
        self,
        client: _Client | None = None,
        *,
        max_history_size: int = MAX_HISTORY_SIZE,
        on_history_changed: HistoryListener | None = None,
    ) -> None:
        self.client = client
        self.max_history_size = max_history_size
        self.history_changed: list[HistoryListener] = []
        if on_history_changed is not None:
            self.history_changed.append(on_history_changed)
        self._history: list[str] = []

    def _require_client(self) -> _Client:
        if self.client is None:
            raise ClientError("No client set")
        return self.client

    def _notify(self) -> None:
        text = self.history()
        for listener in self.history_changed:
            listener(text)

    def send_command(self, command: str) -> None:
        """Execute a command and record its result or error message."""
        try:
            result = self._require_client().execute_command(command)
        except Exception as exc:
            result = str(exc)
        self._history.insert(0, f"{command}: {result}")
        if len(self._history) > self.max_history_size:
            self._history.pop()
        self._notify()

    @staticmethod
    def commands() -> list[str]:
        """Full names of every command the client can execute."""
        return default_factory().available_commands()

    def history(self) -> str:
        """The recorded history, newest entry first, one per line."""
        return "\n".join(self._history)

    def reconnect(self) -> None:
        """Reconnect the client and record the outcome."""
        try:
            self._require_client().reconnect()
        except Exception as exc:
            self._history.insert(0, f"Reconnect error: {exc}")
        else:
            self._history.insert(0, "Reconnected")
        self._notify()