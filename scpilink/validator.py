"""Checks on the text of SCPI commands."""

from __future__ import annotations

import re

_SCPI_PATTERN = re.compile(r"^[A-Za-z*]+(:[A-Za-z0-9]+)*\??$", re.IGNORECASE)


def is_commands_match(command_1: str, command_2: str) -> bool:
    """Return True if the two commands are equal ignoring case."""
    return command_1.casefold() == command_2.casefold()


def is_scpi_command(command: str) -> bool:
    """Return True if the text has the shape of a SCPI command."""
    return _SCPI_PATTERN.match(command) is not None