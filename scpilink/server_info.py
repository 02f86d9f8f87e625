"""State reported by the SCPI server, as last seen by the client."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

_UINT32_MAX = 0xFFFFFFFF


class DataSizeUndefinedError(RuntimeError):
    """Raised when the data size is read before the server has reported it."""


@dataclass
class ServerInfo:
    """Values received from the server, kept in a convenient form."""

    is_running: bool = False
    data_path: Path | None = None
    _data_size: int | None = field(default=None, repr=False)

    @property
    def data_size(self) -> int:
        """Number of measurement points; raises if the server has not reported it."""
        if self._data_size is None:
            raise DataSizeUndefinedError("Data size is not defined")
        return self._data_size

    @data_size.setter
    def data_size(self, value: int) -> None:
        if not 0 <= value <= _UINT32_MAX:
            raise ValueError(f"data size out of range for a 32-bit unsigned value: {value}")
        self._data_size = value

    @property
    def has_data_size(self) -> bool:
        """Whether the data size has been reported."""
        return self._data_size is not None