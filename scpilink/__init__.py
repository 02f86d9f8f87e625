"""SCPI-over-TCP client, interactive prompt and demonstration server."""

__version__ = "1.0.0"