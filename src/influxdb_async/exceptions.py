"""Exceptions for influxdb_async."""

from __future__ import annotations

from typing import Optional


class InfluxDBError(Exception):
    """Base exception for influxdb_async."""


class InfluxDBConnectionError(InfluxDBError):
    """No response could be obtained from the server."""


class InfluxDBQueryError(InfluxDBError):
    """The server answered, but not with the expected status/body."""

    def __init__(self, message: str, body: Optional[str] = None, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.body = body
        self.status = status


class InfluxDBAuthenticationError(InfluxDBQueryError):
    """Authentication failed."""
