"""Data models for influxdb_async."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional


@dataclass(frozen=True)
class Point:
    """One measurement sample, encoded to a single line-protocol line."""

    measurement: str
    fields: Mapping[str, Any]
    tags: Mapping[str, str] = field(default_factory=dict)
    time: Optional[int] = None


@dataclass(frozen=True)
class RawResponse:
    """Status, headers and body of a completed HTTP request."""

    status: int
    headers: Mapping[str, str]
    body: str


@dataclass(frozen=True)
class Series:
    """One series of a select result."""

    name: Optional[str]
    tags: Optional[Dict[str, str]]
    values: List[Dict[str, Any]]


@dataclass(frozen=True)
class MeasurementSchema:
    """Schema information for a measurement."""

    measurement: str
    tags: List[str]
    fields: Dict[str, str]
    database: Optional[str] = None
