"""Line protocol encoding for writes."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Union

from .models import Point

PointLike = Union[str, Point, Mapping[str, Any]]


def to_line(point: Union[Point, Mapping[str, Any]]) -> str:
    """Encode one point as ``measurement[,tag=val...] field=val[,...] [time]``.

    Tags are emitted sorted by key, fields in their given order. Keys and
    values are written as they are, without escaping.
    """
    measurement, tags, fields, time = _unpack(point)
    if not measurement:
        raise ValueError("measurement is required")
    if not fields:
        raise ValueError("fields must contain at least one field")

    line = str(measurement)
    if tags:
        line += "," + ",".join(f"{k}={tags[k]}" for k in sorted(tags))
    line += " " + ",".join(f"{k}={v}" for k, v in fields.items())
    if time is not None:
        line += f" {time}"
    return line


def encode(data: Union[PointLike, Iterable[PointLike]]) -> str:
    """Encode a line, a point, or a list mixing both into a write body."""
    if isinstance(data, (str, Point, Mapping)):
        return _encode_one(data)
    return "\n".join(_encode_one(item) for item in data)


def _encode_one(item: PointLike) -> str:
    if isinstance(item, str):
        return item
    return to_line(item)


def _unpack(point: Union[Point, Mapping[str, Any]]) -> tuple[Any, Mapping[str, Any], Mapping[str, Any], Optional[Any]]:
    if isinstance(point, Point):
        return point.measurement, point.tags, point.fields, point.time
    return (
        point.get("measurement"),
        point.get("tags") or {},
        point.get("fields") or {},
        point.get("time"),
    )
