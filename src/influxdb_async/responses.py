"""Response contracts and result envelope shaping.

Every read operation only looks at ``results[0]`` of the envelope
``{"results": [{"series": [{"name", "tags", "columns", "values"}], "error"}]}``.
Missing ``series`` or ``values`` give an empty result, never an error.
"""

from __future__ import annotations

from collections.abc import Hashable
from typing import Any, Dict, List, Mapping, Sequence
import json
import logging

import pandas as pd

from .exceptions import InfluxDBAuthenticationError, InfluxDBQueryError
from .models import RawResponse, Series

logger = logging.getLogger(__name__)

HTTP_OK = 200
HTTP_NO_CONTENT = 204
EMPTY_RESULTS = '{"results":[{}]}'

# keys a statement result may carry and still count as "nothing happened"
_EMPTY_RESULT_KEYS = {"statement_id"}


# -------------------- Status contracts --------------------

def check_empty_result(response: RawResponse) -> None:
    """Contract for mutating statements: 200 and an empty-results body."""
    if response.status == HTTP_OK and _is_empty_result(response.body):
        return
    raise _contract_error(response, "statement failed")


def check_no_content(response: RawResponse) -> None:
    """Contract for writes and ping: 204, body not inspected."""
    if response.status != HTTP_NO_CONTENT:
        raise _contract_error(response, "write failed")


def decode_envelope(response: RawResponse) -> Dict[str, Any]:
    """Contract for reads: 200, then the body decoded to the first statement result."""
    if response.status != HTTP_OK:
        raise _contract_error(response, "query failed")
    try:
        data = json.loads(response.body)
    except ValueError:
        logger.warning("Unparseable query response body: %.200s", response.body)
        return {}
    result = _first_result(data)
    if "error" in result:
        logger.warning("Query returned error: %s", result["error"])
    return result


def _is_empty_result(body: str) -> bool:
    if body == EMPTY_RESULTS:
        return True
    try:
        data = json.loads(body)
    except ValueError:
        return False
    if not isinstance(data, dict) or set(data) != {"results"}:
        return False
    results = data["results"]
    if not isinstance(results, list) or not results:
        return False
    return all(isinstance(r, dict) and set(r) <= _EMPTY_RESULT_KEYS for r in results)


def _contract_error(response: RawResponse, what: str) -> InfluxDBQueryError:
    message = f"{what} (HTTP {response.status}): {response.body}"
    if response.status in (401, 403):
        return InfluxDBAuthenticationError(message, body=response.body, status=response.status)
    return InfluxDBQueryError(message, body=response.body, status=response.status)


def _first_result(data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict):
        return {}
    results = data.get("results")
    if not isinstance(results, list) or not results or not isinstance(results[0], dict):
        return {}
    return results[0]


# -------------------- Shapers --------------------

def _series(result: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Well-formed series of ``result`` with list ``columns`` and list rows.

    Series with non-list ``columns``/``values``, an unhashable ``name`` or
    unhashable column names are dropped, as are rows that are not lists.
    """
    out = []
    series = result.get("series")
    if not isinstance(series, list):
        return out
    for s in series:
        if not isinstance(s, dict) or not isinstance(s.get("name"), Hashable):
            continue
        columns = s.get("columns") or []
        values = s.get("values") or []
        if not isinstance(columns, list) or not isinstance(values, list):
            continue
        if not all(isinstance(c, Hashable) for c in columns):
            continue
        tags = s.get("tags")
        out.append(
            {
                "name": s.get("name"),
                "tags": tags if isinstance(tags, dict) else None,
                "columns": columns,
                "values": [row for row in values if isinstance(row, list)],
            }
        )
    return out


def _first_series(result: Mapping[str, Any]) -> Dict[str, Any]:
    series = _series(result)
    return series[0] if series else {"columns": [], "values": []}


def _zip(columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> List[Dict[str, Any]]:
    return [dict(zip(columns, row)) for row in rows]


def first_column(result: Mapping[str, Any]) -> List[Any]:
    """First value of every row of the first series (database names)."""
    return [row[0] for row in _first_series(result)["values"] if row]


def flatten_values(result: Mapping[str, Any]) -> List[Any]:
    """Every value of every row of the first series (measurement names)."""
    return [value for row in _first_series(result)["values"] for value in row]


def zip_rows(result: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Rows of the first series as column->value mappings."""
    series = _first_series(result)
    return _zip(series["columns"], series["values"])


def rows_by_series(result: Mapping[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
    return {s["name"]: _zip(s["columns"], s["values"]) for s in _series(result)}


def values_by_series(result: Mapping[str, Any]) -> Dict[str, List[Any]]:
    return {
        s["name"]: [value for row in s["values"] for value in row]
        for s in _series(result)
    }


def tag_values(result: Mapping[str, Any]) -> Dict[str, List[Any]]:
    """Distinct values per tag key.

    Handles both the per-key layout (the column is named after the tag key)
    and the ``["key", "value"]`` layout newer servers return per measurement.
    Rows that do not fit the layout are skipped.
    """
    buckets: Dict[Any, _Distinct] = {}
    for s in _series(result):
        columns = s["columns"]
        if columns == ["key", "value"]:
            for row in s["values"]:
                if len(row) != 2 or not isinstance(row[0], Hashable):
                    continue
                buckets.setdefault(row[0], _Distinct()).add(row[1])
        elif columns and isinstance(columns[0], Hashable):
            bucket = buckets.setdefault(columns[0], _Distinct())
            for row in s["values"]:
                for value in row:
                    bucket.add(value)
    return {key: bucket.values for key, bucket in buckets.items()}


class _Distinct:
    """Values in order of first appearance, without repeats."""

    def __init__(self) -> None:
        self.values: List[Any] = []
        self._seen: set = set()

    def add(self, value: Any) -> None:
        if not isinstance(value, Hashable) or value in self._seen:
            return
        self._seen.add(value)
        self.values.append(value)


def field_keys_by_series(result: Mapping[str, Any]) -> Dict[str, Dict[str, str]]:
    out: Dict[str, Dict[str, str]] = {}
    for name, rows in rows_by_series(result).items():
        out[name] = {
            p["fieldKey"]: p.get("fieldType")
            for p in rows
            if "fieldKey" in p and isinstance(p["fieldKey"], Hashable)
        }
    return out


def select_series(result: Mapping[str, Any]) -> List[Series]:
    return [
        Series(name=s["name"], tags=s["tags"], values=_zip(s["columns"], s["values"]))
        for s in _series(result)
    ]


# -------------------- pandas view --------------------

def series_to_dataframe(series: Sequence[Series]) -> pd.DataFrame:
    """Stack select results into one frame, one row per point.

    The series name becomes a ``name`` column and tags become columns of
    their own. ``time`` is parsed to UTC and moved first.
    """
    frames = []
    for s in series:
        df = pd.DataFrame(s.values)
        if df.empty:
            continue
        df.insert(0, "name", s.name)
        for key, value in (s.tags or {}).items():
            df[key] = value
        frames.append(df)
    if not frames:
        return pd.DataFrame()
    df = pd.concat(frames, ignore_index=True)
    if "time" in df.columns:
        df["time"] = pd.to_datetime(df["time"], utc=True)
        df = _move_time_first(df)
    return df


def _move_time_first(df: pd.DataFrame) -> pd.DataFrame:
    cols = list(df.columns)
    if cols and cols[0] != "time" and "time" in cols:
        cols = ["time"] + [c for c in cols if c != "time"]
        return df.reindex(columns=cols)
    return df
