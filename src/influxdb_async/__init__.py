"""influxdb_async package."""

from .callbacks import submit
from .client import AsyncInfluxDBClient, InfluxDBClientFactory
from .config import ConnectionConfig, config_from_env, load_env
from .connection import ConnectionContext
from .exceptions import (
    InfluxDBError,
    InfluxDBAuthenticationError,
    InfluxDBConnectionError,
    InfluxDBQueryError,
)
from .line_protocol import encode, to_line
from .models import MeasurementSchema, Point, RawResponse, Series
from .responses import series_to_dataframe

__all__ = [
    "AsyncInfluxDBClient",
    "InfluxDBClientFactory",
    "ConnectionConfig",
    "ConnectionContext",
    "config_from_env",
    "load_env",
    "InfluxDBError",
    "InfluxDBAuthenticationError",
    "InfluxDBConnectionError",
    "InfluxDBQueryError",
    "MeasurementSchema",
    "Point",
    "RawResponse",
    "Series",
    "encode",
    "to_line",
    "series_to_dataframe",
    "submit",
]
