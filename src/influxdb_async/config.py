"""Configuration loading for influxdb_async."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional
import os

from dotenv import load_dotenv

DEFAULT_SERVER = "http://localhost:8086"

RequestObserver = Callable[[str, str, Optional[str]], None]


def load_env() -> None:
    """Load environment variables from a .env file if present."""
    load_dotenv()


def _get_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True)
class ConnectionConfig:
    server: str = DEFAULT_SERVER
    username: Optional[str] = None
    password: Optional[str] = None
    ssl_options: Optional[Mapping[str, Any]] = None
    on_request: Optional[RequestObserver] = None


def config_from_env() -> ConnectionConfig:
    load_env()
    ssl_options = None
    verify = os.getenv("INFLUXDB_VERIFY_SSL")
    ca_file = os.getenv("INFLUXDB_CA_FILE")
    if verify is not None or ca_file:
        ssl_options = {"verify": _get_bool(verify, default=bool(ca_file))}
        if ca_file:
            ssl_options["ca_file"] = ca_file
    return ConnectionConfig(
        server=os.getenv("INFLUXDB_SERVER", os.getenv("INFLUXDB_URL", DEFAULT_SERVER)),
        username=os.getenv("INFLUXDB_USER") or None,
        password=os.getenv("INFLUXDB_PASSWORD", os.getenv("INFLUXDB_PWD")) or None,
        ssl_options=ssl_options,
    )


def _dict_get(d: Mapping[str, Any], key: str, fallback: Any = None) -> Any:
    if key in d:
        return d[key]
    return fallback


def resolve_config(config: ConnectionConfig | Mapping[str, Any]) -> ConnectionConfig:
    if isinstance(config, ConnectionConfig):
        return config
    return ConnectionConfig(
        server=_dict_get(config, "server", _dict_get(config, "url", DEFAULT_SERVER)),
        username=_dict_get(config, "username", _dict_get(config, "user")),
        password=_dict_get(config, "password", _dict_get(config, "pwd")),
        ssl_options=_dict_get(config, "ssl_options"),
        on_request=_dict_get(config, "on_request"),
    )
