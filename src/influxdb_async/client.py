"""Asynchronous InfluxDB client (InfluxQL over HTTP)."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union
import logging

import httpx

from . import query_builder as qb
from .config import DEFAULT_SERVER, ConnectionConfig, RequestObserver, config_from_env, resolve_config
from .connection import ConnectionContext
from .exceptions import InfluxDBConnectionError, InfluxDBQueryError
from .line_protocol import PointLike, encode
from .models import MeasurementSchema, RawResponse, Series
from .responses import (
    check_empty_result,
    check_no_content,
    decode_envelope,
    field_keys_by_series,
    first_column,
    flatten_values,
    rows_by_series,
    select_series,
    tag_values,
    values_by_series,
    zip_rows,
)
from .transport import Dispatcher

logger = logging.getLogger(__name__)


class AsyncInfluxDBClient:
    """Asynchronous client for an InfluxDB 0.9+/1.x server.

    Every operation is a coroutine that issues exactly one HTTP request.
    Arguments are pasted into InfluxQL unquoted and unescaped.
    """

    def __init__(
        self,
        server: str = DEFAULT_SERVER,
        username: Optional[str] = None,
        password: Optional[str] = None,
        ssl_options: Optional[Mapping[str, Any]] = None,
        on_request: Optional[RequestObserver] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._context = ConnectionContext(
            server=server,
            username=username,
            password=password,
            ssl_options=ssl_options,
            on_request=on_request,
        )
        self._dispatcher = Dispatcher(self._context, transport=transport)

    @classmethod
    def from_config(
        cls, config: ConnectionConfig, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "AsyncInfluxDBClient":
        return cls(
            server=config.server,
            username=config.username,
            password=config.password,
            ssl_options=config.ssl_options,
            on_request=config.on_request,
            transport=transport,
        )

    @property
    def context(self) -> ConnectionContext:
        return self._context

    @property
    def server(self) -> str:
        return self._context.server

    @server.setter
    def server(self, value: str) -> None:
        self._context.server = value

    async def __aenter__(self) -> "AsyncInfluxDBClient":
        logger.debug("Using %r", self._context)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        return False

    # -------------------- Plumbing --------------------

    async def _get(self, query: str, database: Optional[str] = None, **params: Any) -> RawResponse:
        logger.debug("InfluxQL query: %s", query)
        url = self._context.make_url("/query", {"db": database, "q": query, **params})
        return await self._dispatcher.request("GET", url)

    async def _execute(self, query: str, database: Optional[str] = None) -> None:
        check_empty_result(await self._get(query, database=database))

    async def _read(self, query: str, database: Optional[str] = None, **params: Any) -> Dict[str, Any]:
        return decode_envelope(await self._get(query, database=database, **params))

    async def ping(self) -> bool:
        """Check if the server is responsive."""
        try:
            check_no_content(await self._dispatcher.request("GET", self._context.make_url("/ping")))
        except (InfluxDBConnectionError, InfluxDBQueryError) as exc:
            logger.debug("Ping failed: %s", exc)
            return False
        return True

    # -------------------- Databases --------------------

    async def create_database(self, database: str) -> None:
        await self._execute(qb.create_database(database))

    async def drop_database(self, database: str) -> None:
        await self._execute(qb.drop_database(database))

    async def show_databases(self) -> List[str]:
        return first_column(await self._read(qb.show_databases()))

    # -------------------- Retention policies --------------------

    async def create_retention_policy(
        self,
        name: str,
        database: str,
        duration: str,
        replication: Union[int, str],
        default: bool = False,
    ) -> None:
        await self._execute(qb.create_retention_policy(name, database, duration, replication, default))

    async def alter_retention_policy(
        self,
        name: str,
        database: str,
        duration: Optional[str] = None,
        replication: Optional[Union[int, str]] = None,
        default: bool = False,
    ) -> None:
        """Change a retention policy; at least one of the optional arguments must be set."""
        await self._execute(qb.alter_retention_policy(name, database, duration, replication, default))

    async def drop_retention_policy(self, name: str, database: str) -> None:
        await self._execute(qb.drop_retention_policy(name, database))

    async def show_retention_policies(self, database: str) -> List[Dict[str, Any]]:
        """Return one mapping per policy (``name``, ``duration``, ``replicaN``, ``default``...)."""
        return zip_rows(await self._read(qb.show_retention_policies(database)))

    # -------------------- Users and privileges --------------------

    async def create_user(self, username: str, password: str, all_privileges: bool = False) -> None:
        """Create a user. ``password`` is wrapped in single quotes, nothing more."""
        await self._execute(qb.create_user(username, password, all_privileges))

    async def set_user_password(self, username: str, password: str) -> None:
        await self._execute(qb.set_user_password(username, password))

    async def drop_user(self, username: str) -> None:
        await self._execute(qb.drop_user(username))

    async def show_users(self) -> List[Dict[str, Any]]:
        return zip_rows(await self._read(qb.show_users()))

    async def grant_privileges(
        self,
        username: str,
        access: Optional[str] = None,
        database: Optional[str] = None,
        all_privileges: bool = False,
    ) -> None:
        await self._execute(qb.grant_privileges(username, access, database, all_privileges))

    async def revoke_privileges(
        self,
        username: str,
        access: Optional[str] = None,
        database: Optional[str] = None,
        all_privileges: bool = False,
    ) -> None:
        await self._execute(qb.revoke_privileges(username, access, database, all_privileges))

    # -------------------- Schema exploration --------------------

    async def show_measurements(self, database: str, where: Optional[str] = None) -> List[str]:
        return flatten_values(await self._read(qb.show_measurements(where), database=database))

    async def drop_measurement(self, database: str, measurement: str) -> None:
        await self._execute(qb.drop_measurement(measurement), database=database)

    async def show_series(
        self, database: str, measurement: Optional[str] = None, where: Optional[str] = None
    ) -> Dict[str, List[Dict[str, Any]]]:
        """Return series rows keyed by series name."""
        return rows_by_series(await self._read(qb.show_series(measurement, where), database=database))

    async def drop_series(
        self, database: str, measurement: Optional[str] = None, where: Optional[str] = None
    ) -> None:
        await self._execute(qb.drop_series(measurement, where), database=database)

    async def show_tag_keys(
        self, database: str, measurement: Optional[str] = None, where: Optional[str] = None
    ) -> Dict[str, List[str]]:
        """Return tag keys keyed by measurement."""
        return values_by_series(await self._read(qb.show_tag_keys(measurement, where), database=database))

    async def show_tag_values(
        self,
        database: str,
        measurement: Optional[str] = None,
        key: Optional[str] = None,
        keys: Optional[Sequence[str]] = None,
        where: Optional[str] = None,
    ) -> Dict[str, List[Any]]:
        """Return distinct tag values keyed by tag key. ``keys`` takes precedence over ``key``."""
        query = qb.show_tag_values(measurement, key=key, keys=keys, where=where)
        return tag_values(await self._read(query, database=database))

    async def show_field_keys(
        self, database: str, measurement: Optional[str] = None
    ) -> Dict[str, Dict[str, str]]:
        """Return ``{field: type}`` keyed by measurement."""
        return field_keys_by_series(await self._read(qb.show_field_keys(measurement), database=database))

    async def get_measurement_schema(self, database: str, measurement: str) -> MeasurementSchema:
        tag_keys = await self.show_tag_keys(database, measurement=measurement)
        field_keys = await self.show_field_keys(database, measurement=measurement)
        return MeasurementSchema(
            measurement=measurement,
            tags=tag_keys.get(measurement, []),
            fields=field_keys.get(measurement, {}),
            database=database,
        )

    # -------------------- Continuous queries --------------------

    async def create_continuous_query(self, name: str, database: str, query: str) -> None:
        await self._execute(qb.create_continuous_query(name, database, query))

    async def drop_continuous_query(self, name: str, database: str) -> None:
        await self._execute(qb.drop_continuous_query(name, database))

    async def show_continuous_queries(self, database: Optional[str] = None) -> List[Dict[str, Any]]:
        return zip_rows(await self._read(qb.show_continuous_queries(), database=database))

    # -------------------- Write and read --------------------

    async def write(
        self,
        database: str,
        data: Union[PointLike, Iterable[PointLike]],
        rp: Optional[str] = None,
        precision: Optional[str] = None,
        consistency: Optional[str] = None,
    ) -> None:
        """Write line-protocol strings and/or points in a single request.

        ``data`` may be one line, one :class:`~influxdb_async.models.Point`
        (or mapping with ``measurement``, ``fields`` and optional ``tags`` and
        ``time``), or a list mixing both.
        """
        body = encode(data)
        url = self._context.make_url(
            "/write",
            {
                "db": database,
                "rp": rp or None,
                "precision": precision or None,
                "consistency": consistency or None,
            },
        )
        check_no_content(await self._dispatcher.request("POST", url, body))

    async def select(
        self,
        database: str,
        measurement: str,
        fields: qb.Fields = "*",
        where: Optional[str] = None,
        group_by: Optional[str] = None,
        fill: Optional[str] = None,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        slimit: Optional[int] = None,
        soffset: Optional[int] = None,
        rp: Optional[str] = None,
    ) -> List[Series]:
        query = qb.build_select_query(
            measurement=measurement,
            fields=fields,
            where=where,
            group_by=group_by,
            fill=fill,
            order_by=order_by,
            limit=limit,
            offset=offset,
            slimit=slimit,
            soffset=soffset,
        )
        return select_series(await self._read(query, database=database, rp=rp or None))

    async def query(self, params: Mapping[str, Any]) -> RawResponse:
        """Send an arbitrary ``/query`` request and return the raw response.

        ``params`` are the query parameters (``q``, ``db``, ``epoch``...).
        The status code is not interpreted.
        """
        url = self._context.make_url("/query", params)
        return await self._dispatcher.request("GET", url)

    def __repr__(self) -> str:
        return f"AsyncInfluxDBClient({self._context.server})"


class InfluxDBClientFactory:
    """Entry point building clients from a config, a mapping or the environment."""

    @staticmethod
    def get_client(
        config: Optional[Union[ConnectionConfig, Mapping[str, Any]]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> AsyncInfluxDBClient:
        cfg = config_from_env() if config is None else resolve_config(config)
        return AsyncInfluxDBClient.from_config(cfg, transport=transport)
