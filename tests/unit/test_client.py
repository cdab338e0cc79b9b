from __future__ import annotations

import json

import httpx
import pytest

from influxdb_async.client import AsyncInfluxDBClient, InfluxDBClientFactory
from influxdb_async.config import ConnectionConfig
from influxdb_async.exceptions import InfluxDBConnectionError, InfluxDBQueryError
from influxdb_async.models import MeasurementSchema, Point

EMPTY = '{"results":[{}]}'


class FakeServer:
    """Answers every request with the next canned response and records it."""

    def __init__(self, *responses: httpx.Response) -> None:
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def _series(*series) -> httpx.Response:
    return httpx.Response(200, text=json.dumps({"results": [{"series": list(series)}]}))


def _client(server: FakeServer, **kwargs) -> AsyncInfluxDBClient:
    return AsyncInfluxDBClient(transport=httpx.MockTransport(server), **kwargs)


@pytest.mark.asyncio
async def test_create_database_success() -> None:
    server = FakeServer(httpx.Response(200, text=EMPTY))
    client = _client(server, username="admin", password="secret")

    assert await client.create_database("mydb") is None

    req = server.last
    assert req.method == "GET"
    assert req.url.path == "/query"
    assert req.url.params["q"] == "CREATE DATABASE mydb"
    assert req.url.params["u"] == "admin"
    assert req.url.params["p"] == "secret"
    assert "db" not in req.url.params


@pytest.mark.asyncio
async def test_mutating_operation_with_error_body_fails() -> None:
    body = '{"results":[{"error":"database not found: mydb"}]}'
    server = FakeServer(httpx.Response(200, text=body))
    client = _client(server)

    with pytest.raises(InfluxDBQueryError) as info:
        await client.drop_database("mydb")
    assert info.value.body == body


@pytest.mark.asyncio
async def test_retention_policy_operations() -> None:
    server = FakeServer(
        httpx.Response(200, text=EMPTY),
        httpx.Response(200, text=EMPTY),
        _series(
            {
                "columns": ["name", "duration", "replicaN", "default"],
                "values": [["last_day", "24h0m0s", 1, True]],
            }
        ),
    )
    client = _client(server)

    await client.create_retention_policy("last_day", "mydb", "1d", 1, default=True)
    assert server.last.url.params["q"] == (
        "CREATE RETENTION POLICY last_day ON mydb DURATION 1d REPLICATION 1 DEFAULT"
    )
    await client.alter_retention_policy("last_day", "mydb", duration="2d")
    assert server.last.url.params["q"] == "ALTER RETENTION POLICY last_day ON mydb DURATION 2d"

    policies = await client.show_retention_policies("mydb")
    assert policies == [{"name": "last_day", "duration": "24h0m0s", "replicaN": 1, "default": True}]


@pytest.mark.asyncio
async def test_show_databases() -> None:
    server = FakeServer(_series({"name": "databases", "columns": ["name"], "values": [["_internal"], ["mydb"]]}))
    client = _client(server)

    assert await client.show_databases() == ["_internal", "mydb"]
    assert server.last.url.params["q"] == "SHOW DATABASES"


@pytest.mark.asyncio
async def test_read_without_series_is_empty() -> None:
    server = FakeServer(
        httpx.Response(200, text=EMPTY),
        httpx.Response(200, text=EMPTY),
        httpx.Response(200, text=EMPTY),
    )
    client = _client(server)

    assert await client.show_users() == []
    assert await client.show_series("mydb") == {}
    assert await client.select("mydb", "cpu") == []


@pytest.mark.asyncio
async def test_read_with_bad_status_fails() -> None:
    server = FakeServer(httpx.Response(401, text='{"error":"authorization failed"}'))
    client = _client(server)

    with pytest.raises(InfluxDBQueryError) as info:
        await client.show_users()
    assert info.value.status == 401


@pytest.mark.asyncio
async def test_user_and_privilege_queries() -> None:
    server = FakeServer(*[httpx.Response(200, text=EMPTY) for _ in range(5)])
    client = _client(server)

    await client.create_user("jdoe", "pw", all_privileges=True)
    await client.set_user_password("jdoe", "pw2")
    await client.grant_privileges("jdoe", access="READ", database="mydb")
    await client.revoke_privileges("jdoe", all_privileges=True)
    await client.drop_user("jdoe")

    assert [r.url.params["q"] for r in server.requests] == [
        "CREATE USER jdoe WITH PASSWORD 'pw' WITH ALL PRIVILEGES",
        "SET PASSWORD FOR jdoe = 'pw2'",
        "GRANT READ ON mydb TO jdoe",
        "REVOKE ALL PRIVILEGES FROM jdoe",
        "DROP USER jdoe",
    ]


@pytest.mark.asyncio
async def test_schema_exploration_sends_database() -> None:
    server = FakeServer(
        _series({"name": "measurements", "columns": ["name"], "values": [["cpu_load"], ["mem"]]}),
        _series({"name": "cpu_load", "columns": ["tagKey"], "values": [["host"], ["region"]]}),
        _series({"name": "hostTagValues", "columns": ["host"], "values": [["server01"], ["server02"]]}),
        httpx.Response(200, text=EMPTY),
    )
    client = _client(server)

    assert await client.show_measurements("mydb") == ["cpu_load", "mem"]
    assert server.last.url.params["db"] == "mydb"
    assert await client.show_tag_keys("mydb", measurement="cpu_load") == {"cpu_load": ["host", "region"]}
    assert await client.show_tag_values("mydb", measurement="cpu_load", key="host") == {
        "host": ["server01", "server02"]
    }
    assert server.last.url.params["q"] == "SHOW TAG VALUES FROM cpu_load WITH KEY = host"
    await client.drop_series("mydb", measurement="cpu_load", where="host = 'server01'")
    assert server.last.url.params["q"] == "DROP SERIES FROM cpu_load WHERE host = 'server01'"
    assert server.last.url.params["db"] == "mydb"


@pytest.mark.asyncio
async def test_get_measurement_schema() -> None:
    server = FakeServer(
        _series({"name": "cpu", "columns": ["tagKey"], "values": [["host"]]}),
        _series({"name": "cpu", "columns": ["fieldKey", "fieldType"], "values": [["value", "float"]]}),
    )
    client = _client(server)

    schema = await client.get_measurement_schema("mydb", "cpu")

    assert schema == MeasurementSchema(
        measurement="cpu", tags=["host"], fields={"value": "float"}, database="mydb"
    )
    assert [r.url.params["q"] for r in server.requests] == [
        "SHOW TAG KEYS FROM cpu",
        "SHOW FIELD KEYS FROM cpu",
    ]


@pytest.mark.asyncio
async def test_continuous_queries() -> None:
    server = FakeServer(
        httpx.Response(200, text=EMPTY),
        _series({"name": "mydb", "columns": ["name", "query"], "values": [["per5", "CREATE ..."]]}),
        httpx.Response(200, text=EMPTY),
    )
    client = _client(server)

    await client.create_continuous_query("per5", "mydb", "SELECT mean(value) INTO cpu_5m FROM cpu GROUP BY time(5m)")
    assert await client.show_continuous_queries(database="mydb") == [{"name": "per5", "query": "CREATE ..."}]
    await client.drop_continuous_query("per5", "mydb")
    assert server.last.url.params["q"] == "DROP CONTINUOUS QUERY per5 ON mydb"


@pytest.mark.asyncio
async def test_write_posts_line_protocol() -> None:
    server = FakeServer(httpx.Response(204))
    client = _client(server)

    await client.write(
        database="mydb",
        rp="last_day",
        precision="n",
        data=[
            'cpu_load,host=server02 value=0.64 1437868012260500137',
            Point(
                measurement="cpu_load",
                tags={"region": "eu-east", "host": "server02"},
                fields={"value": 0.64},
                time=1437868012260500137,
            ),
        ],
    )

    req = server.last
    assert req.method == "POST"
    assert req.url.path == "/write"
    assert dict(req.url.params) == {"db": "mydb", "rp": "last_day", "precision": "n"}
    assert req.content.decode() == (
        "cpu_load,host=server02 value=0.64 1437868012260500137\n"
        "cpu_load,host=server02,region=eu-east value=0.64 1437868012260500137"
    )


@pytest.mark.asyncio
async def test_write_requires_no_content() -> None:
    server = FakeServer(httpx.Response(200, text=EMPTY))
    client = _client(server)

    with pytest.raises(InfluxDBQueryError):
        await client.write("mydb", "m v=1")


@pytest.mark.asyncio
async def test_select_builds_query_and_shapes_series() -> None:
    server = FakeServer(
        _series(
            {
                "name": "cpu_load",
                "tags": {"host": "server01"},
                "columns": ["time", "mean"],
                "values": [["2015-07-25T00:00:00Z", 0.5]],
            }
        )
    )
    client = _client(server)

    series = await client.select(
        "mydb",
        "cpu_load",
        fields="mean(value)",
        where="time > now() - 1h",
        group_by="time(5m), host",
        fill="previous",
        limit=10,
        rp="last_day",
    )

    params = server.last.url.params
    assert params["q"] == (
        "SELECT mean(value) FROM cpu_load WHERE time > now() - 1h "
        "GROUP BY time(5m), host fill(previous) LIMIT 10"
    )
    assert params["rp"] == "last_day"
    assert series[0].name == "cpu_load"
    assert series[0].tags == {"host": "server01"}
    assert series[0].values == [{"time": "2015-07-25T00:00:00Z", "mean": 0.5}]


@pytest.mark.asyncio
async def test_raw_query_returns_response_untouched() -> None:
    server = FakeServer(httpx.Response(400, text='{"error":"error parsing query"}'))
    client = _client(server, username="admin", password="secret")

    resp = await client.query({"db": "mydb", "q": "SELEKT 1", "epoch": None})

    assert resp.status == 400
    assert resp.body == '{"error":"error parsing query"}'
    assert server.last.url.params["u"] == "admin"
    assert "epoch" not in server.last.url.params


@pytest.mark.asyncio
async def test_ping() -> None:
    server = FakeServer(httpx.Response(204), httpx.Response(500))
    client = _client(server)

    assert await client.ping() is True
    assert server.last.url.path == "/ping"
    assert await client.ping() is False


@pytest.mark.asyncio
async def test_connection_failure_surfaces_once() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = AsyncInfluxDBClient(transport=httpx.MockTransport(handler))

    with pytest.raises(InfluxDBConnectionError):
        await client.create_database("mydb")
    assert await client.ping() is False


@pytest.mark.asyncio
async def test_invalid_arguments_fail_before_io() -> None:
    server = FakeServer()
    client = _client(server)

    with pytest.raises(ValueError):
        await client.alter_retention_policy("rp", "mydb")
    with pytest.raises(ValueError):
        await client.write("mydb", {"measurement": "m", "fields": {}})
    assert server.requests == []


@pytest.mark.asyncio
async def test_server_can_be_repointed() -> None:
    server = FakeServer(httpx.Response(200, text=EMPTY))
    async with _client(server) as client:
        client.server = "http://other:9999"
        await client.create_database("mydb")

    assert server.last.url.host == "other"
    assert server.last.url.port == 9999


def test_factory_from_mapping() -> None:
    client = InfluxDBClientFactory.get_client({"url": "https://db:8086", "user": "u", "pwd": "p"})
    assert client.server == "https://db:8086"
    assert client.context.is_ssl is True
    assert client.context.make_url("/query").params["u"] == "u"


def test_factory_from_config() -> None:
    client = InfluxDBClientFactory.get_client(ConnectionConfig(server="http://db:8086"))
    assert repr(client) == "AsyncInfluxDBClient(http://db:8086)"


@pytest.mark.asyncio
async def test_malformed_rows_on_ok_response_give_empty_results() -> None:
    server = FakeServer(
        _series({"columns": ["name"], "values": [1, 2]}),
        _series({"columns": ["name"], "values": [1, 2]}),
        _series({"name": ["x"], "columns": ["key"], "values": [["host"]]}),
        _series({"name": "cpu", "columns": ["key", "value"], "values": [["host"]]}),
    )
    client = _client(server)

    assert await client.show_databases() == []
    assert await client.show_users() == []
    assert await client.show_series("mydb") == {}
    assert await client.show_tag_values("mydb", key="host") == {}


@pytest.mark.asyncio
async def test_empty_optional_write_params_are_omitted() -> None:
    server = FakeServer(httpx.Response(204), _series())
    client = _client(server)

    await client.write("mydb", "m v=1", rp="", precision="", consistency="")
    assert dict(server.last.url.params) == {"db": "mydb"}

    await client.select("mydb", "cpu", rp="")
    assert "rp" not in server.last.url.params
