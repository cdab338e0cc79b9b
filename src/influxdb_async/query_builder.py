"""InfluxQL query builder.

Identifiers, values and conditions are inserted as given. Quoting and
escaping are the caller's job.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence, Union

Fields = Union[str, Iterable[str]]


# -------------------- Databases --------------------

def create_database(database: str) -> str:
    return f"CREATE DATABASE {database}"


def drop_database(database: str) -> str:
    return f"DROP DATABASE {database}"


def show_databases() -> str:
    return "SHOW DATABASES"


# -------------------- Retention policies --------------------

def create_retention_policy(
    name: str,
    database: str,
    duration: str,
    replication: Union[int, str],
    default: bool = False,
) -> str:
    query = f"CREATE RETENTION POLICY {name} ON {database} DURATION {duration} REPLICATION {replication}"
    if default:
        query += " DEFAULT"
    return query


def alter_retention_policy(
    name: str,
    database: str,
    duration: Optional[str] = None,
    replication: Optional[Union[int, str]] = None,
    default: bool = False,
) -> str:
    if duration is None and replication is None and not default:
        raise ValueError("at least one of duration, replication or default must be set")
    query = f"ALTER RETENTION POLICY {name} ON {database}"
    if duration is not None:
        query += f" DURATION {duration}"
    if replication is not None:
        query += f" REPLICATION {replication}"
    if default:
        query += " DEFAULT"
    return query


def drop_retention_policy(name: str, database: str) -> str:
    return f"DROP RETENTION POLICY {name} ON {database}"


def show_retention_policies(database: str) -> str:
    return f"SHOW RETENTION POLICIES ON {database}"


# -------------------- Users and privileges --------------------

def create_user(username: str, password: str, all_privileges: bool = False) -> str:
    query = f"CREATE USER {username} WITH PASSWORD '{password}'"
    if all_privileges:
        query += " WITH ALL PRIVILEGES"
    return query


def set_user_password(username: str, password: str) -> str:
    return f"SET PASSWORD FOR {username} = '{password}'"


def drop_user(username: str) -> str:
    return f"DROP USER {username}"


def show_users() -> str:
    return "SHOW USERS"


def grant_privileges(
    username: str,
    access: Optional[str] = None,
    database: Optional[str] = None,
    all_privileges: bool = False,
) -> str:
    return f"GRANT {_privilege(access, database, all_privileges)} TO {username}"


def revoke_privileges(
    username: str,
    access: Optional[str] = None,
    database: Optional[str] = None,
    all_privileges: bool = False,
) -> str:
    return f"REVOKE {_privilege(access, database, all_privileges)} FROM {username}"


def _privilege(access: Optional[str], database: Optional[str], all_privileges: bool) -> str:
    if all_privileges:
        return "ALL PRIVILEGES"
    if not access or not database:
        raise ValueError("access and database are required unless all_privileges is set")
    return f"{access} ON {database}"


# -------------------- Schema exploration --------------------

def show_measurements(where: Optional[str] = None) -> str:
    return _with_clauses("SHOW MEASUREMENTS", where=where)


def drop_measurement(measurement: str) -> str:
    return f"DROP MEASUREMENT {measurement}"


def show_series(measurement: Optional[str] = None, where: Optional[str] = None) -> str:
    return _with_clauses("SHOW SERIES", measurement=measurement, where=where)


def drop_series(measurement: Optional[str] = None, where: Optional[str] = None) -> str:
    return _with_clauses("DROP SERIES", measurement=measurement, where=where)


def show_tag_keys(measurement: Optional[str] = None, where: Optional[str] = None) -> str:
    return _with_clauses("SHOW TAG KEYS", measurement=measurement, where=where)


def show_tag_values(
    measurement: Optional[str] = None,
    key: Optional[str] = None,
    keys: Optional[Sequence[str]] = None,
    where: Optional[str] = None,
) -> str:
    query = _with_clauses("SHOW TAG VALUES", measurement=measurement)
    if keys:
        query += f" WITH KEY IN ({', '.join(keys)})"
    elif key:
        query += f" WITH KEY = {key}"
    return _with_clauses(query, where=where)


def show_field_keys(measurement: Optional[str] = None) -> str:
    return _with_clauses("SHOW FIELD KEYS", measurement=measurement)


def _with_clauses(query: str, measurement: Optional[str] = None, where: Optional[str] = None) -> str:
    if measurement:
        query += f" FROM {measurement}"
    if where:
        query += f" WHERE {where}"
    return query


# -------------------- Continuous queries --------------------

def create_continuous_query(name: str, database: str, query: str) -> str:
    return f"CREATE CONTINUOUS QUERY {name} ON {database} BEGIN {query} END"


def drop_continuous_query(name: str, database: str) -> str:
    return f"DROP CONTINUOUS QUERY {name} ON {database}"


def show_continuous_queries() -> str:
    return "SHOW CONTINUOUS QUERIES"


# -------------------- Select --------------------

def build_select_query(
    measurement: str,
    fields: Fields = "*",
    where: Optional[str] = None,
    group_by: Optional[str] = None,
    fill: Optional[str] = None,
    order_by: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    slimit: Optional[int] = None,
    soffset: Optional[int] = None,
) -> str:
    """Assemble a SELECT statement.

    Clause order is fixed: WHERE, GROUP BY (with optional fill), ORDER BY,
    LIMIT/OFFSET, SLIMIT/SOFFSET. ``fill`` is ignored without ``group_by``,
    ``offset`` without ``limit`` and ``soffset`` without ``slimit``.
    """
    query = f"SELECT {_field_list(fields)} FROM {measurement}"
    if where:
        query += f" WHERE {where}"
    if group_by:
        query += f" GROUP BY {group_by}"
        if fill:
            query += f" fill({fill})"
    if order_by:
        query += f" ORDER BY {order_by}"
    if limit:
        query += f" LIMIT {limit}"
        if offset:
            query += f" OFFSET {offset}"
    if slimit:
        query += f" SLIMIT {slimit}"
        if soffset:
            query += f" SOFFSET {soffset}"
    return query


def _field_list(fields: Fields) -> str:
    if isinstance(fields, str):
        return fields
    field_list = [f for f in fields if f]
    if not field_list:
        raise ValueError("fields must contain at least one field name")
    return ", ".join(field_list)
