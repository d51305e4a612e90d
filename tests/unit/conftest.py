from __future__ import annotations

import re
from types import SimpleNamespace

import pandas as pd
import pytest
from influxdb.resultset import ResultSet

from influxdb_connection.v1.client import InfluxDBConnection


class FakeInfluxClient:
    """In-memory stand-in for ``influxdb.InfluxDBClient``."""

    def __init__(self, version: str | None = "1.8.10") -> None:
        self.version = version
        self.ping_error: Exception | None = None
        self.databases: list[str] = []
        self.policies: list[dict] = []
        self.points: dict[str, list[dict]] = {}
        self.write_calls: list[dict] = []
        self.queries: list[tuple[str, str | None]] = []
        self.closed = False

    def request(self, url, method="GET", expected_response_code=200, **kwargs):
        assert url == "ping" and expected_response_code == 204
        if self.ping_error is not None:
            raise self.ping_error
        headers = {} if self.version is None else {"X-Influxdb-Version": self.version}
        return SimpleNamespace(status_code=204, headers=headers)

    def close(self):
        self.closed = True

    def switch_database(self, database):
        self.switched_to = database

    def create_database(self, dbname):
        if dbname not in self.databases:
            self.databases.append(dbname)

    def drop_database(self, dbname):
        if dbname in self.databases:
            self.databases.remove(dbname)
        self.points.pop(dbname, None)

    def get_list_database(self):
        return [{"name": name} for name in self.databases]

    def create_retention_policy(self, name, duration, replication, database=None, default=False, shard_duration="0s"):
        self.policies.append(
            {
                "name": name,
                "duration": duration,
                "replicaN": replication,
                "database": database,
                "default": default,
                "shardGroupDuration": shard_duration,
            }
        )

    def drop_retention_policy(self, name, database=None):
        self.policies = [p for p in self.policies if not (p["name"] == name and p["database"] == database)]

    def get_list_retention_policies(self, database=None):
        return [p for p in self.policies if p["database"] == database]

    def write_points(self, points, time_precision=None, database=None, retention_policy=None, consistency=None):
        self.write_calls.append(
            {
                "points": list(points),
                "time_precision": time_precision,
                "database": database,
                "retention_policy": retention_policy,
            }
        )
        self.points.setdefault(database, []).extend(points)
        return True

    def query(self, query, database=None):
        self.queries.append((query, database))
        statements = [s.strip() for s in query.split(";") if s.strip()]
        if len(statements) > 1:
            return [self._statement(s, database) for s in statements]
        return self._statement(query, database)

    def _statement(self, query, database):
        match = re.search(r'FROM\s+"?(\w+)"?', query, re.IGNORECASE)
        if match is None:
            return ResultSet({"statement_id": 0})
        measurement = match.group(1)
        rows = [p for p in self.points.get(database, []) if p["measurement"] == measurement]
        rows.sort(key=lambda p: p["time"], reverse="order by time desc" in query.lower())
        if not rows:
            return ResultSet({"statement_id": 0})
        field_names = sorted({k for p in rows for k in p["fields"]})
        values = [
            [pd.Timestamp(p["time"], unit="ms", tz="UTC").isoformat()] + [p["fields"].get(f) for f in field_names]
            for p in rows
        ]
        return ResultSet(
            {
                "statement_id": 0,
                "series": [{"name": measurement, "columns": ["time"] + field_names, "values": values}],
            }
        )


@pytest.fixture()
def fake_influx() -> FakeInfluxClient:
    return FakeInfluxClient()


@pytest.fixture()
def connection(fake_influx):
    conn = InfluxDBConnection(
        host="localhost",
        port=8086,
        username="admin",
        password="pw",
        database=None,
        allow_write=True,
        client=fake_influx,
    )
    yield conn
    conn.close()
