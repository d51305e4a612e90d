"""Local write/read smoke test for influxdb-connection.

Creates a scratch database, writes a few memory samples (single and batched),
reads them back and drops the database again.

Usage:
    py scripts/smoke_write.py
    py scripts/smoke_write.py --url http://127.0.0.1:8086 --database smoke
    py scripts/smoke_write.py --ping-only
"""

from __future__ import annotations

import argparse
import sys
import time

from influxdb_connection import BatchPoints, InfluxDBConnectionFactory, MemoryPoint, Point, temporary_database
from influxdb_connection.config import PASSWORD_ENV
from influxdb_connection.models import now

POLICY = "smokePolicy"


def _connection_from_args(args: argparse.Namespace):
    overrides = {"allow_write": True}
    if args.user:
        overrides["username"] = args.user
    connection = InfluxDBConnectionFactory.from_env(url=args.url, **overrides)
    if not connection.config["password"]:
        raise ValueError(f"{PASSWORD_ENV} (or INFLUXDB_PASSWORD) is required for the smoke test")
    return connection


def _memory_point(free: int, offset_ms: int = 0) -> Point:
    return Point(
        "memory",
        fields={"name": "smoke", "free": free, "used": 1015096, "buffer": 1010467},
        time=now("ms") - offset_ms,
    )


def run(connection, database: str, points: int) -> int:
    if not connection.ping_server():
        print("Ping failed.", file=sys.stderr)
        return 1

    with temporary_database(connection, database):
        connection.create_retention_policy(POLICY, database, "1d", 1, True)
        batch = BatchPoints(database=database, retention_policy=POLICY)
        for i in range(points):
            batch.point(_memory_point(4743656 + i, offset_ms=points - i))
        connection.write_batch(batch)

        records = connection.select_records(MemoryPoint, database=database)
        print(f"database={database} written={points} read={len(records)}")
        newest = connection.select_records(MemoryPoint, order_desc=True, limit=1, database=database)
        if newest:
            print(f"newest: time={newest[0].time.isoformat()} free={newest[0].free}")
        if len(records) != points:
            print("Read count does not match written count.", file=sys.stderr)
            return 1
    return 0


def run_ping(connection) -> int:
    pong = connection.ping()
    print(f"version={pong.version} response_time_ms={pong.response_time_ms:.1f}")
    return 0 if pong.is_good() else 1


def main() -> int:
    parser = argparse.ArgumentParser(description="Run a write/read smoke check against InfluxDB 1.x")
    parser.add_argument("--url", default=None, help="InfluxDB base url (default: INFLUXDB_HOST/INFLUXDB_PORT)")
    parser.add_argument("--user", default=None, help="InfluxDB user (default: INFLUXDB_USER or admin)")
    parser.add_argument("--database", default="influxdb_connection_smoke", help="Scratch database name")
    parser.add_argument("--points", type=int, default=3, help="Number of points to write")
    parser.add_argument("--ping-only", action="store_true", help="Only ping the server")
    args = parser.parse_args()
    try:
        connection = _connection_from_args(args)
    except Exception as exc:
        print(f"Smoke test failed: {exc}", file=sys.stderr)
        return 1
    try:
        if args.ping_only:
            return run_ping(connection)
        started = time.perf_counter()
        rc = run(connection, args.database, args.points)
        print(f"elapsed_s={time.perf_counter() - started:.2f}")
        return rc
    except Exception as exc:
        print(f"Smoke test failed: {exc}", file=sys.stderr)
        return 1
    finally:
        connection.close()


if __name__ == "__main__":
    raise SystemExit(main())
