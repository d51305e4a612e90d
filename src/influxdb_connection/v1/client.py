"""InfluxDB 1.x connection (InfluxQL) on top of the ``influxdb`` package."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Type, TypeVar, Union
import logging
import time

import pandas as pd
from influxdb.exceptions import InfluxDBClientError, InfluxDBServerError
from requests.exceptions import ConnectionError as RequestsConnectionError
from requests.exceptions import Timeout

from ..base import InfluxDBConnectionBase
from ..batch import BatchProcessor, ErrorHandler
from ..exceptions import (
    BatchModeError,
    InfluxDBAuthenticationError,
    InfluxDBConnectionError,
    InfluxDBError,
    InfluxDBQueryError,
    InfluxDBWriteError,
)
from ..mapper import ResultMapper, measurement_of
from ..models import BatchPoints, Pong, Point, Query, RetentionPolicy, WriteResult
from .query_builder import build_select_query

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRANSPORT_ERRORS = (RequestsConnectionError, Timeout, OSError)
_UNIT_MS = {"ms": 1, "s": 1000}


class InfluxDBConnection(InfluxDBConnectionBase):
    """InfluxDB 1.x connection using InfluxQL."""

    def __init__(
        self,
        host: str,
        port: int,
        username: Optional[str],
        password: Optional[str],
        database: Optional[str] = None,
        ssl: bool = False,
        verify_ssl: bool = False,
        timeout: Optional[float] = None,
        allow_write: bool = False,
        client: Optional[object] = None,
    ) -> None:
        config = {
            "host": host,
            "port": port,
            "username": username,
            "password": password,
            "database": database,
            "ssl": ssl,
            "verify_ssl": verify_ssl,
            "timeout": timeout,
        }
        super().__init__(version=1, config=config, allow_write=allow_write)
        if client is None:
            from influxdb import InfluxDBClient

            self._client = InfluxDBClient(
                host=host,
                port=port,
                username=username,
                password=password,
                database=database,
                ssl=ssl,
                verify_ssl=verify_ssl,
                timeout=timeout,
            )
        else:
            self._client = client
        self._database = database
        self._retention_policy: Optional[str] = None
        self._batch: Optional[BatchProcessor] = None
        self._mapper = ResultMapper()

    # -------------------- Connection management --------------------

    def connect(self) -> None:
        pong = self.ping()
        if not pong.is_good():
            self.connected = False
            raise InfluxDBConnectionError(f"Ping returned unusable version: {pong.version!r}")
        self.connected = True
        logger.debug("Connected to InfluxDB %s", pong.version)

    def close(self) -> None:
        if self._batch is not None:
            self.disable_batch()
        if hasattr(self._client, "close"):
            self._client.close()
        self.connected = False

    def ping(self) -> Pong:
        started = time.perf_counter()
        try:
            response = self._client.request("ping", expected_response_code=204)
        except _TRANSPORT_ERRORS as exc:
            raise InfluxDBConnectionError(str(exc)) from exc
        except (InfluxDBClientError, InfluxDBServerError) as exc:
            raise InfluxDBConnectionError(str(exc)) from exc
        elapsed = (time.perf_counter() - started) * 1000.0
        # Proxies and stubs may answer 204 without the version header.
        version = response.headers.get("X-Influxdb-Version")
        return Pong(version=version, response_time_ms=elapsed)

    def set_database(self, database: str) -> None:
        self._database = database
        if hasattr(self._client, "switch_database"):
            self._client.switch_database(database)

    def set_retention_policy(self, name: Optional[str]) -> None:
        self._retention_policy = name

    # -------------------- Databases and retention policies --------------------

    def create_database(self, name: str) -> bool:
        self._ensure_writes_allowed("create_database")
        self._call(self._client.create_database, name)
        logger.info("Created database %s", name)
        return True

    def delete_database(self, name: str) -> bool:
        self._ensure_writes_allowed("delete_database")
        self._call(self._client.drop_database, name)
        logger.info("Dropped database %s", name)
        return True

    def list_databases(self) -> List[str]:
        dbs = self._call(self._client.get_list_database)
        return [d.get("name") for d in dbs if "name" in d]

    def create_retention_policy(
        self,
        policy: Union[RetentionPolicy, str],
        database: Optional[str] = None,
        duration: Optional[str] = None,
        replication: int = 1,
        default: bool = False,
    ) -> RetentionPolicy:
        self._ensure_writes_allowed("create_retention_policy")
        if isinstance(policy, str):
            db = database or self._database
            if not db or not duration:
                raise ValueError("database and duration are required for a retention policy")
            policy = RetentionPolicy(
                name=policy, database=db, duration=duration, replication=replication, default=default
            )
        self._call(
            self._client.create_retention_policy,
            policy.name,
            policy.duration,
            policy.replication,
            database=policy.database,
            default=policy.default,
            shard_duration=policy.shard_duration,
        )
        logger.info("Created retention policy %s on %s (%s)", policy.name, policy.database, policy.duration)
        return policy

    def drop_retention_policy(self, name: str, database: Optional[str] = None) -> bool:
        self._ensure_writes_allowed("drop_retention_policy")
        self._call(self._client.drop_retention_policy, name, database=database or self._database)
        return True

    def list_retention_policies(self, database: Optional[str] = None) -> List[Dict[str, Any]]:
        return list(self._call(self._client.get_list_retention_policies, database=database or self._database))

    # -------------------- Batch mode --------------------

    def enable_batch(
        self,
        actions: int,
        flush_duration: int,
        unit: str = "ms",
        on_error: Optional[ErrorHandler] = None,
    ) -> None:
        """Buffer ``write`` calls and flush every ``actions`` points or ``flush_duration``."""
        if self._batch is not None:
            raise BatchModeError("Batch mode is already enabled, disable it first")
        if unit not in _UNIT_MS:
            raise ValueError(f"unit must be one of {', '.join(_UNIT_MS)}")
        self._batch = BatchProcessor(
            self.write_batch,
            actions=actions,
            flush_interval_ms=flush_duration * _UNIT_MS[unit],
            on_error=on_error,
        )
        self._batch.start()
        logger.debug("Batch mode enabled: actions=%d flush=%d%s", actions, flush_duration, unit)

    def disable_batch(self) -> None:
        if self._batch is None:
            return
        batch, self._batch = self._batch, None
        batch.stop()
        logger.debug("Batch mode disabled")

    def is_batch_enabled(self) -> bool:
        return self._batch is not None

    def flush(self) -> int:
        if self._batch is None:
            return 0
        return self._batch.flush()

    # -------------------- Writes --------------------

    def write(self, point: Point, database: Optional[str] = None, retention_policy: Optional[str] = None) -> None:
        self._ensure_writes_allowed("write")
        db = database or self._database
        if not db:
            raise ValueError("database is required; pass it or call set_database()")
        rp = retention_policy or self._retention_policy
        if self._batch is not None:
            self._batch.put(db, rp, point)
            return
        self.write_batch(BatchPoints(database=db, retention_policy=rp).point(point))

    def write_batch(self, batch: BatchPoints) -> bool:
        self._ensure_writes_allowed("write_batch")
        ok = True
        for precision, points in batch.by_precision().items():
            try:
                written = self._client.write_points(
                    points,
                    time_precision=precision,
                    database=batch.database,
                    retention_policy=batch.retention_policy,
                    consistency=batch.consistency,
                )
            except _TRANSPORT_ERRORS as exc:
                raise InfluxDBConnectionError(str(exc)) from exc
            except (InfluxDBClientError, InfluxDBServerError) as exc:
                raise _translate(exc, InfluxDBWriteError) from exc
            ok = ok and bool(written)
        logger.debug("Wrote %d points to %s", len(batch), batch.database)
        return ok

    def write_points(
        self,
        points: List[Dict[str, object]],
        measurement: str,
        batch_size: Optional[int] = None,
        database: Optional[str] = None,
        retention_policy: Optional[str] = None,
        time_precision: Optional[str] = None,
    ) -> WriteResult:
        self._ensure_writes_allowed("write_points")
        if batch_size is not None and batch_size <= 0:
            raise ValueError("batch_size must be greater than zero")
        for p in points:
            if "measurement" not in p:
                p["measurement"] = measurement

        chunks = _chunk_points(points, batch_size)
        batches = 0
        overall_ok = True
        try:
            for chunk in chunks:
                batches += 1
                ok = bool(
                    self._client.write_points(
                        chunk,
                        time_precision=time_precision,
                        database=database or self._database,
                        retention_policy=retention_policy or self._retention_policy,
                    )
                )
                overall_ok = overall_ok and ok
            return WriteResult(
                success=overall_ok,
                details={"points": len(points), "batch_size": batch_size, "batches": batches},
            )
        except _TRANSPORT_ERRORS as exc:
            raise InfluxDBConnectionError(str(exc)) from exc
        except (InfluxDBClientError, InfluxDBServerError) as exc:
            raise _translate(exc, InfluxDBWriteError) from exc

    # -------------------- Queries --------------------

    def query(self, query: Union[Query, str], database: Optional[str] = None) -> Any:
        if isinstance(query, Query):
            command, db = query.command, database or query.database
        else:
            command, db = query, database
        logger.debug("InfluxQL query: %s", command)
        try:
            return self._client.query(command, database=db or self._database)
        except _TRANSPORT_ERRORS as exc:
            raise InfluxDBConnectionError(str(exc)) from exc
        except (InfluxDBClientError, InfluxDBServerError) as exc:
            raise _translate(exc, InfluxDBQueryError) from exc

    def query_records(
        self, query: Union[Query, str], record_type: Type[T], database: Optional[str] = None
    ) -> List[T]:
        result = self.query(query, database=database)
        return self._mapper.to_records(result, record_type)

    def select_records(
        self,
        record_type: Type[T],
        order_desc: bool = False,
        limit: Optional[int] = None,
        database: Optional[str] = None,
        fields: Optional[List[str]] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        tags: Optional[Dict[str, str]] = None,
    ) -> List[T]:
        qry = build_select_query(
            measurement_of(record_type),
            fields=fields,
            start=start,
            end=end,
            tags=tags,
            order_desc=order_desc,
            limit=limit,
        )
        return self.query_records(qry, record_type, database=database)

    def query_dataframe(
        self, query: Union[Query, str], database: Optional[str] = None, timezone: str = "UTC"
    ) -> pd.DataFrame:
        result = self.query(query, database=database)
        results = result if isinstance(result, list) else [result]
        df = pd.DataFrame([row for rs in results for row in rs.get_points()])
        if "time" in df.columns:
            df["time"] = pd.to_datetime(df["time"], utc=True)
            if timezone and timezone.upper() != "UTC":
                df["time"] = df["time"].dt.tz_convert(timezone)
                df["time"] = df["time"].dt.tz_localize(None)
            df = _move_time_first(df)
        return df

    def _call(self, func, *args, **kwargs):
        try:
            return func(*args, **kwargs)
        except _TRANSPORT_ERRORS as exc:
            raise InfluxDBConnectionError(str(exc)) from exc
        except (InfluxDBClientError, InfluxDBServerError) as exc:
            raise _translate(exc, InfluxDBQueryError) from exc


def _translate(exc: Exception, default: Type[InfluxDBError]) -> InfluxDBError:
    code = getattr(exc, "code", None)
    if code in (401, 403):
        return InfluxDBAuthenticationError(str(exc))
    return default(str(exc))


def _move_time_first(df: pd.DataFrame) -> pd.DataFrame:
    cols = list(df.columns)
    if cols and cols[0] != "time" and "time" in cols:
        cols = ["time"] + [c for c in cols if c != "time"]
        return df.reindex(columns=cols)
    return df


def _chunk_points(points: List[Dict[str, object]], batch_size: Optional[int]) -> List[List[Dict[str, object]]]:
    if not batch_size:
        return [points]
    return [points[i : i + batch_size] for i in range(0, len(points), batch_size)]
