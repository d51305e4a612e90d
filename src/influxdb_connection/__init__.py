"""influxdb_connection package."""

from .batch import BatchProcessor
from .client import InfluxDBConnectionFactory, temporary_database
from .config import ConnectionConfig, from_env, load_env
from .exceptions import (
    BatchModeError,
    InfluxDBError,
    InfluxDBAuthenticationError,
    InfluxDBConnectionError,
    InfluxDBQueryError,
    InfluxDBWriteError,
    MappingError,
    UnsafeOperationError,
)
from .mapper import ResultMapper, column
from .models import BatchPoints, MemoryPoint, Point, Pong, Query, RetentionPolicy, WriteResult
from .v1.client import InfluxDBConnection

__all__ = [
    "BatchProcessor",
    "InfluxDBConnectionFactory",
    "temporary_database",
    "ConnectionConfig",
    "from_env",
    "load_env",
    "BatchModeError",
    "InfluxDBError",
    "InfluxDBAuthenticationError",
    "InfluxDBConnectionError",
    "InfluxDBQueryError",
    "InfluxDBWriteError",
    "MappingError",
    "UnsafeOperationError",
    "ResultMapper",
    "column",
    "BatchPoints",
    "MemoryPoint",
    "Point",
    "Pong",
    "Query",
    "RetentionPolicy",
    "WriteResult",
    "InfluxDBConnection",
]
