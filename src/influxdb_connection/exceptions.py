"""Exceptions for influxdb_connection."""

class InfluxDBError(Exception):
    """Base exception for influxdb_connection."""


class InfluxDBConnectionError(InfluxDBError):
    """Connection to InfluxDB failed."""


class InfluxDBQueryError(InfluxDBError):
    """Query execution failed."""


class InfluxDBWriteError(InfluxDBError):
    """Writing points failed."""


class InfluxDBAuthenticationError(InfluxDBError):
    """Authentication failed."""


class UnsafeOperationError(InfluxDBError):
    """Raised when a write/delete/admin operation is blocked by safety rules."""


class BatchModeError(InfluxDBError):
    """Raised when batch mode is used in the wrong state."""


class MappingError(InfluxDBError):
    """Raised when a query result cannot be mapped onto a record type."""
