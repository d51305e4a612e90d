"""Abstract base connection for influxdb_connection."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type, TypeVar, Union
import logging

from .exceptions import InfluxDBConnectionError, UnsafeOperationError
from .models import BatchPoints, Pong, Point, Query, RetentionPolicy

T = TypeVar("T")


class InfluxDBConnectionBase(ABC):
    """Abstract base class for InfluxDB connections."""

    def __init__(self, version: int, config: Dict[str, Any], allow_write: bool = False) -> None:
        self.version = version
        self.config = config
        self.connected = False
        self._client = None
        self._allow_write = allow_write
        self.logger = logging.getLogger(f"{__name__}.v{version}")

    # -------------------- Connection management --------------------

    @abstractmethod
    def connect(self) -> None:
        """Establish connection to InfluxDB."""

    @abstractmethod
    def close(self) -> None:
        """Close underlying client connections."""

    @abstractmethod
    def ping(self) -> Pong:
        """Probe the server and return its version."""

    def ping_server(self) -> bool:
        """Ping and report success as a boolean instead of raising."""
        try:
            pong = self.ping()
        except InfluxDBConnectionError:
            self.logger.error("Exception while pinging database: ", exc_info=True)
            return False
        if not pong.is_good():
            self.logger.error("Error pinging server.")
            return False
        self.logger.info("Database version: %s", pong.version)
        return True

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

    # -------------------- Databases and retention policies --------------------

    @abstractmethod
    def create_database(self, name: str) -> bool:
        """Create a database."""

    @abstractmethod
    def delete_database(self, name: str) -> bool:
        """Drop a database. Dropping a missing database is not an error."""

    @abstractmethod
    def list_databases(self) -> List[str]:
        """List database names."""

    def database_exists(self, name: str) -> bool:
        return any(db.lower() == name.lower() for db in self.list_databases())

    @abstractmethod
    def create_retention_policy(
        self,
        policy: Union[RetentionPolicy, str],
        database: Optional[str] = None,
        duration: Optional[str] = None,
        replication: int = 1,
        default: bool = False,
    ) -> RetentionPolicy:
        """Create a retention policy."""

    @abstractmethod
    def drop_retention_policy(self, name: str, database: Optional[str] = None) -> bool:
        """Drop a retention policy."""

    @abstractmethod
    def list_retention_policies(self, database: Optional[str] = None) -> List[Dict[str, Any]]:
        """List retention policies of a database."""

    # -------------------- Writes --------------------

    @abstractmethod
    def write(self, point: Point, database: Optional[str] = None, retention_policy: Optional[str] = None) -> None:
        """Write one point, buffered when batch mode is enabled."""

    @abstractmethod
    def write_batch(self, batch: BatchPoints) -> bool:
        """Write a batch of points in one call."""

    # -------------------- Queries --------------------

    @abstractmethod
    def query(self, query: Union[Query, str], database: Optional[str] = None) -> Any:
        """Execute a raw InfluxQL command."""

    @abstractmethod
    def query_records(
        self, query: Union[Query, str], record_type: Type[T], database: Optional[str] = None
    ) -> List[T]:
        """Execute a query and map the result onto ``record_type``."""

    def _ensure_writes_allowed(self, op: str) -> None:
        if not self._allow_write:
            raise UnsafeOperationError(
                f"{op} blocked. Set INFLUXDB_ALLOW_WRITE=true or allow_write=True in config."
            )

    def __repr__(self) -> str:
        status = "connected" if self.connected else "disconnected"
        writes = "writes_enabled" if self._allow_write else "read_only"
        return f"InfluxDBConnection(v{self.version}, {status}, {writes})"
