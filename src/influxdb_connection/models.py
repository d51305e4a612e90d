"""Data models for influxdb_connection."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional
import time

from .mapper import column

PRECISIONS = ("s", "ms", "u", "n")
_PER_SECOND = {"s": 1, "ms": 1_000, "u": 1_000_000, "n": 1_000_000_000}


def now(precision: str = "ms") -> int:
    """Current wall clock as an integer in ``precision`` units."""
    if precision not in _PER_SECOND:
        raise ValueError(f"Unsupported precision: {precision}")
    return time.time_ns() * _PER_SECOND[precision] // 1_000_000_000


@dataclass
class Point:
    """A single sample of a measurement."""

    measurement: str
    fields: Dict[str, Any]
    time: Optional[int] = None
    tags: Dict[str, str] = field(default_factory=dict)
    precision: str = "ms"

    def __post_init__(self) -> None:
        if not self.measurement:
            raise ValueError("measurement must be a non-empty string")
        if not self.fields:
            raise ValueError("fields must contain at least one field")
        if self.precision not in PRECISIONS:
            raise ValueError(f"precision must be one of {', '.join(PRECISIONS)}")
        if self.time is None:
            self.time = now(self.precision)

    def to_dict(self, extra_tags: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        tags = dict(extra_tags or {})
        tags.update(self.tags)
        point: Dict[str, Any] = {
            "measurement": self.measurement,
            "time": self.time,
            "fields": dict(self.fields),
        }
        if tags:
            point["tags"] = tags
        return point


@dataclass
class BatchPoints:
    """Points written together to one database and retention policy."""

    database: str
    retention_policy: Optional[str] = None
    consistency: Optional[str] = None
    tags: Dict[str, str] = field(default_factory=dict)
    points: List[Point] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.database:
            raise ValueError("database is required for a batch")

    def point(self, point: Point) -> "BatchPoints":
        self.points.append(point)
        return self

    def __len__(self) -> int:
        return len(self.points)

    def by_precision(self) -> Dict[str, List[Dict[str, Any]]]:
        """Group the JSON points by time precision, keeping insertion order."""
        grouped: Dict[str, List[Dict[str, Any]]] = {}
        for p in self.points:
            grouped.setdefault(p.precision, []).append(p.to_dict(self.tags))
        return grouped


@dataclass(frozen=True)
class Query:
    """An InfluxQL command and the database it runs against."""

    command: str
    database: Optional[str] = None


@dataclass(frozen=True)
class Pong:
    """Answer to a ping."""

    version: Optional[str]
    response_time_ms: float = 0.0

    def is_good(self) -> bool:
        return bool(self.version) and self.version.lower() != "unknown"


@dataclass(frozen=True)
class RetentionPolicy:
    name: str
    database: str
    duration: str
    replication: int = 1
    default: bool = False
    shard_duration: str = "0s"


@dataclass(frozen=True)
class WriteResult:
    """Result of a write operation."""

    success: bool
    message: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


@dataclass
class MemoryPoint:
    """Memory usage sample of one server."""

    __measurement__: ClassVar[str] = "memory"

    time: Optional[datetime] = None
    name: Optional[str] = None
    free: Optional[int] = None
    used: Optional[int] = None
    buffer: Optional[int] = column("buffer")
