"""InfluxDB 1.x support."""

from .client import InfluxDBConnection

__all__ = ["InfluxDBConnection"]
