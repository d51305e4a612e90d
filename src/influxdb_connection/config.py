"""Configuration loading for influxdb_connection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional
import os

from dotenv import load_dotenv

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8086
DEFAULT_USER = "admin"
PASSWORD_ENV = "IFPW"


def load_env() -> None:
    """Load environment variables from a .env file if present."""
    load_dotenv()


def _get_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_float(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    return float(value)


@dataclass(frozen=True)
class ConnectionConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    username: Optional[str] = DEFAULT_USER
    password: Optional[str] = None
    database: Optional[str] = None
    ssl: bool = False
    verify_ssl: bool = False
    timeout: Optional[float] = None
    allow_write: bool = False

    @property
    def url(self) -> str:
        scheme = "https" if self.ssl else "http"
        return f"{scheme}://{self.host}:{self.port}"


def from_env() -> ConnectionConfig:
    """Build a config from the process environment.

    The password is read from ``IFPW``, falling back to ``INFLUXDB_PASSWORD``.
    """
    load_env()
    return ConnectionConfig(
        host=os.getenv("INFLUXDB_HOST", DEFAULT_HOST),
        port=int(os.getenv("INFLUXDB_PORT", str(DEFAULT_PORT))),
        username=os.getenv("INFLUXDB_USER", DEFAULT_USER),
        password=os.getenv(PASSWORD_ENV, os.getenv("INFLUXDB_PASSWORD")),
        database=os.getenv("INFLUXDB_DB"),
        ssl=_get_bool(os.getenv("INFLUXDB_SSL"), False),
        verify_ssl=_get_bool(os.getenv("INFLUXDB_VERIFY_SSL"), False),
        timeout=_get_float(os.getenv("INFLUXDB_TIMEOUT")),
        allow_write=_get_bool(os.getenv("INFLUXDB_ALLOW_WRITE"), False),
    )


def _dict_get(d: Mapping[str, Any], key: str, fallback: Any = None) -> Any:
    if key in d:
        return d[key]
    return fallback


def resolve_config(config: ConnectionConfig | Mapping[str, Any]) -> ConnectionConfig:
    if isinstance(config, ConnectionConfig):
        return config
    timeout = _dict_get(config, "timeout")
    return ConnectionConfig(
        host=_dict_get(config, "host", DEFAULT_HOST),
        port=int(_dict_get(config, "port", DEFAULT_PORT)),
        username=_dict_get(config, "username", _dict_get(config, "user", DEFAULT_USER)),
        password=_dict_get(config, "password", _dict_get(config, "pwd")),
        database=_dict_get(config, "database"),
        ssl=bool(_dict_get(config, "ssl", False)),
        verify_ssl=bool(_dict_get(config, "verify_ssl", False)),
        timeout=float(timeout) if timeout is not None else None,
        allow_write=bool(_dict_get(config, "allow_write", False)),
    )
