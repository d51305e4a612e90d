"""Factory and entry point for influxdb_connection connections."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import asdict
from typing import Any, Iterator, Mapping, Optional
from urllib.parse import urlparse
import logging

from .config import DEFAULT_PORT, ConnectionConfig, from_env, resolve_config
from .v1.client import InfluxDBConnection

logger = logging.getLogger(__name__)


class InfluxDBConnectionFactory:
    """Factory for creating connections from a URL, a config or the environment."""

    @staticmethod
    def connect(
        url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        **options: Any,
    ) -> InfluxDBConnection:
        """Create a connection to ``url`` (``http(s)://host:port``).

        Extra keyword options (``database``, ``timeout``, ``allow_write``,
        ``verify_ssl``, ``client``) are passed to the connection.
        """
        config = _url_options(url)
        config.update(username=username, password=password)
        config.update(options)
        return InfluxDBConnectionFactory.from_config(config)

    @staticmethod
    def from_config(config: Optional[ConnectionConfig | Mapping[str, Any]] = None) -> InfluxDBConnection:
        if config is None:
            raise ValueError("config is required")
        client_override = config.get("client") if isinstance(config, Mapping) else None
        cfg = resolve_config(config)
        return InfluxDBConnection(
            host=cfg.host,
            port=cfg.port,
            username=cfg.username,
            password=cfg.password,
            database=cfg.database,
            ssl=cfg.ssl,
            verify_ssl=cfg.verify_ssl,
            timeout=cfg.timeout,
            allow_write=cfg.allow_write,
            client=client_override,
        )

    @staticmethod
    def from_env(url: Optional[str] = None, **overrides: Any) -> InfluxDBConnection:
        """Create a connection from ``INFLUXDB_*`` variables and the ``IFPW`` password.

        ``url`` replaces host, port and scheme; ``overrides`` replace any other key.
        """
        config = asdict(from_env())
        if url:
            config.update(_url_options(url))
        config.update(overrides)
        return InfluxDBConnectionFactory.from_config(config)


def _url_options(url: str) -> dict:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ValueError(f"Invalid InfluxDB url: {url!r}")
    return {
        "host": parsed.hostname,
        "port": parsed.port or DEFAULT_PORT,
        "ssl": parsed.scheme == "https",
    }


@contextmanager
def temporary_database(connection: InfluxDBConnection, name: str) -> Iterator[InfluxDBConnection]:
    """Create ``name`` for the duration of the block and drop it afterwards.

    The database is verified to exist after creation and to be gone after
    the drop; a second drop is issued to make sure dropping is idempotent.
    """
    connection.create_database(name)
    if not connection.database_exists(name):
        raise AssertionError(f"Database {name} was not created")
    try:
        yield connection
    finally:
        connection.delete_database(name)
        if connection.database_exists(name):
            raise AssertionError(f"Database {name} still exists after drop")
        connection.delete_database(name)
        logger.debug("Temporary database %s removed", name)
