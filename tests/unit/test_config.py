from __future__ import annotations

from influxdb_connection.config import (
    ConnectionConfig,
    _get_bool,
    from_env,
    resolve_config,
)

_ENV_KEYS = (
    "INFLUXDB_HOST",
    "INFLUXDB_PORT",
    "INFLUXDB_USER",
    "INFLUXDB_PASSWORD",
    "INFLUXDB_DB",
    "INFLUXDB_SSL",
    "INFLUXDB_TIMEOUT",
    "INFLUXDB_ALLOW_WRITE",
    "IFPW",
)


def _clear_env(monkeypatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr("influxdb_connection.config.load_env", lambda: None)


def test_get_bool_variants() -> None:
    assert _get_bool("true") is True
    assert _get_bool("Yes") is True
    assert _get_bool("ON") is True
    assert _get_bool("0") is False
    assert _get_bool(None, default=True) is True


def test_from_env_defaults_to_local_admin(monkeypatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("IFPW", "secret")

    cfg = from_env()

    assert cfg.host == "127.0.0.1"
    assert cfg.port == 8086
    assert cfg.username == "admin"
    assert cfg.password == "secret"
    assert cfg.timeout is None
    assert cfg.allow_write is False
    assert cfg.url == "http://127.0.0.1:8086"


def test_from_env_reads_overrides_and_password_fallback(monkeypatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("INFLUXDB_HOST", "influx.local")
    monkeypatch.setenv("INFLUXDB_PORT", "9000")
    monkeypatch.setenv("INFLUXDB_USER", "writer")
    monkeypatch.setenv("INFLUXDB_PASSWORD", "fallback-pwd")
    monkeypatch.setenv("INFLUXDB_DB", "baeldung")
    monkeypatch.setenv("INFLUXDB_SSL", "true")
    monkeypatch.setenv("INFLUXDB_TIMEOUT", "2.5")
    monkeypatch.setenv("INFLUXDB_ALLOW_WRITE", "true")

    cfg = from_env()

    assert cfg.password == "fallback-pwd"
    assert cfg.database == "baeldung"
    assert cfg.timeout == 2.5
    assert cfg.allow_write is True
    assert cfg.url == "https://influx.local:9000"


def test_ifpw_wins_over_fallback(monkeypatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("IFPW", "primary")
    monkeypatch.setenv("INFLUXDB_PASSWORD", "fallback")
    assert from_env().password == "primary"


def test_resolve_config_supports_alias_keys() -> None:
    cfg = resolve_config(
        {
            "host": "h",
            "port": "8088",
            "user": "u",
            "pwd": "p",
            "database": "db",
            "ssl": True,
            "timeout": "3",
            "allow_write": True,
        }
    )

    assert cfg == ConnectionConfig(
        host="h",
        port=8088,
        username="u",
        password="p",
        database="db",
        ssl=True,
        verify_ssl=False,
        timeout=3.0,
        allow_write=True,
    )


def test_resolve_config_dataclass_passthrough() -> None:
    original = ConnectionConfig(password="p")
    assert resolve_config(original) is original
