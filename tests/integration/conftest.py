from __future__ import annotations

import os

import pytest

from influxdb_connection import InfluxDBConnectionFactory
from influxdb_connection.config import PASSWORD_ENV

DB_NAME = "baeldung"
URL = "http://127.0.0.1:8086"


def pytest_collection_modifyitems(config, items):
    if os.getenv(PASSWORD_ENV):
        return
    skip = pytest.mark.skip(reason=f"{PASSWORD_ENV} is not set; no InfluxDB server configured")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


@pytest.fixture()
def connection():
    pw = os.getenv(PASSWORD_ENV)
    connection = InfluxDBConnectionFactory.connect(URL, "admin", pw, allow_write=True)
    # Create "baeldung" and check for it
    connection.create_database(DB_NAME)
    assert connection.database_exists(DB_NAME)

    yield connection

    # Drop "baeldung" and check again
    connection.delete_database(DB_NAME)
    assert not connection.database_exists(DB_NAME)
    connection.delete_database(DB_NAME)
    connection.close()
