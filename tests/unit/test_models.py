from __future__ import annotations

import time

import pytest

from influxdb_connection.models import BatchPoints, Point, Pong, now


def test_point_requires_measurement_and_fields() -> None:
    with pytest.raises(ValueError, match="measurement"):
        Point("", fields={"free": 1})
    with pytest.raises(ValueError, match="fields"):
        Point("memory", fields={})


def test_point_rejects_unknown_precision() -> None:
    with pytest.raises(ValueError, match="precision"):
        Point("memory", fields={"free": 1}, precision="h")


def test_point_defaults_time_to_now_in_milliseconds() -> None:
    before = int(time.time() * 1000)
    point = Point("memory", fields={"free": 1})
    after = int(time.time() * 1000)
    assert before <= point.time <= after + 1


def test_now_respects_precision() -> None:
    assert abs(now("s") * 1000 - now("ms")) < 2000
    with pytest.raises(ValueError):
        now("h")


def test_point_to_dict_merges_tags_with_point_tags_winning() -> None:
    point = Point("memory", fields={"free": 1}, time=5, tags={"host": "server1"})
    assert point.to_dict({"host": "other", "region": "eu"}) == {
        "measurement": "memory",
        "time": 5,
        "fields": {"free": 1},
        "tags": {"host": "server1", "region": "eu"},
    }
    assert "tags" not in Point("memory", fields={"free": 1}, time=5).to_dict()


def test_batch_points_chaining_and_grouping() -> None:
    batch = (
        BatchPoints(database="baeldung", retention_policy="defaultPolicy")
        .point(Point("memory", fields={"free": 1}, time=1))
        .point(Point("memory", fields={"free": 2}, time=2, precision="s"))
        .point(Point("memory", fields={"free": 3}, time=3))
    )
    grouped = batch.by_precision()

    assert len(batch) == 3
    assert list(grouped) == ["ms", "s"]
    assert [p["fields"]["free"] for p in grouped["ms"]] == [1, 3]


def test_batch_points_requires_database() -> None:
    with pytest.raises(ValueError, match="database"):
        BatchPoints(database="")


@pytest.mark.parametrize(
    ("version", "good"),
    [("1.8.10", True), ("unknown", False), ("UNKNOWN", False), ("", False), (None, False)],
)
def test_pong_is_good(version, good) -> None:
    assert Pong(version=version).is_good() is good
