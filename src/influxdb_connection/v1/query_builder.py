"""InfluxQL query builder."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional


def build_select_query(
    measurement: str,
    fields: Optional[List[str]] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    tags: Optional[Dict[str, str]] = None,
    order_desc: bool = False,
    limit: Optional[int] = None,
) -> str:
    if not measurement:
        raise ValueError("measurement is required")
    if limit is not None and limit <= 0:
        raise ValueError("limit must be greater than zero")
    query = f"SELECT {', '.join(_field_exprs(fields))} FROM \"{_escape_ident(measurement)}\""
    conditions = []
    if start is not None or end is not None:
        conditions.append(_time_condition(start, end))
    if tags:
        conditions.append(_tags_condition(tags))
    if conditions:
        query += " WHERE " + " AND ".join(conditions)
    if order_desc:
        query += " ORDER BY time DESC"
    if limit is not None:
        query += f" LIMIT {int(limit)}"
    return query


def _field_exprs(fields: Optional[List[str]]) -> List[str]:
    if not fields:
        return ["*"]
    return [f'"{_escape_ident(f)}"' for f in fields]


def _time_condition(start: Optional[datetime], end: Optional[datetime]) -> str:
    parts = []
    if start is not None:
        parts.append(f"time >= '{_fmt_time(start)}'")
    if end is not None:
        parts.append(f"time < '{_fmt_time(end)}'")
    return " AND ".join(parts)


def _tags_condition(tags: Dict[str, str]) -> str:
    return " AND ".join([f'"{_escape_ident(k)}" = \'{_escape_str(v)}\'' for k, v in tags.items()])


def _escape_ident(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _escape_str(value: str) -> str:
    return str(value).replace("\\", "\\\\").replace("'", "\\'")


def _fmt_time(value: datetime) -> str:
    if value.tzinfo is None:
        return value.isoformat() + "Z"
    return value.isoformat()
