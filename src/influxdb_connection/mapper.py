"""Map InfluxQL query results onto dataclass records."""

from __future__ import annotations

from dataclasses import MISSING, field, fields, is_dataclass
from datetime import datetime, timezone
from typing import (
    Any,
    Dict,
    Iterable,
    List,
    Optional,
    Type,
    TypeVar,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)
from types import UnionType
import logging

import pandas as pd

from .exceptions import InfluxDBQueryError, MappingError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_COLUMN_KEY = "influx_column"
_EPOCH_UNITS = {"n": "ns", "u": "us", "ms": "ms", "s": "s"}


def column(name: str, default: Any = None) -> Any:
    """Declare a record field that reads from a differently named column."""
    return field(default=default, metadata={_COLUMN_KEY: name})


def measurement_of(record_type: type) -> str:
    name = getattr(record_type, "__measurement__", None)
    if not name:
        raise MappingError(f"{record_type.__name__} does not declare __measurement__")
    return str(name)


class ResultMapper:
    """Turn a result set into a list of typed records.

    Record types are dataclasses with a ``__measurement__`` class attribute.
    Each row of every series named like the measurement becomes one record,
    in the order the server returned them.
    """

    def __init__(self, epoch: Optional[str] = None) -> None:
        if epoch is not None and epoch not in _EPOCH_UNITS:
            raise ValueError(f"Unsupported epoch precision: {epoch}")
        self.epoch = epoch

    def to_records(self, result: Any, record_type: Type[T], measurement: Optional[str] = None) -> List[T]:
        if not is_dataclass(record_type) or not isinstance(record_type, type):
            raise MappingError(f"{record_type!r} is not a dataclass type")
        name = measurement or measurement_of(record_type)
        if isinstance(result, list):
            # One result set per statement of a multi-statement command.
            records = []
            for statement in result:
                records.extend(self.to_records(statement, record_type, measurement=name))
            return records
        error = result.get("error") if isinstance(result, dict) else getattr(result, "error", None)
        if error:
            raise InfluxDBQueryError(str(error))

        hints = get_type_hints(record_type)
        columns = {
            f.name: f.metadata.get(_COLUMN_KEY, f.name) for f in fields(record_type) if f.init
        }
        records = []
        for row in _rows(result, name):
            kwargs = {}
            for attr, col in columns.items():
                if col not in row:
                    continue
                kwargs[attr] = self._convert(row[col], hints.get(attr), attr)
            records.append(record_type(**_with_defaults(record_type, kwargs)))
        logger.debug("Mapped %d %s records", len(records), record_type.__name__)
        return records

    def _convert(self, value: Any, hint: Any, attr: str) -> Any:
        if value is None:
            return None
        target = _unwrap_optional(hint)
        try:
            if target is datetime:
                return self._to_datetime(value)
            if target is bool:
                return value if isinstance(value, bool) else str(value).lower() == "true"
            if target in (int, float, str):
                return target(value)
        except (TypeError, ValueError) as exc:
            raise MappingError(f"Cannot convert column for '{attr}' value {value!r}: {exc}") from exc
        return value

    def _to_datetime(self, value: Any) -> datetime:
        if isinstance(value, datetime):
            return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            unit = _EPOCH_UNITS[self.epoch or "ms"]
            return pd.to_datetime(value, unit=unit, utc=True).to_pydatetime()
        return pd.to_datetime(value, utc=True).to_pydatetime()


def _rows(result: Any, measurement: str) -> Iterable[Dict[str, Any]]:
    if hasattr(result, "get_points"):
        return result.get_points(measurement=measurement)
    # Raw JSON response body.
    rows = []
    for statement in result.get("results", [result]):
        if statement.get("error"):
            raise InfluxDBQueryError(str(statement["error"]))
        for series in statement.get("series", []):
            if series.get("name") != measurement:
                continue
            cols = series.get("columns", [])
            for values in series.get("values", []):
                rows.append(dict(zip(cols, values)))
    return rows


def _unwrap_optional(hint: Any) -> Any:
    if get_origin(hint) in (Union, UnionType):
        args = [a for a in get_args(hint) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def _with_defaults(record_type: type, kwargs: Dict[str, Any]) -> Dict[str, Any]:
    for f in fields(record_type):
        if not f.init or f.name in kwargs:
            continue
        if f.default is MISSING and f.default_factory is MISSING:
            kwargs[f.name] = None
    return kwargs
