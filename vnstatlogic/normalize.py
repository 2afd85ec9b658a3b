from __future__ import annotations
from typing import Any, Iterable, Mapping

import numpy as np
import pandas as pd
from pydantic import ValidationError

from . import canon
from .exceptions import DataIntegrityError, require
from .schema import TrafficRecord
from .types import TrafficFrame, VnStatUnit


def _as_record(record: TrafficRecord | Mapping[str, Any]) -> TrafficRecord:
    if isinstance(record, TrafficRecord):
        return record
    try:
        return TrafficRecord.model_validate(record)
    except ValidationError as e:
        raise DataIntegrityError(f"Malformed traffic record {record!r}: {e}") from e


def to_time_point(
    record: TrafficRecord | Mapping[str, Any], unit: VnStatUnit
) -> pd.Timestamp:
    """
    UTC instant a vnstat record describes.

    Months are 1-based in vnstat and in datetime, so they pass straight
    through. Hour records carry the hour of day in `id`, not in `date`.
    """
    rec = _as_record(record)
    d = rec.date
    hour = 0
    if unit == canon.HOURLY_UNIT:
        require(
            rec.id is not None,
            f"Hour record without an hour id: {d.model_dump()}",
            DataIntegrityError,
        )
        hour = int(rec.id)  # type: ignore[arg-type]
    try:
        return pd.Timestamp(
            year=d.year, month=d.month, day=d.day, hour=hour, tz=canon.TZ
        )
    except (ValueError, OverflowError) as e:
        raise DataIntegrityError(
            f"Invalid {unit} record date {d.model_dump()} (hour={hour}): {e}"
        ) from e


def to_frame(
    interface: str,
    records: Iterable[TrafficRecord | Mapping[str, Any]],
    unit: VnStatUnit,
) -> TrafficFrame:
    """Build a TrafficFrame for one interface, sorted by time point."""
    recs = [_as_record(r) for r in records]
    idx = pd.DatetimeIndex(
        [to_time_point(r, unit) for r in recs], tz=canon.TZ, name=canon.INDEX_NAME
    )
    df = pd.DataFrame(
        {
            "interface": interface,
            "rx": np.asarray([r.rx for r in recs], dtype="int64"),
            "tx": np.asarray([r.tx for r in recs], dtype="int64"),
        },
        index=idx,
        columns=canon.REQUIRED_COLS,
    )
    df = df.sort_index(kind="stable")
    df.__class__ = TrafficFrame
    return df  # type: ignore[return-value]


def normalize_interfaces(
    interfaces: Iterable[tuple[str, Iterable[TrafficRecord | Mapping[str, Any]]]]
    | Mapping[str, Iterable[TrafficRecord | Mapping[str, Any]]],
    unit: VnStatUnit,
) -> list[TrafficFrame]:
    """One frame per (interface, records) pair; a mapping is taken by items."""
    pairs = interfaces.items() if isinstance(interfaces, Mapping) else interfaces
    return [to_frame(name, recs, unit) for name, recs in pairs]
