from __future__ import annotations
from typing import Any, Dict, Iterable, Mapping, Optional

import numpy as np
import pandas as pd
import structlog

from . import canon
from .constraints import DatetimeBound
from .types import Granularity, TrafficFrame, TrafficPayload, TrafficTotals, Unit, Window

logger = structlog.get_logger()


def truncate_index(idx: pd.DatetimeIndex, unit: Unit) -> pd.DatetimeIndex:
    """Floor each timestamp to the start of its year/month/day/hour (UTC)."""
    idx = pd.DatetimeIndex(idx)
    if idx.tz is None:
        idx = idx.tz_localize(canon.TZ)
    else:
        idx = idx.tz_convert(canon.TZ)
    if unit in canon.FLOOR_FREQ:
        return idx.floor(canon.FLOOR_FREQ[unit])
    # calendar units: go through periods on the naive UTC wall clock
    naive = idx.tz_localize(None)
    out = naive.to_period(canon.PERIOD_FREQ[unit]).to_timestamp()
    return pd.DatetimeIndex(out).tz_localize(canon.TZ).rename(idx.name)


def truncate(ts: pd.Timestamp, unit: Unit) -> pd.Timestamp:
    return truncate_index(pd.DatetimeIndex([ts]), unit)[0]


def window(payload: Mapping[str, Any], granularity: Granularity) -> Window:
    """
    Parse and truncate the request boundaries.

    Expects a payload that already passed the granularity's rules.
    """
    start = truncate(DatetimeBound.parse(payload["startDate"]), granularity.unit)
    stop: Optional[pd.Timestamp] = None
    if payload.get("stopDate"):
        stop = truncate(DatetimeBound.parse(payload["stopDate"]), granularity.unit)
    return Window(start=start, stop=stop)


def _in_range(
    frames: Iterable[TrafficFrame], unit: Unit, start: pd.Timestamp, stop: pd.Timestamp
) -> pd.DataFrame:
    parts = []
    for df in frames:
        points = truncate_index(pd.DatetimeIndex(df.index), unit)
        # [start, stop)
        mask = np.asarray((points >= start) & (points < stop))
        sel = df.loc[mask, ["rx", "tx"]].copy()
        sel.index = points[mask]
        parts.append(sel.sort_index(kind="stable"))
    if not parts:
        return pd.DataFrame(
            {"rx": pd.Series(dtype="int64"), "tx": pd.Series(dtype="int64")},
            index=pd.DatetimeIndex([], tz=canon.TZ, name=canon.INDEX_NAME),
        )
    return pd.concat(parts).sort_index(kind="stable")


def _range_traffic(
    frames: Iterable[TrafficFrame],
    granularity: Granularity,
    start: pd.Timestamp,
    stop: pd.Timestamp,
) -> Dict[str, TrafficTotals]:
    selected = _in_range(frames, granularity.unit, start, stop)
    if selected.empty:
        return {}
    labels = pd.DatetimeIndex(selected.index).strftime(granularity.label_format)
    # interfaces sharing a label are summed, not overwritten
    totals = selected.groupby(np.asarray(labels), sort=False)[["rx", "tx"]].sum()
    return {
        str(label): {"rx": int(row["rx"]), "tx": int(row["tx"])}
        for label, row in totals.iterrows()
    }


def _single_traffic(
    frames: Iterable[TrafficFrame], granularity: Granularity, start: pd.Timestamp
) -> Dict[str, TrafficTotals]:
    label = start.strftime(granularity.label_format)
    traffic: Dict[str, TrafficTotals] = {}
    for df in frames:
        points = truncate_index(pd.DatetimeIndex(df.index), granularity.unit)
        sel = df.loc[np.asarray(points == start)]
        acc = traffic.setdefault(label, {"rx": 0, "tx": 0})
        acc["rx"] += int(sel["rx"].sum())
        acc["tx"] += int(sel["tx"].sum())
    return traffic


def aggregate(
    frames: Iterable[TrafficFrame],
    granularity: Granularity,
    start: pd.Timestamp,
    stop: Optional[pd.Timestamp] = None,
) -> TrafficPayload:
    """
    Sum rx/tx across interfaces into buckets labelled by granularity.

    - stop given: every bucket in [start, stop), in ascending order.
    - stop absent: the single bucket equal to start; interfaces with no
      matching record contribute zeros.
    """
    frames = list(frames)
    start = truncate(start, granularity.unit)
    if stop is not None:
        stop = truncate(stop, granularity.unit)
        traffic = _range_traffic(frames, granularity, start, stop)
    else:
        traffic = _single_traffic(frames, granularity, start)

    payload: TrafficPayload = {
        "traffic": traffic,
        "precision": granularity.precision,
        "startDate": start.strftime(granularity.label_format),
    }
    if stop is not None:
        payload["stopDate"] = stop.strftime(granularity.label_format)

    logger.debug(
        "traffic_aggregated",
        precision=granularity.precision,
        interfaces=len(frames),
        buckets=len(traffic),
        mode="range" if stop is not None else "single",
    )
    return payload
