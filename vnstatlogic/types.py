from __future__ import annotations
from typing import TYPE_CHECKING, Dict, List, Literal, Optional, TypedDict
from dataclasses import dataclass

import pandas as pd

if TYPE_CHECKING:
    from .constraints import RuleSet

Unit = Literal["year", "month", "day", "hour"]
VnStatMode = Literal["m", "d", "h"]
VnStatUnit = Literal["months", "days", "hours"]
Precision = Literal["Year", "Month", "Day", "Hour"]

# field -> ordered failure messages; None means the payload passed
ValidationResult = Optional[Dict[str, List[str]]]


# Canon DataFrame
class TrafficFrame(pd.DataFrame):
    """
    Normalised per-interface traffic dataframe.

    Expected:
      - DatetimeIndex named 't_start', tz-aware (UTC), sorted ascending
      - Columns: ['interface', 'rx', 'tx']
    """

    @property
    def _constructor(self):
        return TrafficFrame

    @property
    def interface(self) -> pd.Series:
        return self["interface"]

    @property
    def rx(self) -> pd.Series:
        return self["rx"]

    @property
    def tx(self) -> pd.Series:
        return self["tx"]


class TrafficTotals(TypedDict):
    rx: int
    tx: int


class _TrafficPayloadBase(TypedDict):
    traffic: Dict[str, TrafficTotals]
    precision: Precision
    startDate: str


class TrafficPayload(_TrafficPayloadBase, total=False):
    stopDate: str


@dataclass(frozen=True)
class Granularity:
    """Everything one of the four endpoints needs to answer a request."""

    name: str  # path suffix: "years" | "months" | "days" | "hours"
    unit: Unit  # truncation unit
    label_format: str  # strftime format for bucket labels
    vnstat_mode: VnStatMode
    vnstat_unit: VnStatUnit
    precision: Precision
    rules: "RuleSet"


@dataclass(frozen=True)
class Window:
    start: pd.Timestamp
    stop: Optional[pd.Timestamp] = None

    @property
    def is_range(self) -> bool:
        return self.stop is not None
