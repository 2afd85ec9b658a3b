from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from .types import VnStatUnit


class RecordDate(BaseModel):
    model_config = ConfigDict(frozen=True)

    year: int
    month: int = 1  # 1-based, as vnstat writes it
    day: int = 1


class TrafficRecord(BaseModel):
    """One vnstat bucket for one interface."""

    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None  # hour of day for "hours" records
    date: RecordDate
    rx: int = Field(ge=0)
    tx: int = Field(ge=0)


class InterfaceTraffic(BaseModel):
    months: list[TrafficRecord] = Field(default_factory=list)
    days: list[TrafficRecord] = Field(default_factory=list)
    hours: list[TrafficRecord] = Field(default_factory=list)


class VnStatInterface(BaseModel):
    id: str
    nick: Optional[str] = None
    traffic: InterfaceTraffic = Field(default_factory=InterfaceTraffic)


class VnStatDocument(BaseModel):
    """The subset of `vnstat --json` (jsonversion 1) we consume."""

    vnstatversion: Optional[str] = None
    jsonversion: Optional[str] = None
    interfaces: list[VnStatInterface] = Field(default_factory=list)

    def split(self, unit: VnStatUnit) -> list[tuple[str, list[TrafficRecord]]]:
        """(interface id, records) per interface, in document order; duplicate ids stay separate."""
        return [(intf.id, list(getattr(intf.traffic, unit))) for intf in self.interfaces]
