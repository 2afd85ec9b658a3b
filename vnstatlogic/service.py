"""Path dispatch and the validate -> collect -> normalize -> aggregate pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol

import structlog

from . import aggregate, canon, constraints, normalize
from .exceptions import CollectorError, DataIntegrityError
from .schema import VnStatDocument
from .types import Granularity, VnStatMode

logger = structlog.get_logger()

DAY_FORMAT = "%Y-%m-%d"
HOUR_FORMAT = "%Y-%m-%dT%H:00:00Z"

GRANULARITIES: Dict[str, Granularity] = {
    # vnstat has no year table; years are reduced from months
    "years": Granularity(
        name="years",
        unit="year",
        label_format=DAY_FORMAT,
        vnstat_mode="m",
        vnstat_unit="months",
        precision="Year",
        rules=constraints.YEAR_RULES,
    ),
    "months": Granularity(
        name="months",
        unit="month",
        label_format=DAY_FORMAT,
        vnstat_mode="m",
        vnstat_unit="months",
        precision="Month",
        rules=constraints.MONTH_RULES,
    ),
    "days": Granularity(
        name="days",
        unit="day",
        label_format=DAY_FORMAT,
        vnstat_mode="d",
        vnstat_unit="days",
        precision="Day",
        rules=constraints.DAY_RULES,
    ),
    "hours": Granularity(
        name="hours",
        unit="hour",
        label_format=HOUR_FORMAT,
        vnstat_mode="h",
        vnstat_unit="hours",
        precision="Hour",
        rules=constraints.HOUR_RULES,
    ),
}


class Collector(Protocol):
    def fetch(self, mode: VnStatMode) -> VnStatDocument: ...


@dataclass
class ServiceResponse:
    status: int
    payload: Any = field(default=None)


def normalize_api_path(api_path: Optional[str]) -> str:
    """Strip trailing slashes; fall back to the default prefix when empty."""
    path = (api_path or canon.DEFAULT_API_PATH).rstrip("/")
    return path or canon.DEFAULT_API_PATH


class TrafficService:
    def __init__(self, collector: Collector, api_path: Optional[str] = None):
        self.collector = collector
        self.api_path = normalize_api_path(api_path)

    def owns(self, path: str) -> bool:
        return path == self.api_path or path.startswith(f"{self.api_path}/")

    def resolve(self, path: str) -> Optional[Granularity]:
        if not path.startswith(f"{self.api_path}/"):
            return None
        return GRANULARITIES.get(path[len(self.api_path) + 1 :])

    def query(
        self, granularity: Granularity, body: Mapping[str, Any]
    ) -> ServiceResponse:
        failures = constraints.validate(body, granularity.rules)
        if failures:
            return ServiceResponse(400, failures)

        bounds = aggregate.window(body, granularity)
        try:
            doc = self.collector.fetch(granularity.vnstat_mode)
            frames = normalize.normalize_interfaces(
                doc.split(granularity.vnstat_unit), granularity.vnstat_unit
            )
        except (CollectorError, DataIntegrityError) as e:
            logger.error(
                "traffic_query_failed", precision=granularity.precision, error=str(e)
            )
            return ServiceResponse(500, {"error": str(e)})

        payload = aggregate.aggregate(frames, granularity, bounds.start, bounds.stop)
        return ServiceResponse(200, payload)

    def handle(self, path: str, body: Any) -> Optional[ServiceResponse]:
        """
        Answer a request for `path`.

        Returns None when the path is outside the API prefix so the caller
        can hand it to someone else.
        """
        if not self.owns(path):
            return None
        granularity = self.resolve(path)
        if granularity is None:
            return ServiceResponse(404)
        if not isinstance(body, Mapping):
            return ServiceResponse(400, {"error": "Request body must be a JSON object."})
        return self.query(granularity, body)
