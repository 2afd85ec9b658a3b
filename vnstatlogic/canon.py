from __future__ import annotations
from typing import Final, Dict

INDEX_NAME: Final[str] = "t_start"
REQUIRED_COLS: Final[list[str]] = ["interface", "rx", "tx"]
TZ: Final[str] = "UTC"

DEFAULT_API_PATH: Final[str] = "/vnstat"

# earliest accepted startDate / stopDate
EPOCH_FLOOR: Final[str] = "2018-01-01"

# records of this unit carry the hour of day in `id`
HOURLY_UNIT: Final[str] = "hours"

# pandas floor aliases for the units that floor cleanly
FLOOR_FREQ: Dict[str, str] = {
    "day": "D",
    "hour": "h",
}

# pandas period aliases for calendar units
PERIOD_FREQ: Dict[str, str] = {
    "year": "Y",
    "month": "M",
}
