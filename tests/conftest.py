import json
import logging

import pytest
import structlog

from vnstatlogic.schema import VnStatDocument


def _rec(year, month, day=None, rx=0, tx=0, id=None):
    date = {"year": year, "month": month}
    if day is not None:
        date["day"] = day
    out = {"date": date, "rx": rx, "tx": tx}
    if id is not None:
        out["id"] = id
    return out


@pytest.fixture(autouse=True, scope="session")
def _quiet_structlog():
    # unconfigured structlog prints to stdout, which the CLI tests read
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.CRITICAL)
    )
    yield
    structlog.reset_defaults()


@pytest.fixture
def rec():
    return _rec


@pytest.fixture
def vnstat_raw():
    # Two interfaces, jsonversion 1 layout
    return {
        "vnstatversion": "1.18",
        "jsonversion": "1",
        "interfaces": [
            {
                "id": "eth0",
                "nick": "eth0",
                "traffic": {
                    "total": {"rx": 1000, "tx": 500},
                    "months": [
                        _rec(2024, 1, rx=100, tx=10, id=0),
                        _rec(2024, 2, rx=200, tx=20, id=1),
                        _rec(2024, 3, rx=300, tx=30, id=2),
                        _rec(2024, 4, rx=400, tx=40, id=3),
                    ],
                    "days": [
                        _rec(2024, 3, 1, rx=100, tx=50, id=0),
                        _rec(2024, 3, 2, rx=10, tx=5, id=1),
                    ],
                    "hours": [
                        _rec(2024, 3, 1, rx=7, tx=3, id=0),
                        _rec(2024, 3, 1, rx=8, tx=4, id=13),
                    ],
                },
            },
            {
                "id": "wlan0",
                "traffic": {
                    "months": [
                        _rec(2023, 12, rx=1, tx=1, id=0),
                        _rec(2024, 2, rx=5, tx=5, id=1),
                    ],
                    "days": [_rec(2024, 3, 2, rx=10, tx=5, id=0)],
                    "hours": [_rec(2024, 3, 1, rx=2, tx=1, id=13)],
                },
            },
        ],
    }


@pytest.fixture
def vnstat_doc(vnstat_raw):
    return VnStatDocument.model_validate(vnstat_raw)


@pytest.fixture
def vnstat_json(vnstat_raw):
    return json.dumps(vnstat_raw)


class StubCollector:
    """Stands in for VnStatCollector; records the modes it was asked for."""

    def __init__(self, doc=None, exc=None):
        self.doc = doc
        self.exc = exc
        self.modes = []

    def fetch(self, mode):
        self.modes.append(mode)
        if self.exc is not None:
            raise self.exc
        return self.doc


@pytest.fixture
def stub_collector(vnstat_doc):
    return StubCollector(vnstat_doc)


@pytest.fixture
def make_collector():
    return StubCollector
