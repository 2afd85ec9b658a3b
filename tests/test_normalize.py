"""Tests for turning vnstat records into UTC time points and frames."""

import pandas as pd
import pytest

from vnstatlogic import canon, normalize
from vnstatlogic.exceptions import DataIntegrityError
from vnstatlogic.schema import TrafficRecord


def test_month_record_defaults_to_first_day(rec):
    ts = normalize.to_time_point(rec(2024, 2, rx=1, tx=1), "months")
    assert ts == pd.Timestamp("2024-02-01T00:00:00Z")
    assert str(ts.tz) == "UTC"


def test_month_is_one_based(rec):
    # January from vnstat is January, not February
    assert normalize.to_time_point(rec(2024, 1), "months").month == 1
    assert normalize.to_time_point(rec(2024, 12), "months").month == 12


def test_day_record(rec):
    ts = normalize.to_time_point(rec(2024, 3, 1, rx=1), "days")
    assert ts == pd.Timestamp("2024-03-01T00:00:00Z")


def test_hour_comes_from_id(rec):
    record = TrafficRecord.model_validate(rec(2024, 3, 1, rx=1, id=13))
    ts = normalize.to_time_point(record, "hours")
    assert ts == pd.Timestamp("2024-03-01T13:00:00Z")


def test_id_is_ignored_outside_hours(rec):
    ts = normalize.to_time_point(rec(2024, 3, 1, id=13), "days")
    assert ts.hour == 0


def test_hour_record_without_id_fails(rec):
    with pytest.raises(DataIntegrityError):
        normalize.to_time_point(rec(2024, 3, 1), "hours")


@pytest.mark.parametrize(
    "raw",
    [
        {"date": {"year": 2024, "month": 13}, "rx": 1, "tx": 1},
        {"date": {"year": 2024, "month": 2, "day": 30}, "rx": 1, "tx": 1},
        {"date": {"month": 2}, "rx": 1, "tx": 1},
        {"date": {"year": 2024}, "rx": -1, "tx": 1},
    ],
)
def test_malformed_records_fail_explicitly(raw):
    with pytest.raises(DataIntegrityError):
        normalize.to_time_point(raw, "months")


def test_hour_out_of_range_fails(rec):
    with pytest.raises(DataIntegrityError):
        normalize.to_time_point(rec(2024, 3, 1, id=24), "hours")


def test_to_frame_sorts_and_keeps_counters(rec):
    df = normalize.to_frame(
        "eth0",
        [rec(2024, 3, 2, rx=2, tx=1), rec(2024, 3, 1, rx=5, tx=4)],
        "days",
    )
    assert df.index.name == canon.INDEX_NAME
    assert df.index.is_monotonic_increasing
    assert str(df.index.tz) == "UTC"
    assert list(df.columns) == canon.REQUIRED_COLS
    assert df["rx"].tolist() == [5, 2]
    assert (df["interface"] == "eth0").all()


def test_to_frame_empty():
    df = normalize.to_frame("eth0", [], "hours")
    assert df.empty
    assert str(df.index.tz) == "UTC"
    assert list(df.columns) == canon.REQUIRED_COLS


def test_normalize_interfaces(vnstat_doc):
    frames = normalize.normalize_interfaces(vnstat_doc.split("hours"), "hours")
    assert [f["interface"].iloc[0] for f in frames] == ["eth0", "wlan0"]
    assert frames[0].index[-1] == pd.Timestamp("2024-03-01T13:00:00Z")
