from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from conftest import make_trips
from ridepanel.errors import DuplicateKeyError
from ridepanel.panel.grid import build_time_grid
from ridepanel.panel.hourly import aggregate_hourly_counts
from ridepanel.panel.join import add_calendar_features, count_outside_grid, join_counts


def test_two_station_three_hour_scenario() -> None:
    trips = make_trips([(1, "2024-01-01 00:30:00")])
    skeleton = build_time_grid([1, 2], "2024-01-01 00:00", "2024-01-01 02:00")

    panel = join_counts(skeleton, aggregate_hourly_counts(trips))

    assert len(panel) == 6
    assert panel.loc[panel["station_id"] == 1, "n_rides"].tolist() == [1, 0, 0]
    assert panel.loc[panel["station_id"] == 2, "n_rides"].tolist() == [0, 0, 0]


def test_join_is_total_and_zero_filled() -> None:
    skeleton = build_time_grid([1, 2, 3], "2024-01-01 00:00", "2024-01-02 23:00")
    trips = make_trips([(2, "2024-01-01 13:05"), (3, "2024-01-02 23:59")])

    panel = join_counts(skeleton, aggregate_hourly_counts(trips))

    assert len(panel) == len(skeleton)
    assert panel["n_rides"].notna().all()
    assert panel["n_rides"].dtype == np.int64
    assert panel["n_rides"].sum() == 2


def test_counts_outside_grid_are_dropped_and_reported() -> None:
    skeleton = build_time_grid([1], "2024-01-01 00:00", "2024-01-01 01:00")
    counts = aggregate_hourly_counts(
        make_trips([(1, "2024-01-01 00:05"), (1, "2024-03-01 00:05"), (9, "2024-01-01 00:05")])
    )

    panel = join_counts(skeleton, counts)

    assert panel["n_rides"].tolist() == [1, 0]
    assert count_outside_grid(skeleton, counts) == 2


def test_duplicate_count_keys_would_fan_out() -> None:
    skeleton = build_time_grid([1], "2024-01-01 00:00", "2024-01-01 01:00")
    counts = pd.DataFrame(
        {
            "station_id": [1, 1],
            "hour": [pd.Timestamp("2024-01-01 00:00")] * 2,
            "n_rides": [1, 1],
        }
    )

    with pytest.raises(DuplicateKeyError):
        join_counts(skeleton, counts)


def test_fill_is_limited_to_ride_counts() -> None:
    skeleton = build_time_grid([1], "2024-01-01 00:00", "2024-01-01 01:00")
    skeleton["temp_c"] = [np.nan, 3.0]
    counts = aggregate_hourly_counts(make_trips([(1, "2024-01-01 01:30")]))

    panel = join_counts(skeleton, counts).merge(skeleton, on=["station_id", "hour"])

    assert panel["n_rides"].tolist() == [0, 1]
    assert np.isnan(panel["temp_c"].iloc[0])


def test_calendar_features() -> None:
    skeleton = build_time_grid([1], "2024-01-06 22:00", "2024-01-07 01:00")
    panel = add_calendar_features(join_counts(skeleton, skeleton.assign(n_rides=0).iloc[0:0]))

    assert panel["hour_of_day"].tolist() == [22, 23, 0, 1]
    assert panel["day_of_week"].astype(str).tolist() == ["Saturday", "Saturday", "Sunday", "Sunday"]
    assert list(panel["day_of_week"].cat.categories)[0] == "Monday"
    assert len(panel["day_of_week"].cat.categories) == 7
