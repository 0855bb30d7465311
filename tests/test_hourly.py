from __future__ import annotations

import pandas as pd
import pytest

from conftest import make_trips
from ridepanel.errors import EmptyInputError
from ridepanel.panel.hourly import aggregate_hourly_counts


def test_truncates_to_the_hour_not_rounds() -> None:
    trips = make_trips([(1, "2024-01-01 00:59:59"), (1, "2024-01-01 01:00:00")])

    counts = aggregate_hourly_counts(trips)

    assert counts["hour"].tolist() == [
        pd.Timestamp("2024-01-01 00:00"),
        pd.Timestamp("2024-01-01 01:00"),
    ]
    assert counts["n_rides"].tolist() == [1, 1]


def test_duplicate_records_are_counted() -> None:
    trips = make_trips([(4, "2024-01-01 08:15:00"), (4, "2024-01-01 08:15:00")])

    counts = aggregate_hourly_counts(trips)

    assert len(counts) == 1
    assert counts["n_rides"].iloc[0] == 2


def test_unobserved_hours_are_absent() -> None:
    trips = make_trips([(1, "2024-01-01 00:10"), (2, "2024-01-01 05:10")])

    counts = aggregate_hourly_counts(trips)

    assert list(map(tuple, counts[["station_id", "n_rides"]].values)) == [(1, 1), (2, 1)]


def test_no_records() -> None:
    with pytest.raises(EmptyInputError):
        aggregate_hourly_counts(pd.DataFrame(columns=["start_station_id", "started_at"]))


def test_float_station_ids_are_normalized() -> None:
    trips = make_trips([(3, "2024-01-01 00:10")]).assign(start_station_id=[3.0])

    counts = aggregate_hourly_counts(trips)

    assert counts["station_id"].tolist() == [3]
    assert counts["station_id"].dtype == "int64"


def test_non_integral_station_id_is_rejected() -> None:
    trips = make_trips([(3, "2024-01-01 00:10")]).assign(start_station_id=[7.6])

    with pytest.raises(ValueError, match="not integer-valued"):
        aggregate_hourly_counts(trips)
