from __future__ import annotations

import pandas as pd
import pytest


def make_trips(rows) -> pd.DataFrame:
    """rows: iterable of (station_id, started_at[, lon, lat])"""
    records = []
    for row in rows:
        sid, ts = row[0], row[1]
        lon = row[2] if len(row) > 2 else -73.98
        lat = row[3] if len(row) > 3 else 40.75
        records.append(
            {
                "start_station_id": sid,
                "started_at": pd.Timestamp(ts),
                "start_station_longitude": lon,
                "start_station_latitude": lat,
            }
        )
    df = pd.DataFrame(records)
    df["start_station_id"] = df["start_station_id"].astype("int64")
    return df


@pytest.fixture
def two_station_trips() -> pd.DataFrame:
    return make_trips([(1, "2024-01-01 00:30:00")] + [(2, "2024-01-05 10:00:00")])
