# ridepanel/panel/grid.py

from __future__ import annotations

from typing import Iterable

import pandas as pd

from ridepanel.errors import EmptyInputError


ONE_HOUR = pd.Timedelta(hours=1)


def hour_range(start, end) -> pd.DatetimeIndex:
    """
    Inclusive hourly range [start, end]. Both ends must sit on an hour boundary.
    """
    start = pd.Timestamp(start)
    end = pd.Timestamp(end)

    if start != start.floor("h") or end != end.floor("h"):
        raise ValueError("Grid bounds must be aligned to the hour")
    if end < start:
        raise ValueError(f"Inverted hour range: {start} > {end}")

    return pd.date_range(start=start, end=end, freq="h", name="hour")


def build_time_grid(station_ids: Iterable[int], start, end) -> pd.DataFrame:
    """
    Skeleton of the panel: one row per (station_id, hour) for every station
    and every hour in [start, end], sorted by station then hour.
    """
    stations = sorted({int(s) for s in station_ids})
    if not stations:
        raise EmptyInputError("Cannot build a time grid without stations")

    hours = hour_range(start, end)

    idx = pd.MultiIndex.from_product([stations, hours], names=["station_id", "hour"])
    grid = idx.to_frame(index=False)
    grid["station_id"] = grid["station_id"].astype("int64")

    return grid
