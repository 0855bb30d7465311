# ridepanel/panel/hourly.py

from __future__ import annotations

import pandas as pd

from ridepanel.errors import EmptyInputError
from ridepanel.util.stations import normalize_station_ids


def hour_bucket(ts: pd.Series) -> pd.Series:
    # calendar truncation: 00:59:59 belongs to 00:00, never rounded up
    return pd.to_datetime(ts).dt.floor("h")


def aggregate_hourly_counts(trips_df: pd.DataFrame) -> pd.DataFrame:
    """
    Counts departures per (station_id, hour).

    trips_df must have:
      - start_station_id (normalized to StationKey here)
      - started_at

    Only observed (station, hour) groups appear in the output. Every record is
    counted, so two identical records in the same hour give n_rides == 2.
    """
    if trips_df is None or len(trips_df) == 0:
        raise EmptyInputError("No trip records to aggregate")

    keyed = pd.DataFrame(
        {
            "station_id": normalize_station_ids(trips_df["start_station_id"]),
            "hour": hour_bucket(trips_df["started_at"]),
        }
    )

    counts = (
        keyed.groupby(["station_id", "hour"], sort=True)
        .size()
        .rename("n_rides")
        .reset_index()
    )
    counts["n_rides"] = counts["n_rides"].astype("int64")

    return counts
