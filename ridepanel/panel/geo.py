# ridepanel/panel/geo.py

from __future__ import annotations

import pandas as pd


def station_centroids(trips_df: pd.DataFrame) -> pd.DataFrame:
    """
    Mean start coordinates per station.

    Returns columns: station_id, lon, lat
    """
    return (
        trips_df.groupby("start_station_id")
        .agg(
            lon=("start_station_longitude", "mean"),
            lat=("start_station_latitude", "mean"),
        )
        .rename_axis("station_id")
        .reset_index()
    )


def attach_centroids(panel: pd.DataFrame, centroids: pd.DataFrame) -> pd.DataFrame:
    # stations with no trips keep NaN coordinates
    out = panel.drop(columns=["lon", "lat"], errors="ignore")
    out = out.merge(centroids[["station_id", "lon", "lat"]], on="station_id", how="left", validate="many_to_one")
    return out
