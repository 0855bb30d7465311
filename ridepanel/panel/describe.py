# ridepanel/panel/describe.py

from __future__ import annotations

import pandas as pd


def weekday_hour_profile(panel: pd.DataFrame) -> pd.DataFrame:
    """
    Mean rides per (station_id, day_of_week, hour_of_day).

    This is the table the demand heatmaps are drawn from. The mean is over
    every hour in the window, zero-ride hours included.
    """
    return (
        panel.groupby(["station_id", "day_of_week", "hour_of_day"], observed=True)
        .agg(mean_rides=("n_rides", "mean"), n_hours=("n_rides", "size"))
        .reset_index()
    )


def station_totals(panel: pd.DataFrame) -> pd.DataFrame:
    agg = dict(
        total_rides=("n_rides", "sum"),
        mean_rides=("n_rides", "mean"),
        zero_share=("n_rides", lambda s: float((s == 0).mean())),
        n_hours=("n_rides", "size"),
    )
    if "lon" in panel.columns and "lat" in panel.columns:
        agg.update(lon=("lon", "first"), lat=("lat", "first"))

    return (
        panel.groupby("station_id")
        .agg(**agg)
        .reset_index()
        .sort_values("total_rides", ascending=False)
        .reset_index(drop=True)
    )
