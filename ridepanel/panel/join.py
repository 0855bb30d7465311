# ridepanel/panel/join.py

from __future__ import annotations

import pandas as pd

from ridepanel.errors import DuplicateKeyError


KEY = ["station_id", "hour"]

DAY_NAMES = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]
HOURS_OF_DAY = list(range(24))


def _duplicate_keys(df: pd.DataFrame) -> list[tuple]:
    dup = df.duplicated(subset=KEY, keep="first")
    return list(df.loc[dup, KEY].itertuples(index=False, name=None))


def join_counts(skeleton: pd.DataFrame, counts: pd.DataFrame) -> pd.DataFrame:
    """
    Left join hourly counts onto the skeleton.

    Every skeleton row appears exactly once. Hours with no observed trips get
    n_rides = 0; the fill is limited to n_rides so any other nullable column
    joined in later keeps its NaNs.
    """
    dups = _duplicate_keys(counts)
    if dups:
        # would fan out the join
        raise DuplicateKeyError(dups)

    panel = skeleton[KEY].merge(counts[KEY + ["n_rides"]], on=KEY, how="left", validate="many_to_one")
    panel["n_rides"] = panel["n_rides"].fillna(0).astype("int64")

    if len(panel) != len(skeleton):
        raise AssertionError(f"Join changed row count: {len(skeleton)} -> {len(panel)}")

    return panel


def count_outside_grid(skeleton: pd.DataFrame, counts: pd.DataFrame) -> int:
    """Number of trips whose (station, hour) key has no skeleton row."""
    keys = counts[KEY].merge(skeleton[KEY], on=KEY, how="left", indicator=True)
    outside = keys["_merge"].eq("left_only").to_numpy()
    return int(counts.loc[outside, "n_rides"].sum())


def add_calendar_features(panel: pd.DataFrame) -> pd.DataFrame:
    out = panel.copy()
    out["hour_of_day"] = out["hour"].dt.hour.astype("int64")
    out["day_of_week"] = pd.Categorical(
        out["hour"].dt.day_name(),
        categories=DAY_NAMES,
        ordered=False,
    )
    return out
