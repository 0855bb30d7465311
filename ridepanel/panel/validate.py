# ridepanel/panel/validate.py

from __future__ import annotations

import numpy as np
import pandas as pd

from ridepanel.errors import DuplicateKeyError, GapOrOverlapError
from ridepanel.panel.grid import ONE_HOUR
from ridepanel.panel.join import KEY


def check_unique_keys(panel: pd.DataFrame) -> None:
    """Exactly one row per (station_id, hour)."""
    dup = panel.duplicated(subset=KEY, keep=False)
    if dup.any():
        keys = (
            panel.loc[dup, KEY]
            .drop_duplicates()
            .sort_values(KEY)
            .itertuples(index=False, name=None)
        )
        raise DuplicateKeyError(keys)


def check_contiguous_hours(panel: pd.DataFrame) -> None:
    """
    Each station's hours, once sorted, must step by exactly one hour.
    Reports the first break of the lowest offending station.
    """
    ordered = panel[KEY].sort_values(KEY, kind="mergesort").reset_index(drop=True)
    step = ordered.groupby("station_id", sort=False)["hour"].diff()

    # first row per station has no predecessor (NaT)
    bad = step.notna() & (step != ONE_HOUR)
    if bad.any():
        pos = int(np.flatnonzero(bad.to_numpy())[0])
        row = ordered.iloc[pos]
        prev = ordered.iloc[pos - 1]
        raise GapOrOverlapError(int(row["station_id"]), prev["hour"], row["hour"])


def validate_panel(panel: pd.DataFrame) -> pd.DataFrame:
    """
    Runs both structural checks, uniqueness first. Read-only: the panel is
    returned untouched so the call can sit inline in a pipeline.
    """
    check_unique_keys(panel)
    check_contiguous_hours(panel)
    return panel
