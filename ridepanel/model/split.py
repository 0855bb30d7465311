# ridepanel/model/split.py

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator

import pandas as pd

from ridepanel.config import DEFAULT_MIN_STATION_ROWS, DEFAULT_TRAIN_FRACTION
from ridepanel.errors import InsufficientDataError, StationMismatchError
from ridepanel.panel.join import KEY


@dataclass(frozen=True, eq=False)
class TrainTestSplit:
    """
    train: first floor(fraction * N) hours of one station
    test:  the remaining hours, in time order
    """
    station_id: int
    train: pd.DataFrame
    test: pd.DataFrame

    @property
    def n_rows(self) -> int:
        return len(self.train) + len(self.test)


def iter_station_panels(panel: pd.DataFrame) -> Iterator[tuple[int, pd.DataFrame]]:
    ordered = panel.sort_values(KEY, kind="mergesort")
    for sid, rows in ordered.groupby("station_id", sort=True):
        yield int(sid), rows.reset_index(drop=True)


def split_station_panel(
    station_panel: pd.DataFrame,
    train_fraction: float = DEFAULT_TRAIN_FRACTION,
    min_rows: int = DEFAULT_MIN_STATION_ROWS,
) -> TrainTestSplit:
    """
    Chronological split of one station's rows. The cut is a row count, not a
    calendar date, and nothing is shuffled.
    """
    if not 0.0 < train_fraction < 1.0:
        raise ValueError("train_fraction must be within (0, 1)")

    stations = station_panel["station_id"].unique()
    if len(stations) > 1:
        raise StationMismatchError(f"Expected one station, got {sorted(stations.tolist())}")
    sid = int(stations[0]) if len(stations) else None

    n = len(station_panel)
    if n < min_rows:
        raise InsufficientDataError(sid, n, min_rows)

    cut = int(math.floor(train_fraction * n))
    if cut == 0 or cut == n:
        raise InsufficientDataError(sid, n, min_rows)

    ordered = station_panel.sort_values("hour", kind="mergesort").reset_index(drop=True)
    train = ordered.iloc[:cut].reset_index(drop=True)
    test = ordered.iloc[cut:].reset_index(drop=True)

    return TrainTestSplit(station_id=sid, train=train, test=test)
