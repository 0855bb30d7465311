# ridepanel/config.py
from __future__ import annotations

from dataclasses import dataclass

import pandas as pd


# Analysis window, both ends inclusive hour buckets.
DEFAULT_WINDOW_START = pd.Timestamp("2024-01-01 00:00")
DEFAULT_WINDOW_END = pd.Timestamp("2024-12-19 23:00")

# Chronological split: first 75% of each station's hours train, the rest test.
DEFAULT_TRAIN_FRACTION = 0.75
DEFAULT_MIN_STATION_ROWS = 2

DEFAULT_N_JOBS = 4

# Offset-bearing timestamps (e.g. "2024-01-01 00:30:12+00:00") are converted to
# this zone and made naive; naive timestamps are taken as already local.
DEFAULT_TIMEZONE = "UTC"


@dataclass(frozen=True)
class PipelineConfig:
    window_start: pd.Timestamp = DEFAULT_WINDOW_START
    window_end: pd.Timestamp = DEFAULT_WINDOW_END
    train_fraction: float = DEFAULT_TRAIN_FRACTION
    min_station_rows: int = DEFAULT_MIN_STATION_ROWS
    n_jobs: int = DEFAULT_N_JOBS
    strict_levels: bool = False
    timezone: str = DEFAULT_TIMEZONE
    verbose: bool = True

    def __post_init__(self):
        start = pd.Timestamp(self.window_start)
        end = pd.Timestamp(self.window_end)
        # frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "window_start", start)
        object.__setattr__(self, "window_end", end)

        if end < start:
            raise ValueError("window_end must be >= window_start")
        if start != start.floor("h") or end != end.floor("h"):
            raise ValueError("window_start/window_end must be aligned to the hour")
        if not 0.0 < float(self.train_fraction) < 1.0:
            raise ValueError("train_fraction must be within (0, 1)")
        if int(self.min_station_rows) < 2:
            raise ValueError("min_station_rows must be >= 2")
        if int(self.n_jobs) == 0:
            raise ValueError("n_jobs must be non-zero (use -1 for all cores)")

    @property
    def n_hours(self) -> int:
        return int((self.window_end - self.window_start) / pd.Timedelta(hours=1)) + 1
