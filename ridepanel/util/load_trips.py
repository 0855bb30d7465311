# ridepanel/util/load_trips.py

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import pandas as pd
from colorama import Fore, Style
from tqdm import tqdm

from ridepanel.config import DEFAULT_TIMEZONE
from ridepanel.errors import EmptyInputError
from ridepanel.util.stations import normalize_station_ids


TRIP_COLUMNS = [
    "start_station_id",
    "started_at",
    "start_station_longitude",
    "start_station_latitude",
]

# logical column -> accepted spellings in the monthly exports
COLUMN_ALIASES = {
    "start_station_id": ["start_station_id", "Start Station Id"],
    "started_at": ["started_at", "Start Time", "start_time"],
    "start_station_longitude": ["start_station_longitude", "start_lng", "start_lon"],
    "start_station_latitude": ["start_station_latitude", "start_lat"],
    "ride_id": ["ride_id", "Trip Id", "trip_id"],
}

OPTIONAL_COLUMNS = {"ride_id"}

# time followed by "Z" or a UTC offset, e.g. "00:30:12.419000+00:00"
OFFSET_SUFFIX = r"\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?\s*(?:Z|[+-]\d{2}:?\d{2})$"


def to_analysis_time(ts: pd.Series, tz: str = DEFAULT_TIMEZONE) -> pd.Series:
    """
    Tz-aware timestamps -> naive wall-clock time in tz. Naive input is
    returned unchanged, the hour grid is naive.
    """
    if isinstance(ts.dtype, pd.DatetimeTZDtype):
        return ts.dt.tz_convert(tz).dt.tz_localize(None)
    return ts


def parse_started_at(raw: pd.Series, tz: str = DEFAULT_TIMEZONE) -> pd.Series:
    """
    Parses trip start times. Offset-bearing values are converted to tz; naive
    values are kept as they are. Unparseable values become NaT.
    """
    text = raw.astype("string").str.strip()
    aware = text.str.contains(OFFSET_SUFFIX, regex=True, na=False).to_numpy(dtype=bool)

    parts = []
    if (~aware).any():
        parts.append(pd.to_datetime(text[~aware], errors="coerce", format="mixed"))
    if aware.any():
        parsed = pd.to_datetime(text[aware], errors="coerce", format="mixed", utc=True)
        parts.append(to_analysis_time(parsed, tz))

    if not parts:
        return pd.to_datetime(text, errors="coerce")
    return pd.concat(parts).reindex(raw.index)


def _resolve_columns(columns: Iterable[str]) -> dict[str, str]:
    # Normalize column names (exports differ in spacing and capitalization)
    colmap = {c.strip(): c for c in columns}
    resolved = {}
    for logical, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in colmap:
                resolved[logical] = colmap[alias]
                break
    return resolved


def find_trip_files(directory: str | Path, pattern: str = "*.csv") -> list[Path]:
    return sorted(Path(directory).glob(pattern))


def load_trip_csv(trips_csv: str | Path, tz: str = DEFAULT_TIMEZONE) -> pd.DataFrame:
    """
    Loads one trip partition (typically one month) and returns a frame with:
      - start_station_id (int64 StationKey)
      - started_at (naive datetime64, local to tz)
      - start_station_longitude, start_station_latitude (float)
      - ride_id (string, <NA> when blank), only when the export carries one
    """
    trips_csv = Path(trips_csv)
    df = pd.read_csv(trips_csv, low_memory=False)

    resolved = _resolve_columns(df.columns)
    missing = [c for c in COLUMN_ALIASES if c not in resolved and c not in OPTIONAL_COLUMNS]
    if missing:
        raise ValueError(f"Trips CSV {trips_csv} missing columns: {missing}")

    out = pd.DataFrame()
    out["start_station_id"] = df[resolved["start_station_id"]]
    out["started_at"] = parse_started_at(df[resolved["started_at"]], tz=tz)
    out["start_station_longitude"] = pd.to_numeric(df[resolved["start_station_longitude"]], errors="coerce")
    out["start_station_latitude"] = pd.to_numeric(df[resolved["start_station_latitude"]], errors="coerce")
    if "ride_id" in resolved:
        # "string" keeps blank ids as <NA> instead of the text "nan"
        out["ride_id"] = df[resolved["ride_id"]].astype("string").str.strip().replace("", pd.NA)

    # Drop malformed rows and dockless trips with no start station
    out = out.dropna(subset=["started_at", "start_station_id"])
    out["start_station_id"] = normalize_station_ids(out["start_station_id"])
    out["started_at"] = out["started_at"].dt.floor("s")

    return out.reset_index(drop=True)


def load_trip_partitions(
    paths: Iterable[str | Path],
    verbose: bool = True,
    tz: str = DEFAULT_TIMEZONE,
) -> pd.DataFrame:
    """
    Concatenate trip partitions into one record set.

    Overlapping exports are deduplicated by ride_id. Records with no ride id
    are never deduplicated: every one of them counts as a trip.
    """
    paths = [Path(p) for p in paths]
    if not paths:
        raise EmptyInputError("No trip files supplied")

    if verbose:
        print(f"{Fore.CYAN}Loading {len(paths)} trip file(s)…{Style.RESET_ALL}")

    it = tqdm(paths, desc="Reading trips") if verbose else paths
    frames = [load_trip_csv(p, tz=tz) for p in it]
    trips = pd.concat(frames, ignore_index=True)

    if trips.empty:
        raise EmptyInputError("Trip files contain no usable records")

    if "ride_id" in trips.columns:
        repeated = trips["ride_id"].notna() & trips.duplicated(subset=["ride_id"], keep="first")
        if repeated.any():
            trips = trips[~repeated].reset_index(drop=True)
            if verbose:
                print(
                    f"{Fore.YELLOW}Dropped {int(repeated.sum()):,} duplicate ride ids "
                    f"across partitions{Style.RESET_ALL}"
                )

    if verbose:
        print(f"{Fore.GREEN}Loaded {len(trips):,} trips{Style.RESET_ALL}")

    return trips
