# ridepanel/util/stations.py
from __future__ import annotations

import numpy as np
import pandas as pd


def normalize_station_ids(ids) -> pd.Series:
    """
    Map raw start_station_id values onto the canonical integer StationKey.

    Source files are read with floating point ids (7001.0) in some months and
    integers (7001) in others; both must land on the same key. Missing or
    non-integral ids are rejected rather than truncated.
    """
    s = pd.Series(ids, copy=False)
    values = pd.to_numeric(s, errors="coerce").astype("float64")

    missing = values.isna()
    if missing.any():
        bad = s[missing].head(5).tolist()
        raise ValueError(f"Station ids are missing or non-numeric: {bad}")

    rounded = np.round(values)
    off = (values - rounded).abs() > 1e-9
    if off.any():
        bad = s[off].head(5).tolist()
        raise ValueError(f"Station ids are not integer-valued: {bad}")

    return pd.Series(rounded.astype("int64"), index=s.index, name="station_id")


def station_key(value) -> int:
    return int(normalize_station_ids([value]).iloc[0])
