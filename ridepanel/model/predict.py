# ridepanel/model/predict.py

from __future__ import annotations

import numpy as np
import pandas as pd
from sklearn.metrics import mean_absolute_error, mean_squared_error

from ridepanel.errors import StationMismatchError
from ridepanel.model.fit import FACTORS, INTERCEPT, StationModel


PREDICTION_COLUMNS = [
    "station_id",
    "hour",
    "hour_of_day",
    "day_of_week",
    "n_rides",
    "predicted",
    "extrapolated",
]


def _design(model: StationModel, rows: pd.DataFrame) -> np.ndarray:
    cols = []
    for term in model.terms:
        if term == INTERCEPT:
            cols.append(np.ones(len(rows)))
            continue
        factor, level = model.term_levels[term]
        cols.append((rows[factor].astype(object) == level).to_numpy(dtype=np.float64))
    return np.column_stack(cols)


def predict_station(model: StationModel, test_rows: pd.DataFrame) -> pd.DataFrame:
    """
    Applies a station's model to that station's own test rows.

    Predictions are raw linear-model output: they can be fractional or
    negative and are left that way. A row whose day/hour level had no
    coefficient in training falls back to the baseline effect for that factor
    and is marked extrapolated.
    """
    stations = set(test_rows["station_id"].astype("int64").unique().tolist())
    if stations - {model.station_id}:
        raise StationMismatchError(
            f"Model for station {model.station_id} applied to rows of "
            f"station(s) {sorted(stations - {model.station_id})}"
        )

    out = test_rows[["station_id", "hour", "hour_of_day", "day_of_week", "n_rides"]].copy()
    if len(out) == 0:
        out["predicted"] = pd.Series(dtype="float64")
        out["extrapolated"] = pd.Series(dtype="bool")
        return out[PREDICTION_COLUMNS]

    X = _design(model, test_rows)
    out["predicted"] = X @ model.params.to_numpy()

    extrapolated = np.zeros(len(out), dtype=bool)
    for factor in FACTORS:
        known = model.known_levels(factor)
        extrapolated |= ~test_rows[factor].astype(object).isin(known).to_numpy()
    out["extrapolated"] = extrapolated

    return out[PREDICTION_COLUMNS].reset_index(drop=True)


def rmse(y_true, y_pred) -> float:
    return float(np.sqrt(mean_squared_error(y_true, y_pred)))


def score_predictions(predictions: pd.DataFrame) -> pd.DataFrame:
    """
    Per-station error of the test-period predictions.

    Returns columns: station_id, n_test, actual_total, predicted_total, mae, rmse
    """
    rows = []
    for sid, g in predictions.groupby("station_id", sort=True):
        if len(g) == 0:
            continue
        rows.append(
            {
                "station_id": int(sid),
                "n_test": int(len(g)),
                "actual_total": int(g["n_rides"].sum()),
                "predicted_total": float(g["predicted"].sum()),
                "mae": float(mean_absolute_error(g["n_rides"], g["predicted"])),
                "rmse": rmse(g["n_rides"], g["predicted"]),
            }
        )
    return pd.DataFrame(
        rows,
        columns=["station_id", "n_test", "actual_total", "predicted_total", "mae", "rmse"],
    )
