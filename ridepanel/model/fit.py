# ridepanel/model/fit.py

from __future__ import annotations

import warnings
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
import statsmodels.api as sm

from ridepanel.errors import NonEstimableCoefficientError, NonEstimableCoefficientWarning
from ridepanel.model.split import TrainTestSplit
from ridepanel.panel.join import DAY_NAMES, HOURS_OF_DAY


TARGET = "n_rides"
INTERCEPT = "Intercept"

# factor -> full level enumeration, in baseline-preference order
FACTORS = {
    "day_of_week": DAY_NAMES,
    "hour_of_day": HOURS_OF_DAY,
}


def term_name(factor: str, level) -> str:
    return f"C({factor})[T.{level}]"


@dataclass(frozen=True, eq=False)
class StationModel:
    """
    OLS fit of n_rides ~ C(day_of_week) + C(hour_of_day) for a single station.

    params/bse are indexed by term name. Levels that could not be estimated
    from the training rows (never observed, or aliased with other columns)
    are listed in non_estimable and carry no coefficient.
    """
    station_id: int
    params: pd.Series
    bse: pd.Series
    tvalues: pd.Series
    pvalues: pd.Series
    baselines: dict
    term_levels: dict
    non_estimable: tuple
    nobs: int
    df_resid: float
    rsquared: float
    rsquared_adj: float
    resid_std_err: float
    result: object = field(default=None, repr=False)

    @property
    def terms(self) -> list[str]:
        return list(self.params.index)

    def known_levels(self, factor: str) -> set:
        known = {self.baselines[factor]}
        known.update(lvl for f, lvl in self.term_levels.values() if f == factor)
        return known

    def coef_table(self) -> pd.DataFrame:
        est = pd.DataFrame(
            {
                "station_id": self.station_id,
                "term": self.params.index,
                "estimate": self.params.values,
                "std_error": self.bse.values,
                "t_value": self.tvalues.values,
                "p_value": self.pvalues.values,
                "estimable": True,
            }
        )
        if not self.non_estimable:
            return est

        missing = pd.DataFrame(
            {
                "station_id": self.station_id,
                "term": list(self.non_estimable),
                "estimate": np.nan,
                "std_error": np.nan,
                "t_value": np.nan,
                "p_value": np.nan,
                "estimable": False,
            }
        )
        return pd.concat([est, missing], ignore_index=True)

    def fit_summary(self) -> dict:
        return {
            "station_id": self.station_id,
            "nobs": self.nobs,
            "df_resid": self.df_resid,
            "n_params": len(self.params),
            "n_non_estimable": len(self.non_estimable),
            "rsquared": self.rsquared,
            "rsquared_adj": self.rsquared_adj,
            "resid_std_err": self.resid_std_err,
            "baseline_day_of_week": self.baselines["day_of_week"],
            "baseline_hour_of_day": self.baselines["hour_of_day"],
        }


def _level_indicator(frame: pd.DataFrame, factor: str, level) -> np.ndarray:
    return (frame[factor].astype(object) == level).to_numpy(dtype=np.float64)


def _observed_levels(frame: pd.DataFrame, factor: str) -> list:
    seen = set(frame[factor].astype(object).tolist())
    return [lvl for lvl in FACTORS[factor] if lvl in seen]


def fit_station_model(split: TrainTestSplit, strict: bool = False) -> StationModel:
    """
    Fits the station's regression on split.train only.

    Treatment coding with the first observed level of each factor as the
    baseline. A level missing from the training rows, or whose indicator is a
    linear combination of columns already in the design, is dropped and
    reported instead of breaking the fit. strict=True turns that report into
    NonEstimableCoefficientError.
    """
    train = split.train
    sid = split.station_id
    if len(train) == 0:
        raise ValueError(f"Station {sid}: no training rows")

    y = train[TARGET].to_numpy(dtype=np.float64)

    baselines = {}
    non_estimable = []
    candidates = []
    for factor, levels in FACTORS.items():
        observed = _observed_levels(train, factor)
        baselines[factor] = observed[0]
        non_estimable.extend(term_name(factor, lvl) for lvl in levels if lvl not in observed)
        candidates.extend((factor, lvl) for lvl in observed[1:])

    columns = [np.ones(len(train))]
    terms = [INTERCEPT]
    term_levels = {}
    for factor, lvl in candidates:
        col = _level_indicator(train, factor, lvl)
        trial = np.column_stack(columns + [col])
        if np.linalg.matrix_rank(trial) <= len(columns):
            # aliased with the intercept or an earlier level
            non_estimable.append(term_name(factor, lvl))
            continue
        name = term_name(factor, lvl)
        columns.append(col)
        terms.append(name)
        term_levels[name] = (factor, lvl)

    if non_estimable:
        if strict:
            raise NonEstimableCoefficientError(sid, non_estimable)
        warnings.warn(
            f"Station {sid}: {len(non_estimable)} non-estimable level(s) dropped "
            f"from the fit ({', '.join(non_estimable[:3])}{'…' if len(non_estimable) > 3 else ''})",
            NonEstimableCoefficientWarning,
            stacklevel=2,
        )

    X = pd.DataFrame(np.column_stack(columns), columns=terms)

    # df_resid == 0 or a constant target give nan diagnostics, not errors
    with np.errstate(divide="ignore", invalid="ignore"):
        res = sm.OLS(y, X).fit()
        bse = pd.Series(np.asarray(res.bse, dtype=float), index=terms)
        tvalues = pd.Series(np.asarray(res.tvalues, dtype=float), index=terms)
        pvalues = pd.Series(np.asarray(res.pvalues, dtype=float), index=terms)
        rsquared = float(res.rsquared)
        rsquared_adj = float(res.rsquared_adj)
        resid_std_err = float(np.sqrt(res.scale)) if res.df_resid > 0 else float("nan")

    return StationModel(
        station_id=sid,
        params=pd.Series(np.asarray(res.params, dtype=float), index=terms),
        bse=bse,
        tvalues=tvalues,
        pvalues=pvalues,
        baselines=baselines,
        term_levels=term_levels,
        non_estimable=tuple(non_estimable),
        nobs=int(res.nobs),
        df_resid=float(res.df_resid),
        rsquared=rsquared,
        rsquared_adj=rsquared_adj,
        resid_std_err=resid_std_err,
        result=res,
    )
