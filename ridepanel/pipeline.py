# ridepanel/pipeline.py

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

import numpy as np
import pandas as pd
from colorama import Fore, Style
from joblib import Parallel, delayed
from tqdm import tqdm

from ridepanel.config import PipelineConfig
from ridepanel.errors import EmptyInputError, RidePanelError
from ridepanel.model.fit import StationModel, fit_station_model
from ridepanel.model.predict import PREDICTION_COLUMNS, predict_station, score_predictions
from ridepanel.model.split import TrainTestSplit, iter_station_panels, split_station_panel
from ridepanel.panel.describe import station_totals, weekday_hour_profile
from ridepanel.panel.geo import attach_centroids, station_centroids
from ridepanel.panel.grid import build_time_grid
from ridepanel.panel.hourly import aggregate_hourly_counts
from ridepanel.panel.join import add_calendar_features, count_outside_grid, join_counts
from ridepanel.panel.validate import validate_panel
from ridepanel.util.load_trips import load_trip_partitions, to_analysis_time
from ridepanel.util.stations import normalize_station_ids


@dataclass(frozen=True, eq=False)
class PanelBuild:
    """
    panel: validated station x hour panel, sorted by (station_id, hour)
    dropped_outside_window: trips whose hour falls outside the grid
    """
    panel: pd.DataFrame
    dropped_outside_window: int


@dataclass(frozen=True, eq=False)
class StationResult:
    station_id: int
    split: TrainTestSplit
    model: StationModel
    predictions: pd.DataFrame


@dataclass(frozen=True)
class StationFailure:
    station_id: int
    stage: str
    error_type: str
    message: str


@dataclass(eq=False)
class PipelineResult:
    results: dict = field(default_factory=dict)
    failures: dict = field(default_factory=dict)

    def predictions(self) -> pd.DataFrame:
        frames = [r.predictions for _, r in sorted(self.results.items())]
        if not frames:
            return pd.DataFrame(columns=PREDICTION_COLUMNS)
        return pd.concat(frames, ignore_index=True)

    def coefficients(self) -> pd.DataFrame:
        frames = [r.model.coef_table() for _, r in sorted(self.results.items())]
        if not frames:
            return pd.DataFrame()
        return pd.concat(frames, ignore_index=True)

    def fit_summaries(self) -> pd.DataFrame:
        return pd.DataFrame([r.model.fit_summary() for _, r in sorted(self.results.items())])

    def scores(self) -> pd.DataFrame:
        return score_predictions(self.predictions())

    def failure_table(self) -> pd.DataFrame:
        return pd.DataFrame(
            [vars(f) for _, f in sorted(self.failures.items())],
            columns=["station_id", "stage", "error_type", "message"],
        )


def _say(config: PipelineConfig, color: str, msg: str) -> None:
    if config.verbose:
        print(f"{color}{msg}{Style.RESET_ALL}")


def build_panel(trips_df: pd.DataFrame, config: PipelineConfig | None = None) -> PanelBuild:
    """
    Trips -> validated, geo-enriched panel.

    This is the barrier before any per-station work: it either returns a panel
    that passed both structural checks or raises.
    """
    config = config or PipelineConfig()

    if trips_df is None or len(trips_df) == 0:
        raise EmptyInputError("No trip records supplied")

    # callers may hand in raw frames: enforce StationKey and naive analysis time
    trips_df = trips_df.assign(
        start_station_id=normalize_station_ids(trips_df["start_station_id"]),
        started_at=to_analysis_time(pd.to_datetime(trips_df["started_at"]), config.timezone),
    )
    station_ids = trips_df["start_station_id"].unique()

    _say(config, Fore.CYAN, f"Building grid: {len(station_ids)} stations × {config.n_hours} hours…")
    skeleton = build_time_grid(station_ids, config.window_start, config.window_end)

    _say(config, Fore.CYAN, "Aggregating trips by station and hour…")
    counts = aggregate_hourly_counts(trips_df)
    dropped = count_outside_grid(skeleton, counts)
    if dropped:
        _say(config, Fore.YELLOW, f"{dropped:,} trips fall outside the analysis window and are ignored")

    panel = join_counts(skeleton, counts)
    panel = add_calendar_features(panel)

    _say(config, Fore.CYAN, "Validating panel…")
    validate_panel(panel)

    panel = attach_centroids(panel, station_centroids(trips_df))

    _say(config, Fore.GREEN, f"Panel ready: {len(panel):,} rows, {int(panel['n_rides'].sum()):,} rides")
    return PanelBuild(panel=panel, dropped_outside_window=dropped)


def process_station(
    station_id: int,
    station_panel: pd.DataFrame,
    config: PipelineConfig,
) -> StationResult | StationFailure:
    """
    split -> fit -> predict for one station. Expected failures come back as a
    StationFailure so they never take down the other stations.
    """
    stage = "split"
    try:
        split = split_station_panel(
            station_panel,
            train_fraction=config.train_fraction,
            min_rows=config.min_station_rows,
        )
        stage = "fit"
        model = fit_station_model(split, strict=config.strict_levels)
        stage = "predict"
        predictions = predict_station(model, split.test)
    except (RidePanelError, np.linalg.LinAlgError) as e:
        return StationFailure(
            station_id=station_id,
            stage=stage,
            error_type=type(e).__name__,
            message=str(e),
        )

    return StationResult(
        station_id=station_id,
        split=split,
        model=model,
        predictions=predictions,
    )


def run_station_models(panel: pd.DataFrame, config: PipelineConfig | None = None) -> PipelineResult:
    """
    Fans out over stations. Stations share nothing, so results are merged by
    station_id in whatever order the workers finish.
    """
    config = config or PipelineConfig()
    stations = list(iter_station_panels(panel))

    _say(config, Fore.CYAN, f"Fitting {len(stations)} station models (n_jobs={config.n_jobs})…")

    it = tqdm(stations, desc="Stations") if config.verbose else stations
    outcomes = Parallel(n_jobs=config.n_jobs, prefer="threads")(
        delayed(process_station)(sid, rows, config) for sid, rows in it
    )

    result = PipelineResult()
    for outcome in outcomes:
        if isinstance(outcome, StationFailure):
            result.failures[outcome.station_id] = outcome
        else:
            result.results[outcome.station_id] = outcome

    if result.failures:
        _say(config, Fore.RED, f"{len(result.failures)} station(s) failed; see failure table")
    _say(config, Fore.GREEN, f"Fitted {len(result.results)} station models")

    return result


def run_pipeline(
    trip_files: Iterable[str | Path],
    config: PipelineConfig | None = None,
) -> tuple[PanelBuild, PipelineResult]:
    config = config or PipelineConfig()
    trips = load_trip_partitions(trip_files, verbose=config.verbose, tz=config.timezone)
    build = build_panel(trips, config)
    return build, run_station_models(build.panel, config)


def write_outputs(
    build: PanelBuild,
    result: PipelineResult,
    out_dir: str | Path,
    prefix: str = "ridepanel",
) -> dict[str, Path]:
    """
    Writes:
      {prefix}_panel.csv
      {prefix}_profile.csv
      {prefix}_station_totals.csv
      {prefix}_predictions.csv
      {prefix}_coefficients.csv
      {prefix}_fit_summary.csv
      {prefix}_scores.csv
      {prefix}_failures.csv
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    tables = {
        "panel": build.panel,
        "profile": weekday_hour_profile(build.panel),
        "station_totals": station_totals(build.panel),
        "predictions": result.predictions(),
        "coefficients": result.coefficients(),
        "fit_summary": result.fit_summaries(),
        "scores": result.scores(),
        "failures": result.failure_table(),
    }

    paths = {}
    for name, df in tables.items():
        path = out_dir / f"{prefix}_{name}.csv"
        df.to_csv(path, index=False)
        paths[name] = path

    return paths
