# ridepanel/main.py

from ridepanel.config import PipelineConfig
from ridepanel.panel.describe import station_totals
from ridepanel.pipeline import run_pipeline, write_outputs
from ridepanel.util.load_trips import find_trip_files


TRIPS_DIR = "data/raw"
TRIPS_GLOB = "*-tripdata.csv"
OUT_DIR = "data/out"


def main():
    trip_files = find_trip_files(TRIPS_DIR, TRIPS_GLOB)

    config = PipelineConfig(
        window_start="2024-01-01 00:00",
        window_end="2024-12-19 23:00",
        train_fraction=0.75,
        n_jobs=4,
    )

    build, result = run_pipeline(trip_files, config)

    # ---- busiest stations ----
    totals = station_totals(build.panel)
    print("\nBusiest stations:\n")
    print(totals.head(10).to_string(index=False))

    # ---- test-period error ----
    scores = result.scores()
    if not scores.empty:
        print("\nTest-period error (mean over stations):")
        print(f"  MAE  = {scores['mae'].mean():.3f}")
        print(f"  RMSE = {scores['rmse'].mean():.3f}")

    if result.failures:
        print("\nFailed stations:")
        print(result.failure_table().to_string(index=False))

    paths = write_outputs(build, result, OUT_DIR)
    for name, path in paths.items():
        print(f"Wrote {name}: {path}")


if __name__ == "__main__":
    main()
