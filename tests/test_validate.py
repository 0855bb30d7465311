from __future__ import annotations

import pandas as pd
import pytest

from conftest import make_trips
from ridepanel.errors import DuplicateKeyError, GapOrOverlapError
from ridepanel.panel.grid import build_time_grid
from ridepanel.panel.hourly import aggregate_hourly_counts
from ridepanel.panel.join import join_counts
from ridepanel.panel.validate import check_contiguous_hours, check_unique_keys, validate_panel


def _panel(rows) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "station_id": [r[0] for r in rows],
            "hour": [pd.Timestamp(r[1]) for r in rows],
            "n_rides": [0] * len(rows),
        }
    )


def test_valid_panel_passes_and_is_untouched() -> None:
    panel = _panel([(1, "2024-01-01 00:00"), (1, "2024-01-01 01:00"), (2, "2024-01-01 00:00")])
    before = panel.copy()

    assert validate_panel(panel) is panel
    pd.testing.assert_frame_equal(panel, before)


def test_duplicate_key_named() -> None:
    panel = _panel([(1, "2024-01-01 00:00"), (1, "2024-01-01 00:00")])

    with pytest.raises(DuplicateKeyError) as exc:
        check_unique_keys(panel)

    assert exc.value.keys == [(1, pd.Timestamp("2024-01-01 00:00"))]


def test_gap_names_station_and_boundary() -> None:
    panel = _panel([(3, "2024-01-01 01:00"), (3, "2024-01-01 03:00")])

    with pytest.raises(GapOrOverlapError) as exc:
        check_contiguous_hours(panel)

    assert exc.value.station_id == 3
    assert exc.value.previous_hour == pd.Timestamp("2024-01-01 01:00")
    assert exc.value.hour == pd.Timestamp("2024-01-01 03:00")


def test_unsorted_rows_are_checked_in_time_order() -> None:
    panel = _panel([(1, "2024-01-01 02:00"), (1, "2024-01-01 00:00"), (1, "2024-01-01 01:00")])

    check_contiguous_hours(panel)


def test_first_row_per_station_is_exempt() -> None:
    # station 2 starts long after station 1 ends
    panel = _panel([(1, "2024-01-01 00:00"), (2, "2024-06-01 00:00"), (2, "2024-06-01 01:00")])

    check_contiguous_hours(panel)


def test_validator_is_idempotent() -> None:
    panel = _panel([(1, "2024-01-01 00:00"), (1, "2024-01-01 02:00")])

    messages = []
    for _ in range(2):
        with pytest.raises(GapOrOverlapError) as exc:
            validate_panel(panel)
        messages.append(str(exc.value))

    assert messages[0] == messages[1]


def test_skeleton_heals_sparse_counts() -> None:
    # rides at 01:00 and 03:00 only; 02:00 has none
    trips = make_trips([(1, "2024-01-01 01:10"), (1, "2024-01-01 03:20")])
    skeleton = build_time_grid([1], "2024-01-01 01:00", "2024-01-01 03:00")

    panel = validate_panel(join_counts(skeleton, aggregate_hourly_counts(trips)))

    assert panel["n_rides"].tolist() == [1, 0, 1]


def test_broken_skeleton_is_caught() -> None:
    trips = make_trips([(1, "2024-01-01 01:10"), (1, "2024-01-01 03:20")])
    skeleton = build_time_grid([1], "2024-01-01 01:00", "2024-01-01 03:00")
    skeleton = skeleton[skeleton["hour"] != pd.Timestamp("2024-01-01 02:00")]

    panel = join_counts(skeleton, aggregate_hourly_counts(trips))

    with pytest.raises(GapOrOverlapError):
        validate_panel(panel)
