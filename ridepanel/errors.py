# ridepanel/errors.py
from __future__ import annotations


class RidePanelError(ValueError):
    """Base class for everything the panel build and station models raise."""


class EmptyInputError(RidePanelError):
    pass


class DuplicateKeyError(RidePanelError):
    def __init__(self, keys):
        self.keys = list(keys)
        shown = ", ".join(f"({sid}, {hour})" for sid, hour in self.keys[:5])
        more = f" (+{len(self.keys) - 5} more)" if len(self.keys) > 5 else ""
        super().__init__(f"Duplicate (station_id, hour) keys: {shown}{more}")


class GapOrOverlapError(RidePanelError):
    def __init__(self, station_id, previous_hour, hour):
        self.station_id = station_id
        self.previous_hour = previous_hour
        self.hour = hour
        super().__init__(
            f"Station {station_id}: expected one hour between "
            f"{previous_hour} and {hour}"
        )


class InsufficientDataError(RidePanelError):
    def __init__(self, station_id, n_rows: int, min_rows: int):
        self.station_id = station_id
        self.n_rows = n_rows
        self.min_rows = min_rows
        super().__init__(
            f"Station {station_id}: {n_rows} rows, need at least {min_rows} to split"
        )


class NonEstimableCoefficientError(RidePanelError):
    def __init__(self, station_id, levels):
        self.station_id = station_id
        self.levels = list(levels)
        super().__init__(
            f"Station {station_id}: non-estimable levels {', '.join(self.levels)}"
        )


class StationMismatchError(RidePanelError):
    pass


class NonEstimableCoefficientWarning(UserWarning):
    pass
