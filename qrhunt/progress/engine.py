"""Pure computation of a class's hunt progress from its scan history."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional, Protocol, Union

from ..db.utils import as_utc, dt_iso


class ScanLike(Protocol):
    station_id: int
    scanned_at: datetime


class StationLike(Protocol):
    id: int


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values.

    Python's :func:`round` uses banker's rounding (``round(12.5) == 12``);
    percentages and ticket weights round ``.5`` up instead.
    """

    return int(math.floor(value + 0.5))


def _station_id(station: Union[StationLike, int]) -> int:
    return station if isinstance(station, int) else station.id


@dataclass(frozen=True)
class ProgressResult:
    """Progress of one class against the current active-station roster.

    Attributes
    ----------
    class_id : Optional[int]
        Class the scans belong to.
    total_stations : int
        Number of active stations.
    station_ids : frozenset[int]
        Distinct active stations the class has scanned.
    progress_percentage : int
        ``completed_count / total_stations`` as a rounded percentage, ``0``
        when there are no active stations.
    is_completed : bool
        ``True`` when every active station was scanned and there is at least
        one active station.
    start_time : Optional[datetime]
        Earliest scan among the counted stations.
    end_time : Optional[datetime]
        Latest of each station's last scan; only set when completed.
    completion_time : Optional[float]
        Minutes between ``start_time`` and ``end_time``; only set when completed.
    """

    class_id: Optional[int]
    total_stations: int
    station_ids: frozenset[int]
    progress_percentage: int
    is_completed: bool
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    completion_time: Optional[float]

    @property
    def completed_count(self) -> int:
        return len(self.station_ids)

    def to_json(self) -> dict[str, Any]:
        return {
            "completedCount": self.completed_count,
            "totalStations": self.total_stations,
            "progressPercentage": self.progress_percentage,
            "isCompleted": self.is_completed,
            "startTime": dt_iso(self.start_time),
            "endTime": dt_iso(self.end_time),
            "completionTime": self.completion_time,
        }


def compute_progress(
    class_id: Optional[int],
    scans: Iterable[ScanLike],
    active_stations: Iterable[Union[StationLike, int]],
) -> ProgressResult:
    """Compute how far a class got in the hunt.

    Parameters
    ----------
    class_id : Optional[int]
        Class the scans belong to; carried into the result.
    scans : Iterable[ScanLike]
        Scans of that class. Duplicate scans of one station are tolerated and
        counted once.
    active_stations : Iterable[StationLike | int]
        Current active stations (or their ids).

    Returns
    -------
    ProgressResult
        Immutable summary of the class's progress.

    Notes
    -----
    Scans of stations that are not in ``active_stations`` are ignored, so a
    station deactivated after being scanned neither counts toward completion
    nor affects the timing.

    When a station was scanned more than once, its *first* scan can set
    ``start_time`` while only its *last* scan counts toward ``end_time``.
    """

    active_ids = {_station_id(s) for s in active_stations}
    total = len(active_ids)

    start_time: Optional[datetime] = None
    last_scan_by_station: dict[int, datetime] = {}
    for scan in scans:
        if scan.station_id not in active_ids:
            continue
        scanned_at = as_utc(scan.scanned_at)
        if scanned_at is None:
            continue
        if start_time is None or scanned_at < start_time:
            start_time = scanned_at
        previous = last_scan_by_station.get(scan.station_id)
        if previous is None or scanned_at > previous:
            last_scan_by_station[scan.station_id] = scanned_at

    station_ids = frozenset(last_scan_by_station)
    completed_count = len(station_ids)
    percentage = round_half_up(100 * completed_count / total) if total > 0 else 0
    is_completed = total > 0 and completed_count >= total

    end_time: Optional[datetime] = None
    completion_time: Optional[float] = None
    if is_completed and start_time is not None:
        end_time = max(last_scan_by_station.values())
        completion_time = (end_time - start_time).total_seconds() / 60

    return ProgressResult(
        class_id=class_id,
        total_stations=total,
        station_ids=station_ids,
        progress_percentage=percentage,
        is_completed=is_completed,
        start_time=start_time,
        end_time=end_time,
        completion_time=completion_time,
    )


__all__ = [
    "ProgressResult",
    "ScanLike",
    "StationLike",
    "compute_progress",
    "round_half_up",
]
