"""Ticket weights for eligible classes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ..progress import ProgressResult, round_half_up

if TYPE_CHECKING:
    from ..models import Drawing


@dataclass(frozen=True)
class WeightingFactors:
    """Weighting configuration of a drawing.

    Attributes
    ----------
    completion_time : Optional[float]
        Flat bonus added when the class completed the hunt over a positive
        time span. Despite the name the bonus does not depend on how fast the
        class was.
    stations_found : Optional[float]
        Bonus per station found. Every eligible class found every active
        station, so in practice this adds the same amount to every entrant.
    """

    completion_time: Optional[float] = 1.0
    stations_found: Optional[float] = 1.0

    @classmethod
    def from_drawing(cls, drawing: "Drawing") -> "WeightingFactors":
        return cls(
            completion_time=drawing.completion_time_factor,
            stations_found=drawing.stations_found_factor,
        )


def compute_weight(progress: ProgressResult, factors: WeightingFactors) -> int:
    """Return the number of tickets a class gets in the drawing pool.

    Parameters
    ----------
    progress : ProgressResult
        Progress of the class, recomputed from its scan history.
    factors : WeightingFactors
        Weighting configuration of the drawing.

    Returns
    -------
    int
        ``max(1, round(1 + found * stations_found [+ completion_time]))``.
    """

    weight = 1.0
    weight += progress.completed_count * (factors.stations_found or 0)

    if progress.is_completed and progress.completion_time is not None:
        if progress.completion_time > 0 and factors.completion_time:
            weight += factors.completion_time

    return max(1, round_half_up(weight))


__all__ = ["WeightingFactors", "compute_weight"]
