"""Drawing engine: eligibility, weighting and winner selection."""

from __future__ import annotations

import logging
import random
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from .sampling import DrawEntry, build_entry_pool, pick_distinct_winners
from .weighting import WeightingFactors, compute_weight
from ..config import DEFAULT_PRIZE
from ..errors import ConflictError, ValidationError
from ..models import (
    Drawing,
    DrawingWinner,
    STATUS_COMPLETED,
    STATUS_PENDING,
    Scan,
    SchoolClass,
    Station,
)
from ..progress import ProgressResult, compute_progress
from ..progress.engine import ScanLike

logger = logging.getLogger(__name__)


@dataclass
class EligibleClass:
    """A class that found every active station, with its ticket count.

    Attributes
    ----------
    school_class : SchoolClass
        The eligible class.
    progress : ProgressResult
        Progress recomputed from the class's scan history.
    weight : int
        Number of tickets the class gets in the drawing pool.
    """

    school_class: SchoolClass
    progress: ProgressResult
    weight: int

    def entry(self) -> DrawEntry:
        teacher = self.school_class.teacher
        return DrawEntry(
            class_id=self.school_class.id,
            class_name=self.school_class.name,
            teacher_name=teacher.name if teacher is not None else None,
            teacher_email=teacher.email if teacher is not None else None,
        )

    def to_json(self) -> dict:
        school_class = self.school_class
        teacher = school_class.teacher
        return {
            "id": school_class.id,
            "name": school_class.name,
            "school": school_class.school,
            "grade": school_class.grade,
            "teacher": (
                {"name": teacher.name, "email": teacher.email}
                if teacher is not None
                else None
            ),
            "studentCount": school_class.student_count,
            "stationsFound": self.progress.completed_count,
            "totalStations": self.progress.total_stations,
            "completionTime": self.progress.completion_time,
            "weight": self.weight,
            "isEligible": True,
        }


@dataclass
class DrawOutcome:
    """Result of a drawing run before (or after) it is persisted."""

    eligible: list[EligibleClass]
    winners: list[DrawEntry]
    pool_size: int
    drawing: Optional[Drawing] = None
    weights: dict[int, int] = field(default_factory=dict)


def assess_eligibility(
    classes: Iterable[SchoolClass],
    active_stations: Sequence[Station],
    scans_by_class: Mapping[int, Sequence[ScanLike]],
    factors: WeightingFactors,
) -> list[EligibleClass]:
    """Return the classes that scanned every active station, with their weights.

    Eligibility is always recomputed from scan history; the cached
    ``is_completed`` flag on the class is not consulted.

    Raises
    ------
    ValidationError
        If there are no active stations.
    """

    if not active_stations:
        raise ValidationError("No active stations found. Cannot determine eligibility.")

    eligible: list[EligibleClass] = []
    for school_class in classes:
        progress = compute_progress(
            school_class.id,
            scans_by_class.get(school_class.id, ()),
            active_stations,
        )
        # Only classes that found every active station take part.
        if progress.completed_count < progress.total_stations:
            continue
        eligible.append(
            EligibleClass(
                school_class=school_class,
                progress=progress,
                weight=compute_weight(progress, factors),
            )
        )
    return eligible


def draw_winners(
    classes: Iterable[SchoolClass],
    active_stations: Sequence[Station],
    scans_by_class: Mapping[int, Sequence[ScanLike]],
    number_of_winners: int,
    factors: WeightingFactors,
    *,
    rng: Optional[random.Random] = None,
) -> DrawOutcome:
    """Select winners among eligible classes without touching the database.

    Parameters
    ----------
    classes : Iterable[SchoolClass]
        Active classes.
    active_stations : Sequence[Station]
        Active stations.
    scans_by_class : Mapping[int, Sequence[ScanLike]]
        Scan history keyed by class id.
    number_of_winners : int
        Maximum number of winning classes.
    factors : WeightingFactors
        Weighting configuration.
    rng : Optional[random.Random], default: None
        Random generator used for the shuffle.

    Returns
    -------
    DrawOutcome
        Eligible classes, the winners in draw order and the pool size.

    Raises
    ------
    ValidationError
        If ``number_of_winners`` is not positive, there are no active
        stations, or no class is eligible.
    """

    _check_number_of_winners(number_of_winners)

    eligible = assess_eligibility(classes, active_stations, scans_by_class, factors)
    pool = build_entry_pool((e.entry(), e.weight) for e in eligible)
    if not pool:
        raise ValidationError(
            "No classes are eligible for the drawing based on current criteria."
        )

    pool_size = len(pool)
    winners = pick_distinct_winners(pool, number_of_winners, rng=rng)
    return DrawOutcome(
        eligible=eligible,
        winners=winners,
        pool_size=pool_size,
        weights={e.school_class.id: e.weight for e in eligible},
    )


def _check_number_of_winners(number_of_winners: object) -> None:
    if (
        isinstance(number_of_winners, bool)
        or not isinstance(number_of_winners, int)
        or number_of_winners <= 0
    ):
        raise ValidationError("Please provide a valid number of winners.")


class PrizeDrawEngine:
    """Engine that loads the hunt roster, runs drawings and persists results."""

    def __init__(
        self,
        session: Session,
        *,
        rng: Optional[random.Random] = None,
        default_prize: str = DEFAULT_PRIZE,
    ) -> None:
        """Create a drawing engine bound to a SQLAlchemy session.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session used for lookups and persistence.
        rng : Optional[random.Random], default: None
            Random generator for the shuffle. Omit outside of tests.
        default_prize : str
            Prize text used when a run does not describe the prize.
        """

        self._session = session
        self._rng = rng
        self._default_prize = default_prize

    def load_roster(
        self,
    ) -> tuple[list[Station], list[SchoolClass], dict[int, list[Scan]]]:
        """Return active stations, active classes and their scans keyed by class id."""

        stations = Station.get_active(self._session)
        classes = SchoolClass.get_active(self._session)

        scans_by_class: dict[int, list[Scan]] = defaultdict(list)
        class_ids = [c.id for c in classes]
        if class_ids:
            stmt = (
                select(Scan)
                .where(Scan.class_id.in_(class_ids))
                .order_by(Scan.scanned_at, Scan.id)
            )
            for scan in self._session.scalars(stmt):
                scans_by_class[scan.class_id].append(scan)
        return stations, classes, dict(scans_by_class)

    def eligible_classes(
        self, factors: Optional[WeightingFactors] = None
    ) -> list[EligibleClass]:
        """Return the classes a drawing run would currently consider.

        Raises
        ------
        ValidationError
            If there are no active stations.
        """

        stations, classes, scans_by_class = self.load_roster()
        return assess_eligibility(
            classes, stations, scans_by_class, factors or WeightingFactors()
        )

    def run(
        self,
        drawing: Drawing,
        number_of_winners: int,
        prize_description: Optional[str] = None,
    ) -> DrawOutcome:
        """Run ``drawing`` and persist its winners.

        Notes
        -----
        The run performs the following steps:

        1. Validate the winner count and that the drawing is still pending.
        2. Load active stations, active classes and their scans.
        3. Keep classes that scanned every active station and weight them.
        4. Shuffle the ticket pool and take the first distinct classes.
        5. Store eligible classes and winners, and flip the drawing to
           ``"completed"`` with an update guarded on ``status = 'pending'``
           so only one concurrent run can complete it.

        Raises
        ------
        ValidationError
            Invalid winner count, no active stations or no eligible classes.
        ConflictError
            The drawing is already completed.
        """

        _check_number_of_winners(number_of_winners)
        if drawing.status == STATUS_COMPLETED:
            raise ConflictError("This drawing has already been completed.")

        stations, classes, scans_by_class = self.load_roster()
        outcome = draw_winners(
            classes,
            stations,
            scans_by_class,
            number_of_winners,
            WeightingFactors.from_drawing(drawing),
            rng=self._rng,
        )
        logger.info(
            "Drawing %s: %d eligible classes, %d tickets, %d winners",
            drawing.id,
            len(outcome.eligible),
            outcome.pool_size,
            len(outcome.winners),
        )

        self._complete(drawing, outcome, prize_description or self._default_prize)
        outcome.drawing = drawing
        return outcome

    def _complete(self, drawing: Drawing, outcome: DrawOutcome, prize: str) -> None:
        """Persist the outcome and mark the drawing completed exactly once."""

        now = datetime.now(timezone.utc)
        result = self._session.execute(
            update(Drawing)
            .where(Drawing.id == drawing.id, Drawing.status == STATUS_PENDING)
            .values(status=STATUS_COMPLETED, completed_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError("This drawing has already been completed.")

        drawing.status = STATUS_COMPLETED
        drawing.completed_at = now
        drawing.eligible_classes = [e.school_class for e in outcome.eligible]
        drawing.winners = [
            DrawingWinner(class_id=entry.class_id, position=position, prize=prize)
            for position, entry in enumerate(outcome.winners, start=1)
        ]
        self._session.flush()


__all__ = [
    "DrawOutcome",
    "EligibleClass",
    "PrizeDrawEngine",
    "assess_eligibility",
    "draw_winners",
]
