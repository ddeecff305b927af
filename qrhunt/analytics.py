"""Admin analytics aggregated over classes, scans and stations.

Every function takes an optional ``start``/``end`` window. Class metrics
filter on ``registered_at`` and scan metrics on ``scanned_at``; both bounds are
inclusive. Day-of-week values run from 0 (Sunday) to 6 (Saturday), and hours
are UTC.
"""

from __future__ import annotations

from bisect import bisect_right
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import case, distinct, extract, func, select
from sqlalchemy.orm import Session

from .db.utils import as_utc
from .errors import ValidationError
from .models import Scan, SchoolClass, Station
from .progress import round_half_up

COMPLETION_BUCKETS = (0, 30, 60, 90, 120, 180, 240, 300, 999999)
"""Lower bounds, in minutes, of the completion-time histogram buckets."""

GROUP_BY_CHOICES = ("hour", "day", "date")
MAX_COMPARE_YEARS = 20

_completed = case((SchoolClass.is_completed.is_(True), 1), else_=0)


def _between(column, start: Optional[datetime], end: Optional[datetime]) -> list:
    clauses = []
    if start is not None:
        clauses.append(column >= as_utc(start))
    if end is not None:
        clauses.append(column <= as_utc(end))
    return clauses


def _rate(part: int, whole: int) -> int:
    return round_half_up(100 * part / whole) if whole > 0 else 0


def _completion_minutes(session: Session, *filters) -> list[float]:
    stmt = select(SchoolClass.registered_at, SchoolClass.completed_at).where(
        SchoolClass.is_completed.is_(True),
        SchoolClass.completed_at.is_not(None),
        *filters,
    )
    return [
        (as_utc(completed_at) - as_utc(registered_at)).total_seconds() / 60
        for registered_at, completed_at in session.execute(stmt)
    ]


def analytics_overview(
    session: Session,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> dict[str, Any]:
    """Class totals, completion rate and the grade distribution.

    ``avgCompletionTime`` is the mean number of minutes between registration
    and completion, rounded. ``totalScans`` ignores the window.
    """

    class_filter = _between(SchoolClass.registered_at, start, end)
    total_classes = session.scalar(
        select(func.count(SchoolClass.id)).where(*class_filter)
    ) or 0
    completed_classes = session.scalar(
        select(func.count(SchoolClass.id)).where(
            SchoolClass.is_completed.is_(True), *class_filter
        )
    ) or 0
    minutes = _completion_minutes(session, *class_filter)

    grades = session.execute(
        select(
            SchoolClass.grade,
            func.count(SchoolClass.id),
            func.sum(SchoolClass.student_count),
        )
        .where(*class_filter)
        .group_by(SchoolClass.grade)
        .order_by(SchoolClass.grade)
    )

    return {
        "overview": {
            "totalClasses": total_classes,
            "completedClasses": completed_classes,
            "totalStations": Station.count_active(session),
            "totalScans": session.scalar(select(func.count(Scan.id))) or 0,
            "completionRate": _rate(completed_classes, total_classes),
            "avgCompletionTime": (
                round_half_up(sum(minutes) / len(minutes)) if minutes else 0
            ),
        },
        "gradeDistribution": [
            {"grade": grade, "count": count, "students": int(students or 0)}
            for grade, count, students in grades
        ],
    }


def station_heatmap(
    session: Session,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> list[dict[str, Any]]:
    """Scan counts per station, busiest first.

    Active stations without scans in the window follow with a count of 0.
    """

    scan_count = func.count(Scan.id).label("scan_count")
    stmt = (
        select(Station.id, Station.name, Station.location, scan_count)
        .join(Scan, Scan.station_id == Station.id)
        .where(*_between(Scan.scanned_at, start, end))
        .group_by(Station.id, Station.name, Station.location)
        .order_by(scan_count.desc(), Station.id)
    )
    heatmap = [
        {"stationId": station_id, "name": name, "location": location, "scanCount": count}
        for station_id, name, location, count in session.execute(stmt)
    ]

    scanned_ids = [row["stationId"] for row in heatmap]
    unscanned = session.scalars(
        select(Station)
        .where(Station.is_active.is_(True), Station.id.not_in(scanned_ids))
        .order_by(Station.id)
    )
    heatmap.extend(
        {"stationId": s.id, "name": s.name, "location": s.location, "scanCount": 0}
        for s in unscanned
    )
    return heatmap


def completion_time_buckets(minutes: list[float]) -> list[dict[str, Any]]:
    """Histogram of completion times over :data:`COMPLETION_BUCKETS`.

    Each non-empty bucket is reported by its lower bound; times outside the
    bounds land in ``"other"``, listed last.
    """

    counts: dict[Any, int] = {}
    for value in minutes:
        index = bisect_right(COMPLETION_BUCKETS, value) - 1
        if 0 <= index < len(COMPLETION_BUCKETS) - 1:
            key: Any = COMPLETION_BUCKETS[index]
        else:
            key = "other"
        counts[key] = counts.get(key, 0) + 1

    ordered = [b for b in COMPLETION_BUCKETS if b in counts]
    if "other" in counts:
        ordered.append("other")
    return [{"bucket": b, "count": counts[b]} for b in ordered]


def time_patterns(
    session: Session,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    group_by: str = "hour",
) -> dict[str, Any]:
    """Scan counts by hour of day, day of week (``"day"``) or calendar date.

    An unknown ``group_by`` falls back to ``"hour"``.
    """

    if group_by not in GROUP_BY_CHOICES:
        group_by = "hour"
    scan_filter = _between(Scan.scanned_at, start, end)
    scan_count = func.count(Scan.id)
    class_count = func.count(distinct(Scan.class_id))

    if group_by == "date":
        year = extract("year", Scan.scanned_at)
        month = extract("month", Scan.scanned_at)
        day = extract("day", Scan.scanned_at)
        rows = session.execute(
            select(year, month, day, scan_count, class_count)
            .where(*scan_filter)
            .group_by(year, month, day)
            .order_by(year, month, day)
        )
        patterns = [
            {
                "period": f"{int(y):04d}-{int(m):02d}-{int(d):02d}",
                "scanCount": scans,
                "uniqueClassCount": classes,
            }
            for y, m, d, scans, classes in rows
        ]
    else:
        period = extract("hour" if group_by == "hour" else "dow", Scan.scanned_at)
        rows = session.execute(
            select(period, scan_count, class_count)
            .where(*scan_filter)
            .group_by(period)
            .order_by(period)
        )
        patterns = [
            {"period": int(p), "scanCount": scans, "uniqueClassCount": classes}
            for p, scans, classes in rows
        ]

    return {
        "groupBy": group_by,
        "timePatterns": patterns,
        "completionTimes": completion_time_buckets(_completion_minutes(session)),
    }


def engagement_metrics(
    session: Session,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> dict[str, Any]:
    """Scan velocity, drop-out, peak hours and per-school participation."""

    scan_filter = _between(Scan.scanned_at, start, end)
    class_filter = _between(SchoolClass.registered_at, start, end)

    per_class = session.execute(
        select(
            func.count(Scan.id),
            func.min(Scan.scanned_at),
            func.max(Scan.scanned_at),
        )
        .where(*scan_filter)
        .group_by(Scan.class_id)
    ).all()
    if per_class:
        spans = [
            (as_utc(last) - as_utc(first)).total_seconds() / 60
            for _, first, last in per_class
        ]
        velocity = {
            "avgScansPerClass": sum(count for count, _, _ in per_class) / len(per_class),
            "avgTimeSpent": sum(spans) / len(spans),
            "classes": len(per_class),
        }
    else:
        velocity = {"avgScansPerClass": 0, "avgTimeSpent": 0, "classes": 0}

    scanned = (
        select(
            Scan.class_id.label("class_id"),
            func.count(distinct(Scan.station_id)).label("stations"),
        )
        .group_by(Scan.class_id)
        .subquery()
    )
    total, with_scans, completed, avg_stations = session.execute(
        select(
            func.count(SchoolClass.id),
            func.count(scanned.c.class_id),
            func.sum(_completed),
            func.avg(func.coalesce(scanned.c.stations, 0)),
        )
        .select_from(SchoolClass)
        .outerjoin(scanned, scanned.c.class_id == SchoolClass.id)
        .where(*class_filter)
    ).one()

    hour = extract("hour", Scan.scanned_at)
    weekday = extract("dow", Scan.scanned_at)
    peak_count = func.count(Scan.id).label("scan_count")
    peak = session.execute(
        select(hour, weekday, peak_count)
        .where(*scan_filter)
        .group_by(hour, weekday)
        .order_by(peak_count.desc(), hour, weekday)
        .limit(10)
    )

    students = func.sum(SchoolClass.student_count).label("students")
    schools = session.execute(
        select(
            SchoolClass.school,
            func.count(SchoolClass.id),
            students,
            func.sum(_completed),
        )
        .where(*class_filter)
        .group_by(SchoolClass.school)
        .order_by(students.desc(), SchoolClass.school)
    )

    return {
        "scanVelocity": velocity,
        "dropoutAnalysis": {
            "totalClasses": total or 0,
            "classesWithScans": with_scans or 0,
            "completedClasses": int(completed or 0),
            "avgStationsScanned": float(avg_stations or 0),
        },
        "peakUsage": [
            {"hour": int(h), "dayOfWeek": int(d), "scanCount": count}
            for h, d, count in peak
        ],
        "schoolParticipation": [
            {
                "school": school,
                "classCount": class_count,
                "totalStudents": int(student_total or 0),
                "completedClasses": int(done or 0),
                "completionRate": round_half_up(1000 * int(done or 0) / class_count) / 10,
            }
            for school, class_count, student_total, done in schools
        ],
    }


def historical_comparison(
    session: Session, compare_years: int = 2, now: Optional[datetime] = None
) -> list[dict[str, Any]]:
    """Per-year class and scan totals for the current and previous years.

    Raises
    ------
    ValidationError
        If ``compare_years`` is not between 1 and :data:`MAX_COMPARE_YEARS`.
    """

    if (
        isinstance(compare_years, bool)
        or not isinstance(compare_years, int)
        or not 1 <= compare_years <= MAX_COMPARE_YEARS
    ):
        raise ValidationError(
            f"compareYears must be between 1 and {MAX_COMPARE_YEARS}"
        )

    current = as_utc(now).year if now is not None else datetime.now(timezone.utc).year
    history = []
    for year in range(current, current - compare_years, -1):
        year_start = datetime(year, 1, 1, tzinfo=timezone.utc)
        year_end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)

        total, completed, student_total, avg_students = session.execute(
            select(
                func.count(SchoolClass.id),
                func.sum(_completed),
                func.sum(SchoolClass.student_count),
                func.avg(SchoolClass.student_count),
            ).where(
                SchoolClass.registered_at >= year_start,
                SchoolClass.registered_at < year_end,
            )
        ).one()
        scans = session.scalar(
            select(func.count(Scan.id)).where(
                Scan.scanned_at >= year_start, Scan.scanned_at < year_end
            )
        )
        completed = int(completed or 0)
        history.append(
            {
                "year": year,
                "totalClasses": total,
                "completedClasses": completed,
                "totalStudents": int(student_total or 0),
                "avgStudentsPerClass": float(avg_students or 0),
                "totalScans": scans or 0,
                "completionRate": _rate(completed, total),
            }
        )
    return history
