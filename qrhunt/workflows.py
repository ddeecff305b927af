import logging
import random
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Mapping, Optional

import requests
from qrcode.exceptions import DataOverflowError
from sqlalchemy import distinct, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .auth import (
    MIN_PASSWORD_LENGTH,
    AuthContext,
    check_password,
    hash_password,
    issue_token,
)
from .config import DEFAULT_PRIZE, Settings, load_settings
from .db.utils import as_utc, dt_iso
from .errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    HuntError,
    NotFoundError,
    ValidationError,
)
from .models import (
    ROLE_TEACHER,
    Account,
    Drawing,
    Scan,
    SchoolClass,
    Station,
)
from .models.station import ACTIVITY_TYPES, AGE_GROUPS, DIFFICULTIES
from .progress import ProgressResult, compute_progress, round_half_up
from .prize_draw import EligibleClass, PrizeDrawEngine, WeightingFactors
from .qr import qr_png_data_url, station_scan_url

if TYPE_CHECKING:
    from .mail.api import MailClient

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# -------- helpers --------
def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _positive_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a positive integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a positive integer")
    if number < 1 or number != float(value):
        raise ValidationError(f"{field} must be a positive integer")
    return number


def _max_length(value: Optional[str], limit: int, field: str) -> Optional[str]:
    if value is not None and len(value) > limit:
        raise ValidationError(f"{field} cannot be more than {limit} characters")
    return value


def _lookup_id(value: Any) -> Optional[int]:
    """Return ``value`` as a row id, or ``None`` when it is not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    return int(text) if text.isdigit() else None


def _now(now: Optional[datetime] = None) -> datetime:
    return as_utc(now) if now is not None else datetime.now(timezone.utc)


# -------- accounts --------
def register_account(
    session: Session,
    *,
    name: Optional[str],
    email: Optional[str],
    password: Optional[str],
    school: Optional[str] = None,
    role: str = ROLE_TEACHER,
) -> Account:
    """Create a login account.

    Raises
    ------
    ValidationError
        If a required field is missing or malformed.
    ConflictError
        If an account with the same email already exists.
    """

    name, email, school = _text(name), _text(email), _text(school)
    if not name or not email or not password:
        raise ValidationError("Please provide name, email, and password")
    if role == ROLE_TEACHER and not school:
        raise ValidationError("School is required for teacher registration")
    if not _EMAIL_RE.match(email):
        raise ValidationError("Please provide a valid email")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    if Account.get_by_email(session, email) is not None:
        raise ConflictError("User already exists with this email")

    try:
        account = Account(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=role,
            school=school,
        )
    except ValueError as exc:
        raise ValidationError(str(exc))
    session.add(account)
    session.flush()
    logger.info("Registered %s account %s", account.role, account.id)
    return account


def authenticate(
    session: Session,
    email: Optional[str],
    password: Optional[str],
    settings: Optional[Settings] = None,
) -> tuple[Account, str]:
    """Check credentials and return the account with a fresh bearer token."""

    if not email or not password:
        raise ValidationError("Please provide an email and password")
    account = Account.get_by_email(session, email)
    if account is None or not check_password(account.password_hash, password):
        logger.info("Failed login attempt")
        raise AuthenticationError("Invalid credentials")
    return account, issue_token(account, settings)


def current_account(session: Session, ctx: AuthContext) -> Account:
    account = session.get(Account, ctx.user_id)
    if account is None:
        raise AuthenticationError("Not authorized to access this route")
    return account


_PROFILE_LIMITS = {"school": 255, "profile_picture": 500, "bio": 500, "phone": 30}


def update_profile(
    session: Session, ctx: AuthContext, fields: Mapping[str, Any]
) -> Account:
    """Update the caller's own profile.

    ``name`` is only changed when non-empty. ``school``, ``profile_picture``,
    ``bio`` and ``phone`` are changed whenever present, so an empty string
    clears them. Email, password and role cannot be changed here.
    """

    account = session.get(Account, ctx.user_id)
    if account is None:
        raise NotFoundError("User not found")

    name = _text(fields.get("name"))
    if name:
        account.name = _max_length(name, 100, "name")
    for key, limit in _PROFILE_LIMITS.items():
        if key in fields:
            setattr(account, key, _max_length(_text(fields[key]), limit, key))
    session.flush()
    logger.info("Updated profile of account %s", account.id)
    return account


# -------- stations --------
_STATION_TEXT_LIMITS = {"name": 50, "description": 500, "location": 100}
_STATION_LIST_FIELDS = ("fun_facts", "safety_tips", "learning_objectives")
_STATION_CHOICES = {
    "age_group": AGE_GROUPS,
    "difficulty": DIFFICULTIES,
    "activity_type": ACTIVITY_TYPES,
}
STATION_FIELDS = (
    "name",
    "description",
    "educational_info",
    "image_url",
    "fun_facts",
    "safety_tips",
    "learning_objectives",
    "age_group",
    "difficulty",
    "estimated_time",
    "activity_type",
    "max_participants",
    "location",
    "display_order",
    "is_active",
)


def _clean_station_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    for key, value in fields.items():
        if key not in STATION_FIELDS:
            continue
        if key in _STATION_TEXT_LIMITS:
            value = _max_length(_text(value), _STATION_TEXT_LIMITS[key], key)
        elif key in _STATION_LIST_FIELDS:
            if value is None:
                value = []
            if not isinstance(value, (list, tuple)):
                raise ValidationError(f"{key} must be a list")
            value = [str(v) for v in value]
        elif key in _STATION_CHOICES:
            if value not in _STATION_CHOICES[key]:
                raise ValidationError(
                    f"{key} must be one of: {', '.join(_STATION_CHOICES[key])}"
                )
        elif key == "estimated_time":
            if value is not None:
                value = _positive_int(value, key)
                if value > 60:
                    raise ValidationError("estimated_time cannot exceed 60 minutes")
        elif key == "max_participants":
            value = _positive_int(value, key)
        elif key == "display_order":
            if value is not None:
                try:
                    value = int(value)
                except (TypeError, ValueError):
                    raise ValidationError("display_order must be an integer")
        elif key == "is_active":
            if not isinstance(value, bool):
                raise ValidationError("is_active must be a boolean")
        cleaned[key] = value
    return cleaned


def list_stations(session: Session, *, active_only: bool = False) -> list[Station]:
    if active_only:
        return Station.get_active(session)
    stmt = select(Station).order_by(
        Station.display_order.is_(None), Station.display_order, Station.id
    )
    return list(session.scalars(stmt).all())


def get_station(session: Session, station_id: Any) -> Station:
    pk = _lookup_id(station_id)
    station = session.get(Station, pk) if pk is not None else None
    if station is None:
        raise NotFoundError(f"Station not found with id of {station_id}")
    return station


def create_station(session: Session, fields: Mapping[str, Any]) -> Station:
    """Create a station from ``fields`` (snake_case attribute names).

    The QR code is always generated; a caller supplied one is ignored.
    """

    cleaned = _clean_station_fields(fields)
    if not cleaned.get("name"):
        raise ValidationError("Please add a station name")
    station = Station(**cleaned)
    session.add(station)
    session.flush()
    logger.info("Created station %s (%s)", station.id, station.name)
    return station


def update_station(
    session: Session, station_id: Any, fields: Mapping[str, Any]
) -> Station:
    station = get_station(session, station_id)
    cleaned = _clean_station_fields(fields)
    if "name" in cleaned and not cleaned["name"]:
        raise ValidationError("Please add a station name")
    for key, value in cleaned.items():
        setattr(station, key, value)
    session.flush()
    return station


def deactivate_station(session: Session, station_id: Any) -> tuple[Station, bool]:
    """Remove a station from the hunt.

    A station that was never scanned is deleted; otherwise it is deactivated so
    its scans keep their reference.

    Returns
    -------
    tuple[Station, bool]
        The station and whether it was deleted.
    """

    station = get_station(session, station_id)
    has_scans = session.scalar(
        select(Scan.id).where(Scan.station_id == station.id).limit(1)
    )
    if has_scans is None:
        session.delete(station)
        session.flush()
        logger.info("Deleted station %s", station.id)
        return station, True

    station.is_active = False
    session.flush()
    logger.info("Deactivated station %s", station.id)
    return station, False


def station_qr_code(
    session: Session, station_id: Any, settings: Optional[Settings] = None
) -> dict[str, str]:
    """Return the printable QR image for a station and the URL it encodes.

    Raises
    ------
    NotFoundError
        If the station does not exist.
    HuntError
        If the image cannot be rendered.
    """

    settings = settings or load_settings()
    station = get_station(session, station_id)
    scan_url = station_scan_url(settings.frontend_url, station.id)
    try:
        data_url = qr_png_data_url(scan_url)
    except DataOverflowError:
        logger.error("QR code for station %s does not fit %s", station.id, scan_url)
        raise HuntError("Failed to generate QR code", 500)
    logger.info("Generated QR code for station %s pointing to %s", station.id, scan_url)
    return {"qrCodeDataURL": data_url, "scanUrl": scan_url}


def resolve_station(session: Session, reference: Any) -> Optional[Station]:
    """Find the station named by a scanned QR payload.

    Numeric payloads are station ids; anything else is looked up as the
    station's printed ``qr_code``.
    """

    if reference is None:
        return None
    pk = _lookup_id(reference)
    if pk is not None:
        station = session.get(Station, pk)
        if station is not None:
            return station
    return Station.get_by_qr_code(session, str(reference))


# -------- classes --------
_CLASS_TEXT_LIMITS = {"name": 100, "school": 255, "grade": 50, "description": 300}


def _clean_class_fields(fields: Mapping[str, Any], *, partial: bool) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    for key in ("name", "school", "grade"):
        value = _text(fields.get(key))
        if value:
            cleaned[key] = _max_length(value, _CLASS_TEXT_LIMITS[key], key)
        elif not partial:
            raise ValidationError(f"Please provide a class {key}")
    if fields.get("student_count") is not None:
        cleaned["student_count"] = _positive_int(fields["student_count"], "student_count")
    elif not partial:
        raise ValidationError("Please provide the number of students")
    if "class_picture" in fields:
        cleaned["class_picture"] = _text(fields["class_picture"])
    if "description" in fields:
        cleaned["description"] = _max_length(
            _text(fields["description"]), _CLASS_TEXT_LIMITS["description"], "description"
        )
    return cleaned


def register_class(
    session: Session, teacher: Account, fields: Mapping[str, Any]
) -> SchoolClass:
    """Register a class owned by ``teacher`` and assign it a join code."""

    cleaned = _clean_class_fields(fields, partial=False)
    school_class = SchoolClass(teacher=teacher, **cleaned)
    session.add(school_class)
    session.flush()
    logger.info(
        "Registered class %s (%s) for teacher %s",
        school_class.id,
        school_class.class_code,
        teacher.id,
    )
    return school_class


def list_classes(session: Session, ctx: AuthContext) -> list[SchoolClass]:
    stmt = select(SchoolClass).order_by(SchoolClass.registered_at.desc(), SchoolClass.id.desc())
    if not ctx.is_admin:
        stmt = stmt.where(SchoolClass.teacher_id == ctx.user_id)
    return list(session.scalars(stmt).all())


def get_class(session: Session, class_id: Any, ctx: Optional[AuthContext] = None) -> SchoolClass:
    """Return a class, enforcing that non-admin callers own it."""

    pk = _lookup_id(class_id)
    school_class = session.get(SchoolClass, pk) if pk is not None else None
    if school_class is None:
        raise NotFoundError(f"Class not found with id of {class_id}")
    if ctx is not None and not ctx.is_admin and not school_class.owned_by(ctx.user_id):
        raise AuthorizationError("User not authorized to access this class")
    return school_class


def update_class(
    session: Session, class_id: Any, ctx: AuthContext, fields: Mapping[str, Any]
) -> SchoolClass:
    school_class = get_class(session, class_id, ctx)
    for key, value in _clean_class_fields(fields, partial=True).items():
        setattr(school_class, key, value)
    session.flush()
    return school_class


def resolve_class(session: Session, reference: Any) -> Optional[SchoolClass]:
    """Find a class by id, falling back to its join code."""

    if reference is None:
        return None
    pk = _lookup_id(reference)
    if pk is not None:
        school_class = session.get(SchoolClass, pk)
        if school_class is not None:
            return school_class
    return SchoolClass.get_by_class_code(session, str(reference))


# -------- progress --------
def reconcile_class_progress(
    session: Session,
    school_class: SchoolClass,
    *,
    active_stations: Optional[list[Station]] = None,
    now: Optional[datetime] = None,
) -> ProgressResult:
    """Rebuild a class's cached progress fields from its scan history.

    ``stations_scanned`` becomes the set of stations found in ``scans``,
    ``last_scan_at`` is set to ``now`` and the completion latch is set when
    every active station has been scanned. The latch is never cleared.
    """

    scans = Scan.for_class(session, school_class.id)
    stations = active_stations if active_stations is not None else Station.get_active(session)
    progress = compute_progress(school_class.id, scans, stations)

    scanned = {scan.station for scan in scans}
    if {s.id for s in school_class.stations_scanned} != {s.id for s in scanned}:
        if school_class.stations_scanned - scanned:
            logger.warning(
                "Class %s cached stations disagreed with its scans; rebuilding",
                school_class.id,
            )
        school_class.stations_scanned = scanned

    now = _now(now)
    school_class.last_scan_at = now
    if progress.is_completed and school_class.mark_completed(now):
        logger.info("Class %s completed the hunt", school_class.id)
    session.flush()
    return progress


def class_progress(session: Session, school_class: SchoolClass) -> dict[str, Any]:
    """Progress payload for a class, recomputed from its scans.

    ``isCompleted`` also honours the class's completion latch, so a class that
    completed before a new station was activated stays completed.
    """

    progress = compute_progress(
        school_class.id,
        Scan.for_class(session, school_class.id),
        Station.get_active(session),
    )
    payload = progress.to_json()
    completed_at = as_utc(school_class.completed_at)
    if not progress.is_completed and school_class.is_completed:
        payload["isCompleted"] = True
        registered_at = as_utc(school_class.registered_at)
        if completed_at is not None and registered_at is not None:
            start = progress.start_time or registered_at
            payload["completionTime"] = (completed_at - start).total_seconds() / 60
    payload["completedAt"] = completed_at.isoformat() if completed_at else None
    last_scan_at = as_utc(school_class.last_scan_at)
    payload["lastScanAt"] = last_scan_at.isoformat() if last_scan_at else None
    return payload


def class_details(session: Session, school_class: SchoolClass) -> dict[str, Any]:
    """Class payload with its scanned stations in scan order and its progress."""

    scans = Scan.for_class(session, school_class.id)
    return {
        "class": school_class.to_json(include_stations=True),
        "scannedStations": [
            {
                "scanId": scan.id,
                "scannedAt": scan.to_json()["scannedAt"],
                "station": scan.station.to_json(),
            }
            for scan in scans
        ],
        "progress": class_progress(session, school_class),
    }


# -------- scans --------
@dataclass
class ScanOutcome:
    """Result of :func:`record_scan`."""

    scan: Scan
    station: Station
    school_class: SchoolClass
    existing: bool
    progress: Optional[ProgressResult] = None

    @property
    def message(self) -> str:
        if self.existing:
            return (
                f'Station "{self.station.name}" has already been scanned by '
                f"class {self.school_class.name}."
            )
        return f"Scan recorded successfully for station: {self.station.name}!"


def record_scan(
    session: Session,
    class_ref: Any,
    station_ref: Any,
    *,
    scanned_by_id: Optional[int] = None,
    device_type: Optional[str] = None,
    device_browser: Optional[str] = None,
    device_ip: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ScanOutcome:
    """Record that a class scanned a station.

    Re-scanning a station only refreshes the class's ``last_scan_at``. A new
    scan inserts a :class:`Scan` row and then refreshes the class's cached
    progress; a failure in that refresh is logged and leaves the scan in place.

    Parameters
    ----------
    session : Session
        Active session; the caller commits.
    class_ref : Any
        Class id or join code.
    station_ref : Any
        Station id or printed QR code.
    scanned_by_id : Optional[int], default: None
        Account recording the scan.
    device_type, device_browser, device_ip : Optional[str]
        Device metadata stored on the scan.
    now : Optional[datetime], default: None
        Scan time; defaults to the current UTC time.

    Raises
    ------
    ValidationError
        If a reference is missing, or the class or station is inactive.
    NotFoundError
        If the class or station does not exist.
    """

    if _text(class_ref) is None or _text(station_ref) is None:
        raise ValidationError("Please provide classId and stationQRCode")

    station = resolve_station(session, station_ref)
    if station is None:
        raise NotFoundError(f"Station not found with id of {station_ref}")
    if not station.is_active:
        raise ValidationError(f"Station {station.name} is not active")

    school_class = resolve_class(session, class_ref)
    if school_class is None:
        raise NotFoundError(f"Class not found with id of {class_ref}")
    if not school_class.is_active:
        raise ValidationError(f"Class {school_class.name} is not active")

    now = _now(now)
    existing = Scan.get_for_pair(session, school_class.id, station.id)
    if existing is None:
        scan = Scan(
            class_id=school_class.id,
            station_id=station.id,
            scanned_at=now,
            scanned_by_id=scanned_by_id,
            device_type=device_type,
            device_browser=device_browser,
            device_ip=device_ip,
        )
        try:
            with session.begin_nested():
                session.add(scan)
                session.flush()
        except IntegrityError:
            # A concurrent request inserted the same pair first.
            existing = Scan.get_for_pair(session, school_class.id, station.id)
            if existing is None:
                raise

    if existing is not None:
        school_class.last_scan_at = now
        session.flush()
        logger.info(
            "Class %s re-scanned station %s", school_class.id, station.id
        )
        return ScanOutcome(
            scan=existing, station=station, school_class=school_class, existing=True
        )

    progress: Optional[ProgressResult] = None
    try:
        with session.begin_nested():
            progress = reconcile_class_progress(session, school_class, now=now)
    except SQLAlchemyError:
        logger.critical(
            "Scan %s saved but class %s progress update failed",
            scan.id,
            school_class.id,
            exc_info=True,
        )

    logger.info(
        "Class %s scanned station %s (scan %s)", school_class.id, station.id, scan.id
    )
    return ScanOutcome(
        scan=scan,
        station=station,
        school_class=school_class,
        existing=False,
        progress=progress,
    )


def scans_for_class(session: Session, class_id: Any, ctx: AuthContext) -> list[Scan]:
    school_class = get_class(session, class_id, ctx)
    return Scan.for_class(session, school_class.id)


def scans_for_station(session: Session, station_id: Any) -> list[Scan]:
    station = get_station(session, station_id)
    return Scan.for_station(session, station.id)


# -------- drawings --------
def list_eligible_classes(
    session: Session, factors: Optional[WeightingFactors] = None
) -> list[EligibleClass]:
    """Classes that would enter a drawing run right now, with their weights."""

    return PrizeDrawEngine(session).eligible_classes(factors)


def _factor(value: Any, field: str) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if number < 0:
        raise ValidationError(f"{field} cannot be negative")
    return number


def _winner_count(value: Any) -> int:
    """Accept whole numbers sent as int, integral float or digit string."""
    if isinstance(value, bool):
        raise ValidationError("Please provide a valid number of winners.")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value <= 0:
        raise ValidationError("Please provide a valid number of winners.")
    return value


def create_drawing(
    session: Session,
    *,
    name: Optional[str],
    created_by: Optional[Account] = None,
    date: Optional[datetime] = None,
    completion_time_factor: Any = 1.0,
    stations_found_factor: Any = 1.0,
) -> Drawing:
    name = _text(name)
    if not name:
        raise ValidationError("Please add a name for the drawing")
    drawing = Drawing(
        name=_max_length(name, 255, "name"),
        date=as_utc(date) if date is not None else None,
        completion_time_factor=_factor(completion_time_factor, "completionTime"),
        stations_found_factor=_factor(stations_found_factor, "stationsFound"),
        created_by_id=created_by.id if created_by is not None else None,
    )
    session.add(drawing)
    session.flush()
    logger.info("Created drawing %s (%s)", drawing.id, drawing.name)
    return drawing


def list_drawings(session: Session) -> list[Drawing]:
    return Drawing.get_all(session)


def get_drawing(session: Session, drawing_id: Any) -> Drawing:
    pk = _lookup_id(drawing_id)
    drawing = session.get(Drawing, pk) if pk is not None else None
    if drawing is None:
        raise NotFoundError(f"Drawing not found with id of {drawing_id}")
    return drawing


def run_drawing(
    session: Session,
    drawing_id: Any,
    number_of_winners: Any,
    prize_description: Optional[str] = None,
    *,
    rng: Optional[random.Random] = None,
    default_prize: str = DEFAULT_PRIZE,
) -> Drawing:
    """Run a pending drawing and persist its winners.

    This function wraps :class:`~qrhunt.prize_draw.engine.PrizeDrawEngine`.
    Winners are not notified here; see :func:`notify_drawing_winners`.

    Raises
    ------
    ValidationError
        Invalid winner count, no active stations or no eligible classes.
    NotFoundError
        If the drawing does not exist.
    ConflictError
        If the drawing was already completed.
    """

    count = _winner_count(number_of_winners)
    drawing = get_drawing(session, drawing_id)
    engine = PrizeDrawEngine(session, rng=rng, default_prize=default_prize)
    engine.run(drawing, count, _text(prize_description))
    session.flush()
    return drawing


def notify_drawing_winners(
    session: Session,
    drawing: Drawing,
    client: Optional["MailClient"] = None,
) -> int:
    """Email the teacher of each winning class that was not notified yet.

    Mail failures are logged and leave the winner unnotified so a later call
    can retry.

    Returns
    -------
    int
        Number of winners notified by this call.
    """

    from .mail.messages import winner_notification

    pending = [w for w in drawing.winners if not w.notified]
    if not pending:
        return 0

    if client is None:
        from .mail.api import MailClient

        try:
            client = MailClient()
        except ValueError:
            logger.error(
                "Mail relay is not configured; %d winners of drawing %s not notified",
                len(pending),
                drawing.id,
            )
            return 0

    sent = 0
    for winner in pending:
        school_class = winner.school_class
        teacher = school_class.teacher if school_class is not None else None
        if teacher is None or not teacher.email:
            logger.warning(
                "Winner class %s of drawing %s has no teacher email",
                winner.class_id,
                drawing.id,
            )
            continue

        subject, text, html = winner_notification(
            school_class.name, drawing.name, winner.prize, teacher.name
        )
        try:
            client.send(teacher.email, subject, text=text, html=html)
        except (requests.RequestException, RuntimeError, ValueError):
            logger.error(
                "Failed to notify class %s of drawing %s",
                winner.class_id,
                drawing.id,
                exc_info=True,
            )
            continue
        winner.mark_notified()
        sent += 1

    session.flush()
    logger.info("Notified %d/%d winners of drawing %s", sent, len(pending), drawing.id)
    return sent


# -------- admin dashboard --------
def scanned_active_counts(session: Session) -> dict[int, int]:
    """Distinct active stations each class has scanned, keyed by class id.

    Counted from the scan table in one grouped query, so listings agree with
    the progress endpoint even when a class's cached set has drifted.
    """

    stmt = (
        select(Scan.class_id, func.count(distinct(Scan.station_id)))
        .join(Station, Station.id == Scan.station_id)
        .where(Station.is_active.is_(True))
        .group_by(Scan.class_id)
    )
    return {class_id: count for class_id, count in session.execute(stmt)}


def _progress_summary(completed: int, total: int) -> dict[str, int]:
    return {
        "completedCount": completed,
        "totalStations": total,
        "progressPercentage": round_half_up(100 * completed / total) if total > 0 else 0,
    }


def admin_stats(session: Session) -> dict[str, int]:
    """Headline counts for the admin dashboard."""

    active_classes = select(func.count(SchoolClass.id)).where(SchoolClass.is_active.is_(True))
    return {
        "totalTeachers": session.scalar(
            select(func.count(Account.id)).where(Account.role == ROLE_TEACHER)
        )
        or 0,
        "totalClasses": session.scalar(active_classes) or 0,
        "activeStations": Station.count_active(session),
        "completedHunts": session.scalar(
            active_classes.where(SchoolClass.is_completed.is_(True))
        )
        or 0,
    }


def recent_activity(session: Session, limit: int = 10) -> list[dict[str, Any]]:
    """Active classes ordered by their latest scan, most recent first.

    Classes that never scanned come last, newest registration first. A
    ``limit`` below 1 falls back to 10.
    """

    if limit < 1:
        limit = 10
    total = Station.count_active(session)
    counts = scanned_active_counts(session)
    stmt = (
        select(SchoolClass)
        .where(SchoolClass.is_active.is_(True))
        .order_by(
            SchoolClass.last_scan_at.is_(None),
            SchoolClass.last_scan_at.desc(),
            SchoolClass.registered_at.desc(),
            SchoolClass.id.desc(),
        )
        .limit(limit)
    )
    activity = []
    for school_class in session.scalars(stmt):
        teacher = school_class.teacher
        activity.append(
            {
                "id": school_class.id,
                "className": school_class.name,
                "teacherName": teacher.name if teacher is not None else "N/A",
                "school": school_class.school,
                "progress": _progress_summary(counts.get(school_class.id, 0), total),
                "lastScanAt": dt_iso(school_class.last_scan_at),
                "isCompleted": school_class.is_completed,
                "completedAt": dt_iso(school_class.completed_at),
            }
        )
    return activity


def list_teachers(session: Session) -> list[Account]:
    stmt = (
        select(Account)
        .where(Account.role == ROLE_TEACHER)
        .order_by(Account.created_at.desc(), Account.id.desc())
    )
    return list(session.scalars(stmt).all())


def all_classes_with_progress(session: Session) -> list[dict[str, Any]]:
    """Every class, inactive ones included, newest registration first."""

    total = Station.count_active(session)
    counts = scanned_active_counts(session)
    stmt = select(SchoolClass).order_by(
        SchoolClass.registered_at.desc(), SchoolClass.id.desc()
    )
    classes = []
    for school_class in session.scalars(stmt):
        data = school_class.to_json()
        data["progress"] = _progress_summary(counts.get(school_class.id, 0), total)
        classes.append(data)
    return classes


def completed_hunts(session: Session) -> list[dict[str, Any]]:
    """Active classes that completed the hunt, most recently completed first.

    ``completionTimeHours`` is the whole number of hours between registration
    and completion.
    """

    total = Station.count_active(session)
    counts = scanned_active_counts(session)
    stmt = (
        select(SchoolClass)
        .where(SchoolClass.is_active.is_(True), SchoolClass.is_completed.is_(True))
        .order_by(SchoolClass.completed_at.desc(), SchoolClass.id.desc())
    )
    hunts = []
    for school_class in session.scalars(stmt):
        registered_at = as_utc(school_class.registered_at)
        completed_at = as_utc(school_class.completed_at)
        hours = None
        if registered_at is not None and completed_at is not None:
            hours = round_half_up((completed_at - registered_at).total_seconds() / 3600)
        data = school_class.to_json()
        data["stationsScanned"] = counts.get(school_class.id, 0)
        data["totalStations"] = total
        data["completionTimeHours"] = hours
        hunts.append(data)
    return hunts
