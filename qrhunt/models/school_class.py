from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE
from .utils import generate_unique_hex_code
from ..db.utils import dt_iso

if TYPE_CHECKING:
    from .account import Account
    from .scan import Scan
    from .station import Station

CLASS_CODE_BYTES = 3

class_scanned_stations = Table(
    "class_scanned_stations",
    Base.metadata,
    Column(
        "class_id",
        ID_TYPE,
        ForeignKey("classes.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "station_id",
        ID_TYPE,
        ForeignKey("stations.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)
"""Cached set of distinct stations a class has scanned.

Derived from ``scans``; the composite primary key keeps it a set.
"""


class SchoolClass(Base):
    """A school class taking part in the hunt, owned by a teacher account."""

    def __init__(
        self,
        *,
        name: str,
        teacher: Optional["Account"] = None,
        teacher_id: Optional[int] = None,
        school: str,
        grade: str,
        student_count: int,
        class_code: Optional[str] = None,
        class_picture: Optional[str] = None,
        description: Optional[str] = None,
        is_active: bool = True,
        registered_at: Optional[datetime] = None,
    ):
        self.name = name
        if teacher is not None:
            self.teacher = teacher
        if teacher_id is not None:
            self.teacher_id = teacher_id
        self.school = school
        self.grade = grade
        self.student_count = student_count
        self.class_code = class_code or generate_unique_hex_code(
            SchoolClass.class_code, nbytes=CLASS_CODE_BYTES, transform=str.upper
        )
        self.class_picture = class_picture
        self.description = description
        self.is_active = is_active
        self.is_completed = False
        if registered_at is not None:
            self.registered_at = registered_at

    __tablename__ = "classes"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    teacher_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    class_code: Mapped[str] = mapped_column(String(12), unique=True, nullable=False)
    school: Mapped[str] = mapped_column(String(255), nullable=False)
    grade: Mapped[str] = mapped_column(String(50), nullable=False)
    student_count: Mapped[int] = mapped_column(Integer, nullable=False)
    class_picture: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_scan_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    teacher: Mapped["Account"] = relationship(back_populates="classes")
    scans: Mapped[list["Scan"]] = relationship(
        back_populates="school_class", cascade="all, delete-orphan"
    )
    stations_scanned: Mapped[set["Station"]] = relationship(
        secondary=class_scanned_stations
    )

    def __repr__(self) -> str:
        return (
            f"<SchoolClass(id={self.id}, name='{self.name}', "
            f"class_code='{self.class_code}', is_completed={self.is_completed})>"
        )

    @classmethod
    def get_by_class_code(cls, session: Session, class_code: str) -> Optional["SchoolClass"]:
        """Retrieve a class by its join code."""

        return session.scalar(
            select(cls).where(cls.class_code == class_code.strip().upper())
        )

    @classmethod
    def get_active(cls, session: Session) -> list["SchoolClass"]:
        return list(
            session.scalars(
                select(cls).where(cls.is_active.is_(True)).order_by(cls.id)
            ).all()
        )

    def owned_by(self, account_id: int) -> bool:
        return self.teacher_id == account_id

    def mark_completed(self, completed_at: Optional[datetime] = None) -> bool:
        """Latch the class as completed.

        Completion is one-way: later station activations never revert it, and
        calling this on an already completed class keeps the original
        ``completed_at``.

        Returns
        -------
        bool
            ``True`` if the class transitioned to completed on this call.
        """

        if self.is_completed:
            return False
        self.is_completed = True
        self.completed_at = completed_at or datetime.now(timezone.utc)
        return True

    def to_json(self, *, include_stations: bool = False) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "classCode": self.class_code,
            "school": self.school,
            "grade": self.grade,
            "studentCount": self.student_count,
            "classPicture": self.class_picture,
            "description": self.description,
            "teacher": (
                {
                    "id": self.teacher.id,
                    "name": self.teacher.name,
                    "email": self.teacher.email,
                }
                if self.teacher is not None
                else None
            ),
            "registeredAt": dt_iso(self.registered_at),
            "isActive": self.is_active,
            "isCompleted": self.is_completed,
            "completedAt": dt_iso(self.completed_at),
            "lastScanAt": dt_iso(self.last_scan_at),
        }
        station_ids = sorted(s.id for s in self.stations_scanned)
        if include_stations:
            data["stationsScanned"] = [
                {"id": s.id, "name": s.name}
                for s in sorted(self.stations_scanned, key=lambda s: s.id)
            ]
        else:
            data["stationsScanned"] = station_ids
        return data
