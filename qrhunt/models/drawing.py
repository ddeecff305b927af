"""Database models for prize drawings."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE
from ..db.utils import dt_iso

if TYPE_CHECKING:
    from .account import Account
    from .school_class import SchoolClass

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"

drawing_eligible_classes = Table(
    "drawing_eligible_classes",
    Base.metadata,
    Column(
        "drawing_id",
        ID_TYPE,
        ForeignKey("drawings.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "class_id",
        ID_TYPE,
        ForeignKey("classes.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)
"""Classes found eligible when the drawing was run."""


class Drawing(Base):
    """A configured raffle that picks winners among classes that found every station."""

    __tablename__ = "drawings"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key."""

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    """Display name, e.g. ``"Spring Education Day Raffle"``."""

    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    """Scheduled date of the drawing."""

    status: Mapped[str] = mapped_column(String(20), nullable=False, default=STATUS_PENDING)
    """``"pending"`` until run, then ``"completed"``. Never goes back."""

    completion_time_factor: Mapped[Optional[float]] = mapped_column(
        Float, nullable=True, default=1.0
    )
    """Flat weight bonus for classes that completed the hunt over a positive time span."""

    stations_found_factor: Mapped[Optional[float]] = mapped_column(
        Float, nullable=True, default=1.0
    )
    """Weight bonus per station found."""

    created_by_id: Mapped[Optional[int]] = mapped_column(
        ID_TYPE, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )
    """Admin who configured the drawing."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    """Timestamp of the run that completed the drawing."""

    created_by: Mapped[Optional["Account"]] = relationship()
    eligible_classes: Mapped[list["SchoolClass"]] = relationship(
        secondary=drawing_eligible_classes, order_by="SchoolClass.id"
    )
    winners: Mapped[list["DrawingWinner"]] = relationship(
        back_populates="drawing",
        cascade="all, delete-orphan",
        order_by="DrawingWinner.position",
    )

    __table_args__ = (
        CheckConstraint("status IN ('pending','completed')", name="status_enum"),
    )

    def __init__(
        self,
        *,
        name: str,
        date: Optional[datetime] = None,
        completion_time_factor: Optional[float] = 1.0,
        stations_found_factor: Optional[float] = 1.0,
        created_by_id: Optional[int] = None,
        status: str = STATUS_PENDING,
    ) -> None:
        self.name = name
        if date is not None:
            self.date = date
        self.completion_time_factor = completion_time_factor
        self.stations_found_factor = stations_found_factor
        self.created_by_id = created_by_id
        self.status = status

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<Drawing(id={id}, name={name}, status={status})>".format(
            id=self.id,
            name=self.name,
            status=self.status,
        )

    @property
    def is_completed(self) -> bool:
        return self.status == STATUS_COMPLETED

    @classmethod
    def get_all(cls, session: Session) -> list["Drawing"]:
        return list(session.scalars(select(cls).order_by(cls.date.desc(), cls.id.desc())).all())

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "date": dt_iso(self.date),
            "status": self.status,
            "weightingFactors": {
                "completionTime": self.completion_time_factor,
                "stationsFound": self.stations_found_factor,
            },
            "eligibleClasses": [c.id for c in self.eligible_classes],
            "winners": [w.to_json() for w in self.winners],
            "createdBy": (
                {"id": self.created_by.id, "name": self.created_by.name, "email": self.created_by.email}
                if self.created_by is not None
                else None
            ),
            "createdAt": dt_iso(self.created_at),
            "completedAt": dt_iso(self.completed_at),
        }


class DrawingWinner(Base):
    """A class selected by a drawing, with the prize it won."""

    __tablename__ = "drawing_winners"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    drawing_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("drawings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    class_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    """Draw order, starting at 1."""

    prize: Mapped[str] = mapped_column(String(255), nullable=False)
    notified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    """Set once the winning teacher has been emailed successfully."""

    notified_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    drawing: Mapped["Drawing"] = relationship(back_populates="winners")
    school_class: Mapped["SchoolClass"] = relationship()

    __table_args__ = (
        UniqueConstraint("drawing_id", "class_id", name="uq_drawing_winner_class"),
        UniqueConstraint("drawing_id", "position", name="uq_drawing_winner_position"),
    )

    def __init__(
        self,
        *,
        class_id: int,
        position: int,
        prize: str,
        notified: bool = False,
    ) -> None:
        self.class_id = class_id
        self.position = position
        self.prize = prize
        self.notified = notified

    def mark_notified(self, when: Optional[datetime] = None) -> None:
        self.notified = True
        self.notified_at = when or datetime.now(timezone.utc)

    def to_json(self) -> dict[str, Any]:
        school_class = self.school_class
        return {
            "class": self.class_id,
            "className": school_class.name if school_class is not None else None,
            "school": school_class.school if school_class is not None else None,
            "prize": self.prize,
            "notified": self.notified,
        }
