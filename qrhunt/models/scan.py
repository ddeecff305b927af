from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE
from ..db.utils import dt_iso

if TYPE_CHECKING:
    from .account import Account
    from .school_class import SchoolClass
    from .station import Station


class Scan(Base):
    """Immutable record of a class scanning a station.

    At most one row exists per ``(class_id, station_id)`` pair; the unique
    constraint is what makes concurrent re-scans safe.
    """

    __tablename__ = "scans"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key."""

    class_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    """Class that scanned the station."""

    station_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("stations.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    """Station that was scanned."""

    scanned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    """Timestamp of the scan."""

    scanned_by_id: Mapped[Optional[int]] = mapped_column(
        ID_TYPE, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )
    """Account whose token recorded the scan, if any."""

    device_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    device_browser: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    device_ip: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    school_class: Mapped["SchoolClass"] = relationship(back_populates="scans")
    station: Mapped["Station"] = relationship(back_populates="scans")
    scanned_by: Mapped[Optional["Account"]] = relationship()

    __table_args__ = (
        UniqueConstraint("class_id", "station_id", name="uq_scan_class_station"),
        Index("ix_scans_scanned_at", "scanned_at"),
    )

    def __init__(
        self,
        *,
        class_id: Optional[int] = None,
        station_id: Optional[int] = None,
        school_class: Optional["SchoolClass"] = None,
        station: Optional["Station"] = None,
        scanned_at: Optional[datetime] = None,
        scanned_by_id: Optional[int] = None,
        device_type: Optional[str] = None,
        device_browser: Optional[str] = None,
        device_ip: Optional[str] = None,
    ) -> None:
        if school_class is not None:
            self.school_class = school_class
        if class_id is not None:
            self.class_id = class_id
        if station is not None:
            self.station = station
        if station_id is not None:
            self.station_id = station_id
        if scanned_at is not None:
            self.scanned_at = scanned_at
        self.scanned_by_id = scanned_by_id
        self.device_type = device_type
        self.device_browser = device_browser
        self.device_ip = device_ip

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<Scan(id={id}, class_id={cls}, station_id={st}, scanned_at={at})>".format(
            id=self.id,
            cls=self.class_id,
            st=self.station_id,
            at=self.scanned_at,
        )

    @classmethod
    def get_for_pair(
        cls, session: Session, class_id: int, station_id: int
    ) -> Optional["Scan"]:
        """Return the scan of ``station_id`` by ``class_id`` if one exists."""

        return session.scalar(
            select(cls).where(cls.class_id == class_id, cls.station_id == station_id)
        )

    @classmethod
    def for_class(cls, session: Session, class_id: int) -> list["Scan"]:
        """Return every scan recorded for ``class_id`` in chronological order."""

        stmt = select(cls).where(cls.class_id == class_id).order_by(cls.scanned_at, cls.id)
        return list(session.scalars(stmt).all())

    @classmethod
    def for_station(cls, session: Session, station_id: int) -> list["Scan"]:
        stmt = (
            select(cls).where(cls.station_id == station_id).order_by(cls.scanned_at, cls.id)
        )
        return list(session.scalars(stmt).all())

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "classId": self.class_id,
            "stationId": self.station_id,
            "scannedAt": dt_iso(self.scanned_at),
            "scannedBy": self.scanned_by_id,
            "deviceInfo": {
                "type": self.device_type,
                "browser": self.device_browser,
                "ip": self.device_ip,
            },
        }
