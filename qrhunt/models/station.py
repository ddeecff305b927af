from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Integer,
    String,
    Text,
    func,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE
from .utils import generate_unique_hex_code
from ..db.utils import dt_iso

if TYPE_CHECKING:
    from .scan import Scan

AGE_GROUPS = (
    "Elementary (K-5)",
    "Middle School (6-8)",
    "High School (9-12)",
    "All Ages",
)
DIFFICULTIES = ("Easy", "Medium", "Hard")
ACTIVITY_TYPES = (
    "Interactive Demo",
    "Hands-on Activity",
    "Information Display",
    "Q&A Session",
    "Competition/Game",
)

QR_CODE_BYTES = 8


class Station(Base):
    """Physical checkpoint that classes find and scan.

    Only active stations count toward a class's total. A station that already
    has scans is deactivated rather than deleted so historical scans keep
    their reference.
    """

    __tablename__ = "stations"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key. Also the value printed into the station's QR code."""

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    qr_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    """Random 16 character hex identifier generated on creation."""

    educational_info: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    fun_facts: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    safety_tips: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    learning_objectives: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    age_group: Mapped[str] = mapped_column(String(30), nullable=False, default="All Ages")
    difficulty: Mapped[str] = mapped_column(String(10), nullable=False, default="Easy")
    estimated_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    """Expected visit duration in minutes (1-60)."""

    activity_type: Mapped[str] = mapped_column(
        String(30), nullable=False, default="Information Display"
    )
    max_participants: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    location: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    display_order: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    """Whether the station counts toward hunt completion."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    scans: Mapped[list["Scan"]] = relationship(back_populates="station")

    __table_args__ = (
        CheckConstraint(
            "estimated_time IS NULL OR (estimated_time >= 1 AND estimated_time <= 60)",
            name="estimated_time_range",
        ),
        CheckConstraint("max_participants >= 1", name="max_participants_min"),
    )

    def __init__(
        self,
        *,
        name: str,
        description: Optional[str] = None,
        qr_code: Optional[str] = None,
        educational_info: Optional[str] = None,
        image_url: Optional[str] = None,
        fun_facts: Optional[list[str]] = None,
        safety_tips: Optional[list[str]] = None,
        learning_objectives: Optional[list[str]] = None,
        age_group: str = "All Ages",
        difficulty: str = "Easy",
        estimated_time: Optional[int] = None,
        activity_type: str = "Information Display",
        max_participants: int = 30,
        location: Optional[str] = None,
        display_order: Optional[int] = None,
        is_active: bool = True,
    ) -> None:
        self.name = name
        self.description = description
        self.qr_code = qr_code or generate_unique_hex_code(
            Station.qr_code, nbytes=QR_CODE_BYTES
        )
        self.educational_info = educational_info
        self.image_url = image_url
        self.fun_facts = list(fun_facts or [])
        self.safety_tips = list(safety_tips or [])
        self.learning_objectives = list(learning_objectives or [])
        self.age_group = age_group
        self.difficulty = difficulty
        self.estimated_time = estimated_time
        self.activity_type = activity_type
        self.max_participants = max_participants
        self.location = location
        self.display_order = display_order
        self.is_active = is_active

    def __repr__(self) -> str:
        return (
            f"<Station(id={self.id}, name='{self.name}', "
            f"qr_code='{self.qr_code}', is_active={self.is_active})>"
        )

    @classmethod
    def get_by_qr_code(cls, session: Session, qr_code: str) -> Optional["Station"]:
        """Return the station printed with ``qr_code`` if it exists."""

        return session.scalar(select(cls).where(cls.qr_code == qr_code.strip().lower()))

    @classmethod
    def get_active(cls, session: Session) -> list["Station"]:
        """Return all active stations ordered for display."""

        stmt = (
            select(cls)
            .where(cls.is_active.is_(True))
            .order_by(cls.display_order.is_(None), cls.display_order, cls.id)
        )
        return list(session.scalars(stmt).all())

    @classmethod
    def count_active(cls, session: Session) -> int:
        return session.scalar(
            select(func.count(cls.id)).where(cls.is_active.is_(True))
        ) or 0

    def display_json(self) -> dict[str, Any]:
        """Subset shown to a class right after scanning the station."""

        return {
            "id": self.id,
            "name": self.name,
            "educationalInfo": self.educational_info,
            "imageUrl": self.image_url,
            "funFacts": list(self.fun_facts or []),
            "safetyTips": list(self.safety_tips or []),
            "learningObjectives": list(self.learning_objectives or []),
            "activityType": self.activity_type,
            "ageGroup": self.age_group,
            "difficulty": self.difficulty,
            "estimatedTime": self.estimated_time,
            "maxParticipants": self.max_participants,
        }

    def to_json(self) -> dict[str, Any]:
        data = self.display_json()
        data.update(
            {
                "description": self.description,
                "qrCode": self.qr_code,
                "location": self.location,
                "order": self.display_order,
                "isActive": self.is_active,
                "createdAt": dt_iso(self.created_at),
                "updatedAt": dt_iso(self.updated_at),
            }
        )
        return data
