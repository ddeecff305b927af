from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import CheckConstraint, DateTime, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship, validates

from .base import Base
from .id_type import ID_TYPE
from ..db.utils import dt_iso

if TYPE_CHECKING:
    from .school_class import SchoolClass

ROLE_TEACHER = "teacher"
ROLE_ADMIN = "admin"
ROLES = (ROLE_TEACHER, ROLE_ADMIN)


class Account(Base):
    """Login account for a teacher or an admin."""

    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, index=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=ROLE_TEACHER)
    school: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    profile_picture: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    classes: Mapped[list["SchoolClass"]] = relationship(back_populates="teacher")

    __table_args__ = (
        CheckConstraint("role IN ('teacher','admin')", name="role_enum"),
    )

    def __init__(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: str = ROLE_TEACHER,
        school: Optional[str] = None,
    ) -> None:
        self.name = name
        self.email = email
        self.password_hash = password_hash
        self.role = role
        self.school = school

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, email='{self.email}', role='{self.role}')>"

    @validates("email")
    def _normalize_email(self, _key: str, value: str) -> str:
        normalized = (value or "").strip().lower()
        if not normalized:
            raise ValueError("email must not be empty")
        return normalized

    @validates("role")
    def _check_role(self, _key: str, value: str) -> str:
        if value not in ROLES:
            raise ValueError(f"role must be one of {', '.join(ROLES)}")
        return value

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def get_by_email(cls, session: Session, email: str) -> Optional["Account"]:
        """Get an account by its email address (case-insensitive)."""
        return session.scalar(select(cls).where(cls.email == email.strip().lower()))

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "school": self.school,
            "profilePicture": self.profile_picture,
            "bio": self.bio,
            "phone": self.phone,
            "createdAt": dt_iso(self.created_at),
        }
