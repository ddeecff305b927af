from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .account import Account, ROLE_ADMIN, ROLE_TEACHER, ROLES  # noqa: F401
from .station import Station  # noqa: F401
from .school_class import SchoolClass, class_scanned_stations  # noqa: F401
from .scan import Scan  # noqa: F401
from .drawing import (  # noqa: F401
    Drawing,
    DrawingWinner,
    STATUS_COMPLETED,
    STATUS_PENDING,
    drawing_eligible_classes,
)

__all__ = [
    "Base",
    "Account",
    "ROLE_ADMIN",
    "ROLE_TEACHER",
    "ROLES",
    "Station",
    "SchoolClass",
    "class_scanned_stations",
    "Scan",
    "Drawing",
    "DrawingWinner",
    "STATUS_COMPLETED",
    "STATUS_PENDING",
    "drawing_eligible_classes",
]
