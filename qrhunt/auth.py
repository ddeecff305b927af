"""Password hashing, bearer tokens and role checks."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Optional

from jose import JWTError, jwt
from werkzeug.security import check_password_hash, generate_password_hash

from .config import Settings, load_settings
from .errors import AuthenticationError, AuthorizationError
from .models.account import ROLES, ROLE_ADMIN

if TYPE_CHECKING:
    from .models import Account

ALGORITHM = "HS256"
MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class AuthContext:
    """Identity of the caller, decoded from a bearer token."""

    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def check_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def _secret(settings: Settings) -> str:
    if not settings.jwt_secret:
        raise RuntimeError("Environment variable 'JWT_SECRET' is not set")
    return settings.jwt_secret


def issue_token(
    account: "Account",
    settings: Optional[Settings] = None,
    *,
    now: Optional[datetime] = None,
) -> str:
    """Return a signed token for ``account``.

    The payload is ``{"sub": <id as str>, "role": <role>, "exp": <unix ts>}``.
    """
    settings = settings or load_settings()
    now = now or datetime.now(timezone.utc)
    payload = {
        "sub": str(account.id),
        "role": account.role,
        "exp": now + timedelta(minutes=settings.jwt_expire_minutes),
    }
    return jwt.encode(payload, _secret(settings), algorithm=ALGORITHM)


def decode_token(token: str, settings: Optional[Settings] = None) -> AuthContext:
    """Verify ``token`` and return the caller identity.

    Raises
    ------
    AuthenticationError
        If the token is malformed, forged, expired or carries an unknown role.
    """
    settings = settings or load_settings()
    try:
        payload = jwt.decode(token, _secret(settings), algorithms=[ALGORITHM])
    except JWTError:
        raise AuthenticationError("Not authorized to access this route")

    role = payload.get("role")
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise AuthenticationError("Not authorized to access this route")
    if role not in ROLES:
        raise AuthenticationError("Not authorized to access this route")
    return AuthContext(user_id=user_id, role=role)


def bearer_token(header: Optional[str]) -> str:
    """Extract the token from an ``Authorization: Bearer ...`` header."""
    if not header or not header.startswith("Bearer "):
        raise AuthenticationError("Not authorized to access this route")
    token = header.split(" ", 1)[1].strip()
    if not token:
        raise AuthenticationError("Not authorized to access this route")
    return token


def require_role(ctx: AuthContext, *roles: str) -> AuthContext:
    if roles and ctx.role not in roles:
        raise AuthorizationError(
            f"User role {ctx.role} is not authorized to access this route"
        )
    return ctx
