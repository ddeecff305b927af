"""Runtime settings read from the environment (and an optional ``.env`` file)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .db.utils import resolve_sqlite_url

# Project root directory (repo root)
ROOT_DIR = Path(__file__).resolve().parents[1]

DEFAULT_DB_URL = "sqlite:///./dev.db"
DEFAULT_PRIZE = "Scavenger Hunt Prize"
DEFAULT_JWT_EXPIRE_MINUTES = 30 * 24 * 60
DEFAULT_FRONTEND_URL = "http://localhost:5173"


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"Environment variable '{name}' must be an integer") from exc


@dataclass(frozen=True)
class Settings:
    """Application settings.

    Attributes
    ----------
    db_url : str
        SQLAlchemy database URL. Relative SQLite paths are resolved against
        the repository root.
    jwt_secret : Optional[str]
        Secret used to sign bearer tokens. Token issuance fails while unset.
    jwt_expire_minutes : int
        Lifetime of issued tokens.
    mail_api_base_url : Optional[str]
        Base URL of the HTTP mail relay used for winner notifications.
    mail_api_key : Optional[str]
        API key sent as a bearer token to the mail relay.
    mail_from_address : Optional[str]
        Sender address for outgoing mail.
    mail_from_name : str
        Sender display name for outgoing mail.
    default_prize : str
        Prize text used when a drawing is run without a description.
    log_level : str
        Root log level name.
    frontend_url : str
        Origin of the web frontend; station QR codes point at
        ``<frontend_url>/scan-station/<id>``.
    """

    db_url: str = DEFAULT_DB_URL
    jwt_secret: Optional[str] = None
    jwt_expire_minutes: int = DEFAULT_JWT_EXPIRE_MINUTES
    mail_api_base_url: Optional[str] = None
    mail_api_key: Optional[str] = None
    mail_from_address: Optional[str] = None
    mail_from_name: str = "QR Scavenger Hunt Admin"
    default_prize: str = DEFAULT_PRIZE
    log_level: str = "INFO"
    frontend_url: str = DEFAULT_FRONTEND_URL


def load_settings() -> Settings:
    """Build :class:`Settings` from environment variables."""

    load_dotenv()
    return Settings(
        db_url=resolve_sqlite_url(os.getenv("DB_URL", DEFAULT_DB_URL), ROOT_DIR),
        jwt_secret=os.getenv("JWT_SECRET") or None,
        jwt_expire_minutes=_get_int("JWT_EXPIRE_MINUTES", DEFAULT_JWT_EXPIRE_MINUTES),
        mail_api_base_url=os.getenv("MAIL_API_BASE_URL") or None,
        mail_api_key=os.getenv("MAIL_API_KEY") or None,
        mail_from_address=os.getenv("MAIL_FROM_ADDRESS") or None,
        mail_from_name=os.getenv("MAIL_FROM_NAME", "QR Scavenger Hunt Admin"),
        default_prize=os.getenv("DEFAULT_PRIZE", DEFAULT_PRIZE),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        frontend_url=os.getenv("FRONTEND_URL", DEFAULT_FRONTEND_URL),
    )
