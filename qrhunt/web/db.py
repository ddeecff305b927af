"""Request-scoped SQLAlchemy sessions."""

from __future__ import annotations

from typing import Optional

from flask import Flask, current_app, g
from sqlalchemy.orm import Session, sessionmaker

SESSION_FACTORY_KEY = "qrhunt.session_factory"


def init_db(app: Flask, session_factory: sessionmaker) -> None:
    app.extensions[SESSION_FACTORY_KEY] = session_factory
    app.teardown_appcontext(close_session)


def get_session() -> Session:
    """Return the session bound to the current request, opening it on first use.

    Handlers commit explicitly; anything left uncommitted is rolled back when
    the request ends.
    """
    if "db_session" not in g:
        factory = current_app.extensions[SESSION_FACTORY_KEY]
        g.db_session = factory()
    return g.db_session


def close_session(exc: Optional[BaseException] = None) -> None:
    session = g.pop("db_session", None)
    if session is None:
        return
    try:
        session.rollback()
    finally:
        session.close()
