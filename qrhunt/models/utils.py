"""Utility helpers for the models package."""

from __future__ import annotations

import secrets
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.orm import InstrumentedAttribute, Session


def generate_unique_hex_code(
    column: InstrumentedAttribute,
    *,
    nbytes: int,
    session: Optional[Session] = None,
    transform: Callable[[str], str] = lambda value: value,
    max_attempts: int = 32,
) -> str:
    """Return a random hex code not yet used in ``column``.

    When a session is provided, the helper retries if the generated value is
    already present in the table or pending in the session. Without a session
    the first candidate is returned and the unique constraint on the column is
    the only guard.

    Parameters
    ----------
    column : InstrumentedAttribute
        Mapped attribute holding the codes, e.g. ``Station.qr_code``.
    nbytes : int
        Number of random bytes; the code has ``2 * nbytes`` hex characters.
    session : Optional[Session], default: None
        Session used for collision checks.
    transform : Callable[[str], str]
        Applied to every candidate, e.g. ``str.upper``.
    max_attempts : int, default: 32
        Give up after this many collisions.
    """

    owner = column.class_
    key = column.key

    for _ in range(max_attempts):
        candidate = transform(secrets.token_hex(nbytes))
        if session is None:
            return candidate

        pending = any(
            isinstance(obj, owner) and getattr(obj, key, None) == candidate
            for obj in session.new
        )
        if pending:
            continue

        exists = session.scalar(select(column).where(column == candidate))
        if exists is not None:
            continue

        return candidate

    raise RuntimeError(
        f"Unable to generate a unique {owner.__name__}.{key} after {max_attempts} attempts"
    )
