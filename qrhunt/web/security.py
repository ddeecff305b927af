"""Bearer-token authentication for API routes."""

from __future__ import annotations

from functools import wraps
from typing import Callable

from flask import current_app, g, request

from ..auth import AuthContext, bearer_token, decode_token, require_role


def current_auth() -> AuthContext:
    return g.auth


def requires_roles(*roles: str) -> Callable:
    """Decorator rejecting requests without a valid token or with another role.

    With no ``roles`` any authenticated caller is accepted.
    """

    def decorator(view: Callable) -> Callable:
        @wraps(view)
        def wrapper(*args, **kwargs):
            settings = current_app.config["QRHUNT_SETTINGS"]
            token = bearer_token(request.headers.get("Authorization"))
            g.auth = require_role(decode_token(token, settings), *roles)
            return view(*args, **kwargs)

        return wrapper

    return decorator
