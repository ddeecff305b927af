"""Typed errors raised by workflows and converted to JSON by the web layer."""

from __future__ import annotations


class HuntError(Exception):
    """Base error carrying an HTTP-style status code.

    Parameters
    ----------
    message : str
        Human readable message returned to API callers.
    status_code : int, default: 500
        HTTP status the web layer responds with.
    """

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_json(self) -> dict:
        return {"success": False, "error": self.message}


class ValidationError(HuntError):
    status_code = 400


class AuthenticationError(HuntError):
    status_code = 401


class AuthorizationError(HuntError):
    status_code = 403


class NotFoundError(HuntError):
    status_code = 404


class ConflictError(HuntError):
    status_code = 409


__all__ = [
    "HuntError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
]
