"""Account registration, login and profile."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from ... import workflows
from ...auth import issue_token
from ..db import get_session
from ..payloads import PROFILE_KEYS, json_body, translate
from ..security import current_auth, requires_roles

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register():
    data = json_body()
    session = get_session()
    # Public sign-up always creates teacher accounts; admins are provisioned.
    account = workflows.register_account(
        session,
        name=data.get("name"),
        email=data.get("email"),
        password=data.get("password"),
        school=data.get("school"),
    )
    token = issue_token(account, current_app.config["QRHUNT_SETTINGS"])
    session.commit()
    return jsonify({"success": True, "token": token, "user": account.to_json()}), 201


@auth_bp.post("/login")
def login():
    data = json_body()
    account, token = workflows.authenticate(
        get_session(),
        data.get("email"),
        data.get("password"),
        current_app.config["QRHUNT_SETTINGS"],
    )
    return jsonify({"success": True, "token": token, "user": account.to_json()})


@auth_bp.get("/me")
@requires_roles()
def me():
    account = workflows.current_account(get_session(), current_auth())
    return jsonify({"success": True, "data": account.to_json()})


@auth_bp.put("/profile")
@requires_roles()
def update_profile():
    session = get_session()
    account = workflows.update_profile(
        session, current_auth(), translate(json_body(), PROFILE_KEYS)
    )
    session.commit()
    return jsonify({"success": True, "user": account.to_json()})


@auth_bp.get("/logout")
def logout():
    # Tokens are stateless; the client drops its copy.
    return jsonify({"success": True, "message": "Logged out successfully"})
