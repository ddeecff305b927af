"""Prize drawings."""

from __future__ import annotations

import logging
from typing import Optional

from flask import Blueprint, current_app, jsonify

from ... import workflows
from ...mail.api import MailClient
from ...models import ROLE_ADMIN
from ...prize_draw import WeightingFactors
from ..db import get_session
from ..payloads import json_body, parse_datetime
from ..security import current_auth, requires_roles

logger = logging.getLogger(__name__)

drawings_bp = Blueprint("drawings", __name__, url_prefix="/api/drawings")


def _mail_client() -> Optional[MailClient]:
    factory = current_app.config.get("MAIL_CLIENT_FACTORY")
    if factory is not None:
        return factory()
    settings = current_app.config["QRHUNT_SETTINGS"]
    try:
        return MailClient(
            base_url=settings.mail_api_base_url,
            api_key=settings.mail_api_key,
            from_address=settings.mail_from_address,
            from_name=settings.mail_from_name,
        )
    except ValueError as exc:
        logger.warning("Winner notification disabled: %s", exc)
        return None


@drawings_bp.get("/eligible-classes")
@requires_roles(ROLE_ADMIN)
def eligible_classes():
    eligible = workflows.list_eligible_classes(get_session())
    return jsonify(
        {"success": True, "count": len(eligible), "data": [e.to_json() for e in eligible]}
    )


@drawings_bp.get("")
@requires_roles(ROLE_ADMIN)
def list_drawings():
    drawings = workflows.list_drawings(get_session())
    return jsonify(
        {"success": True, "count": len(drawings), "data": [d.to_json() for d in drawings]}
    )


@drawings_bp.post("")
@requires_roles(ROLE_ADMIN)
def create_drawing():
    data = json_body()
    factors = data.get("weightingFactors") or {}
    if not isinstance(factors, dict):
        factors = {}
    defaults = WeightingFactors()

    session = get_session()
    drawing = workflows.create_drawing(
        session,
        name=data.get("name"),
        created_by=workflows.current_account(session, current_auth()),
        date=parse_datetime(data.get("date"), "date"),
        completion_time_factor=factors.get("completionTime", defaults.completion_time),
        stations_found_factor=factors.get("stationsFound", defaults.stations_found),
    )
    session.commit()
    return jsonify({"success": True, "data": drawing.to_json()}), 201


@drawings_bp.get("/<drawing_id>")
@requires_roles(ROLE_ADMIN)
def get_drawing(drawing_id):
    drawing = workflows.get_drawing(get_session(), drawing_id)
    return jsonify({"success": True, "data": drawing.to_json()})


@drawings_bp.post("/<drawing_id>/run")
@requires_roles(ROLE_ADMIN)
def run_drawing(drawing_id):
    data = json_body()
    settings = current_app.config["QRHUNT_SETTINGS"]
    session = get_session()

    drawing = workflows.run_drawing(
        session,
        drawing_id,
        data.get("numberOfWinners"),
        data.get("prizeDescription"),
        default_prize=settings.default_prize,
    )
    session.commit()

    # Notification is best effort and committed separately from the run.
    client = _mail_client()
    if client is not None:
        workflows.notify_drawing_winners(session, drawing, client)
        session.commit()

    return jsonify({"success": True, "data": drawing.to_json()})
