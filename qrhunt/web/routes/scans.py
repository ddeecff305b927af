"""Scan recording."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from ... import workflows
from ...models import ROLE_ADMIN
from ..db import get_session
from ..payloads import json_body
from ..security import current_auth, requires_roles

scans_bp = Blueprint("scans", __name__, url_prefix="/api/scans")


@scans_bp.post("")
@requires_roles()
def record_scan():
    data = json_body()
    device = data.get("deviceInfo") or {}
    if not isinstance(device, dict):
        device = {}

    session = get_session()
    outcome = workflows.record_scan(
        session,
        data.get("classId"),
        data.get("stationQRCode"),
        scanned_by_id=current_auth().user_id,
        device_type=device.get("type"),
        device_browser=device.get("browser") or request.user_agent.string or None,
        device_ip=request.remote_addr,
    )
    session.commit()

    body = {
        "success": True,
        "message": outcome.message,
        "data": outcome.scan.to_json(),
        "stationData": outcome.station.display_json(),
    }
    if outcome.existing:
        body["existing"] = True
        return jsonify(body), 200
    if outcome.progress is not None:
        body["progress"] = outcome.progress.to_json()
    return jsonify(body), 201


@scans_bp.get("/class/<class_id>")
@requires_roles()
def scans_by_class(class_id):
    scans = workflows.scans_for_class(get_session(), class_id, current_auth())
    return jsonify({"success": True, "count": len(scans), "data": [s.to_json() for s in scans]})


@scans_bp.get("/station/<station_id>")
@requires_roles(ROLE_ADMIN)
def scans_by_station(station_id):
    scans = workflows.scans_for_station(get_session(), station_id)
    return jsonify({"success": True, "count": len(scans), "data": [s.to_json() for s in scans]})
