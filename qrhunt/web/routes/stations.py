"""Station management."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ... import workflows
from ...models import ROLE_ADMIN
from ..db import get_session
from ..payloads import STATION_KEYS, json_body, translate
from ..security import requires_roles

stations_bp = Blueprint("stations", __name__, url_prefix="/api/stations")


@stations_bp.get("")
@requires_roles()
def list_stations():
    active_only = request.args.get("active", "").lower() in ("1", "true", "yes")
    stations = workflows.list_stations(get_session(), active_only=active_only)
    return jsonify(
        {"success": True, "count": len(stations), "data": [s.to_json() for s in stations]}
    )


@stations_bp.post("")
@requires_roles(ROLE_ADMIN)
def create_station():
    session = get_session()
    station = workflows.create_station(session, translate(json_body(), STATION_KEYS))
    session.commit()
    return jsonify({"success": True, "data": station.to_json()}), 201


@stations_bp.get("/<station_id>")
@requires_roles()
def get_station(station_id):
    station = workflows.get_station(get_session(), station_id)
    return jsonify({"success": True, "data": station.to_json()})


@stations_bp.get("/<station_id>/qrcode")
@requires_roles(ROLE_ADMIN)
def station_qr_code(station_id):
    data = workflows.station_qr_code(
        get_session(), station_id, current_app.config["QRHUNT_SETTINGS"]
    )
    return jsonify({"success": True, "data": data})


@stations_bp.put("/<station_id>")
@requires_roles(ROLE_ADMIN)
def update_station(station_id):
    session = get_session()
    station = workflows.update_station(
        session, station_id, translate(json_body(), STATION_KEYS)
    )
    session.commit()
    return jsonify({"success": True, "data": station.to_json()})


@stations_bp.delete("/<station_id>")
@requires_roles(ROLE_ADMIN)
def delete_station(station_id):
    session = get_session()
    station, deleted = workflows.deactivate_station(session, station_id)
    session.commit()
    return jsonify(
        {
            "success": True,
            "deleted": deleted,
            "data": {} if deleted else station.to_json(),
        }
    )
