"""Admin dashboard listings."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from ... import workflows
from ...models import ROLE_ADMIN
from ..db import get_session
from ..security import requires_roles

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/stats")
@requires_roles(ROLE_ADMIN)
def stats():
    return jsonify({"success": True, "data": workflows.admin_stats(get_session())})


@admin_bp.get("/recent-activity")
@requires_roles(ROLE_ADMIN)
def recent_activity():
    limit = request.args.get("limit", type=int) or 10
    activity = workflows.recent_activity(get_session(), limit)
    return jsonify({"success": True, "data": activity})


@admin_bp.get("/teachers-list")
@requires_roles(ROLE_ADMIN)
def teachers_list():
    teachers = workflows.list_teachers(get_session())
    return jsonify(
        {"success": True, "count": len(teachers), "data": [t.to_json() for t in teachers]}
    )


@admin_bp.get("/all-classes")
@requires_roles(ROLE_ADMIN)
def all_classes():
    classes = workflows.all_classes_with_progress(get_session())
    return jsonify({"success": True, "count": len(classes), "data": classes})


@admin_bp.get("/completed-hunts")
@requires_roles(ROLE_ADMIN)
def completed_hunts():
    hunts = workflows.completed_hunts(get_session())
    return jsonify({"success": True, "count": len(hunts), "data": hunts})
