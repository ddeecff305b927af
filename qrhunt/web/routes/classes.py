"""Class registration and progress."""

from __future__ import annotations

from flask import Blueprint, jsonify

from ... import workflows
from ...models import ROLE_ADMIN, ROLE_TEACHER
from ..db import get_session
from ..payloads import CLASS_KEYS, json_body, translate
from ..security import current_auth, requires_roles

classes_bp = Blueprint("classes", __name__, url_prefix="/api/classes")


@classes_bp.get("")
@requires_roles(ROLE_TEACHER)
def list_classes():
    classes = workflows.list_classes(get_session(), current_auth())
    return jsonify(
        {"success": True, "count": len(classes), "data": [c.to_json() for c in classes]}
    )


@classes_bp.post("")
@requires_roles(ROLE_TEACHER)
def create_class():
    session = get_session()
    teacher = workflows.current_account(session, current_auth())
    school_class = workflows.register_class(
        session, teacher, translate(json_body(), CLASS_KEYS)
    )
    session.commit()
    return jsonify({"success": True, "data": school_class.to_json()}), 201


@classes_bp.get("/<class_id>")
@requires_roles(ROLE_TEACHER, ROLE_ADMIN)
def get_class(class_id):
    school_class = workflows.get_class(get_session(), class_id, current_auth())
    return jsonify({"success": True, "data": school_class.to_json(include_stations=True)})


@classes_bp.put("/<class_id>")
@requires_roles(ROLE_TEACHER, ROLE_ADMIN)
def update_class(class_id):
    session = get_session()
    school_class = workflows.update_class(
        session, class_id, current_auth(), translate(json_body(), CLASS_KEYS)
    )
    session.commit()
    return jsonify({"success": True, "data": school_class.to_json()})


@classes_bp.get("/<class_id>/progress")
@requires_roles(ROLE_TEACHER, ROLE_ADMIN)
def class_progress(class_id):
    session = get_session()
    school_class = workflows.get_class(session, class_id, current_auth())
    return jsonify({"success": True, "data": workflows.class_progress(session, school_class)})


@classes_bp.get("/<class_id>/details")
@requires_roles(ROLE_TEACHER, ROLE_ADMIN)
def class_details(class_id):
    session = get_session()
    school_class = workflows.get_class(session, class_id, current_auth())
    return jsonify({"success": True, "data": workflows.class_details(session, school_class)})
