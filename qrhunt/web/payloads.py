"""Helpers translating JSON request bodies into workflow arguments."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from flask import request

from ..errors import ValidationError

STATION_KEYS = {
    "name": "name",
    "description": "description",
    "educationalInfo": "educational_info",
    "imageUrl": "image_url",
    "funFacts": "fun_facts",
    "safetyTips": "safety_tips",
    "learningObjectives": "learning_objectives",
    "ageGroup": "age_group",
    "difficulty": "difficulty",
    "estimatedTime": "estimated_time",
    "activityType": "activity_type",
    "maxParticipants": "max_participants",
    "location": "location",
    "order": "display_order",
    "isActive": "is_active",
}

CLASS_KEYS = {
    "name": "name",
    "grade": "grade",
    "school": "school",
    "studentCount": "student_count",
    "classPicture": "class_picture",
    "description": "description",
}

PROFILE_KEYS = {
    "name": "name",
    "school": "school",
    "bio": "bio",
    "phone": "phone",
    "profilePicture": "profile_picture",
}


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def translate(data: Mapping[str, Any], keys: Mapping[str, str]) -> dict[str, Any]:
    """Rename the camelCase keys of ``data`` present in ``keys``; drop the rest."""
    return {keys[k]: v for k, v in data.items() if k in keys}


def parse_datetime(value: Any, field: str) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be an ISO 8601 date")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO 8601 date")
