"""Admin analytics over a date window."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from ... import analytics
from ...errors import ValidationError
from ...models import ROLE_ADMIN
from ..db import get_session
from ..payloads import parse_datetime
from ..security import requires_roles

analytics_bp = Blueprint("analytics", __name__, url_prefix="/api/analytics")


def _window():
    return (
        parse_datetime(request.args.get("startDate"), "startDate"),
        parse_datetime(request.args.get("endDate"), "endDate"),
    )


@analytics_bp.get("/overview")
@requires_roles(ROLE_ADMIN)
def overview():
    start, end = _window()
    data = analytics.analytics_overview(get_session(), start, end)
    return jsonify({"success": True, "data": data})


@analytics_bp.get("/station-heatmap")
@requires_roles(ROLE_ADMIN)
def station_heatmap():
    start, end = _window()
    data = analytics.station_heatmap(get_session(), start, end)
    return jsonify({"success": True, "data": data})


@analytics_bp.get("/time-patterns")
@requires_roles(ROLE_ADMIN)
def time_patterns():
    start, end = _window()
    group_by = request.args.get("groupBy", "hour")
    data = analytics.time_patterns(get_session(), start, end, group_by)
    return jsonify({"success": True, "data": data})


@analytics_bp.get("/engagement")
@requires_roles(ROLE_ADMIN)
def engagement():
    start, end = _window()
    data = analytics.engagement_metrics(get_session(), start, end)
    return jsonify({"success": True, "data": data})


@analytics_bp.get("/historical")
@requires_roles(ROLE_ADMIN)
def historical():
    raw = request.args.get("compareYears", "2").strip()
    if not raw.isdigit():
        raise ValidationError(
            f"compareYears must be between 1 and {analytics.MAX_COMPARE_YEARS}"
        )
    data = analytics.historical_comparison(get_session(), int(raw))
    return jsonify({"success": True, "data": data})
