"""Health check blueprint."""

from __future__ import annotations

from flask import Blueprint, jsonify

from ... import __version__

health_bp = Blueprint("health", __name__)


@health_bp.route("/health")
def health_check():
    return jsonify({"status": "ok", "version": __version__})
