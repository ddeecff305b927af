"""Route registration for the Flask app."""

from __future__ import annotations

from flask import Flask

from .admin import admin_bp
from .analytics import analytics_bp
from .auth import auth_bp
from .classes import classes_bp
from .drawings import drawings_bp
from .health import health_bp
from .scans import scans_bp
from .stations import stations_bp


def register_routes(app: Flask) -> None:
    app.register_blueprint(auth_bp)
    app.register_blueprint(stations_bp)
    app.register_blueprint(classes_bp)
    app.register_blueprint(scans_bp)
    app.register_blueprint(drawings_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(analytics_bp)
    app.register_blueprint(health_bp)
