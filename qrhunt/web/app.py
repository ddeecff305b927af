"""Flask application factory for the hunt API."""

from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, jsonify
from sqlalchemy.orm import sessionmaker
from werkzeug.exceptions import HTTPException

from ..config import Settings, load_settings
from ..db.engine import get_sessionmaker, make_engine
from ..errors import HuntError
from .db import init_db
from .routes import register_routes

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    session_factory: Optional[sessionmaker] = None,
) -> Flask:
    """Create and configure the Flask application.

    Parameters
    ----------
    settings : Optional[Settings], default: None
        Runtime settings; read from the environment when omitted.
    session_factory : Optional[sessionmaker], default: None
        Session factory used for requests. When omitted an engine is created
        from ``settings.db_url``.

    Returns
    -------
    Flask
        Configured application.
    """
    settings = settings or load_settings()
    if session_factory is None:
        session_factory = get_sessionmaker(make_engine(settings.db_url))

    app = Flask(__name__)
    app.config["QRHUNT_SETTINGS"] = settings
    app.json.sort_keys = False

    init_db(app, session_factory)
    register_routes(app)
    _setup_error_handlers(app)
    return app


def _setup_error_handlers(app: Flask) -> None:
    @app.errorhandler(HuntError)
    def hunt_error(error: HuntError):
        if error.status_code >= 500:
            logger.error("Request failed: %s", error.message)
        return jsonify(error.to_json()), error.status_code

    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException):
        return jsonify({"success": False, "error": error.description}), error.code

    @app.errorhandler(Exception)
    def unexpected_error(error: Exception):
        logger.exception("Unhandled error")
        return jsonify({"success": False, "error": "Server Error"}), 500
