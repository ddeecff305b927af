"""Run the hunt API with Flask's development server."""

from __future__ import annotations

import os

from qrhunt.config import load_settings
from qrhunt.logging_config import configure_logging
from qrhunt.web import create_app

if __name__ == "__main__":
    settings = load_settings()
    configure_logging(level=settings.log_level)

    app = create_app(settings)

    host = os.getenv("WEB_HOST", "127.0.0.1")
    port = int(os.getenv("WEB_PORT", "5000"))
    app.run(host=host, port=port, debug=os.getenv("FLASK_DEBUG") == "1")
