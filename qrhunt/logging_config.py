"""Root logging setup shared by the web app and the scripts."""

from __future__ import annotations

import logging
import os

LOG_FORMAT: str = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(*, level: str = "", verbose: bool = False) -> None:
    """Configure the root logger.

    Priority: verbose > level param > LOG_LEVEL env > INFO default.
    """
    if verbose:
        effective = logging.DEBUG
    else:
        name = level or os.environ.get("LOG_LEVEL", "INFO")
        effective = getattr(logging, name.upper(), logging.INFO)

    logging.basicConfig(level=effective, format=LOG_FORMAT, force=True)

    # SQL echo is controlled by make_engine(echo=...), not by the root level.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
