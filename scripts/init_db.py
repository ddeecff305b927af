"""Create or upgrade the hunt database schema with Alembic."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from qrhunt.config import load_settings
from qrhunt.db.engine import make_engine
from qrhunt.logging_config import configure_logging

logger = logging.getLogger("qrhunt.scripts.init_db")

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def alembic_config() -> Config:
    cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    return cfg


def upgrade_db(target_revision: str = "head") -> None:
    """Apply migrations up to ``target_revision``."""
    command.upgrade(alembic_config(), target_revision)


def hunt_tables(database_url: str) -> list[str]:
    engine = make_engine(database_url)
    try:
        return sorted(inspect(engine).get_table_names())
    finally:
        engine.dispose()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("revision", nargs="?", default="head")
    args = parser.parse_args(argv)

    configure_logging()
    settings = load_settings()
    upgrade_db(args.revision)
    tables = hunt_tables(settings.db_url)
    logger.info("Schema at %s; tables: %s", args.revision, ", ".join(tables))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
