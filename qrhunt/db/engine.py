from typing import Any, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from ..config import load_settings


def make_engine(
    database_url: Optional[str] = None, echo: bool = False, **engine_kwargs: Any
) -> Engine:
    """Create an engine for ``database_url`` (``DB_URL`` when omitted).

    On SQLite, foreign keys are enforced and transactions are begun
    explicitly so that SAVEPOINTs used by scan recording behave as on other
    databases.
    """
    url = database_url or load_settings().db_url
    engine = create_engine(
        url,
        echo=echo,
        future=True,
        **engine_kwargs,
    )
    if url.startswith("sqlite"):

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):
            # ensure FK constraints are enforced on SQLite
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
            # let SQLAlchemy emit BEGIN instead of pysqlite
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _do_begin(conn):
            conn.exec_driver_sql("BEGIN")

    return engine


def get_sessionmaker(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        expire_on_commit=False,  # Keep objects accessible after commit for JSON rendering
        future=True,
    )
