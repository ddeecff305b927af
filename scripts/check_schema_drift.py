"""Compare the live database schema with the ORM models.

Exit status: 0 when in sync, 1 when differences exist, 2 on error.
"""

from __future__ import annotations

import sys

from alembic.autogenerate import api as ag_api
from alembic.runtime.migration import MigrationContext
from sqlalchemy.exc import SQLAlchemyError

from qrhunt.db.engine import make_engine
from qrhunt.models import Base


def _describe(ops, indent: int = 0) -> list[str]:
    lines = []
    for op in ops:
        lines.append(f"{'  ' * indent}- {op}")
        lines.extend(_describe(getattr(op, "ops", None) or [], indent + 1))
    return lines


def schema_diff(engine) -> list[str]:
    """Return a readable list of operations needed to match the models."""
    with engine.connect() as connection:
        context = MigrationContext.configure(
            connection=connection,
            opts={
                "compare_type": True,
                "compare_server_default": True,
                "render_as_batch": connection.dialect.name == "sqlite",
            },
        )
        upgrade_ops = ag_api.produce_migrations(context, Base.metadata).upgrade_ops
    if upgrade_ops is None or upgrade_ops.is_empty():
        return []
    return _describe(upgrade_ops.ops or [])


def main() -> int:
    engine = make_engine()
    url_display = engine.url.render_as_string(hide_password=True)
    try:
        differences = schema_diff(engine)
    except SQLAlchemyError as exc:
        print(f"Schema drift check: ERROR for {url_display}: {exc}", file=sys.stderr)
        return 2
    finally:
        engine.dispose()

    if not differences:
        print(f"Schema drift check: OK (no differences) for {url_display}.")
        return 0
    print(f"Schema drift check: FAILED for {url_display}. Differences detected:")
    print("\n".join(differences))
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
