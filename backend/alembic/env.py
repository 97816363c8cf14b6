from __future__ import annotations

import os
from logging.config import fileConfig

from alembic.operations import ops
from sqlalchemy import engine_from_config, pool

from alembic import context
from gradebook.core.config import settings
from gradebook.core.db import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

DROP_OPS = (ops.DropTableOp, ops.DropColumnOp, ops.DropIndexOp, ops.DropConstraintOp)

# Tables holding computed grades; drops touching them are named in the error.
PROTECTED_TABLES = {"grade_books", "subject_grade_records", "term_results", "grade_history"}


def _drops(migration_ops: ops.MigrateOperation) -> list[str]:
    if isinstance(migration_ops, DROP_OPS):
        table = getattr(migration_ops, "table_name", None) or "?"
        return [f"{type(migration_ops).__name__}({table})"]
    found: list[str] = []
    for op in getattr(migration_ops, "ops", None) or []:
        found.extend(_drops(op))
    return found


def _prevent_unintended_drops(_context, _revision, directives) -> None:
    if os.environ.get("ALLOW_ALEMBIC_DROPS") == "1" or not directives:
        return

    upgrade_ops = getattr(directives[0], "upgrade_ops", None)
    drops = _drops(upgrade_ops) if upgrade_ops is not None else []
    if not drops:
        return

    protected = [d for d in drops if any(f"({table})" in d for table in PROTECTED_TABLES)]
    raise SystemExit(
        "Refusing to autogenerate a revision with drop operations: "
        + ", ".join(drops)
        + (f" (touches grade data: {', '.join(protected)})" if protected else "")
        + ". Make the models match the database, or set ALLOW_ALEMBIC_DROPS=1."
    )


def _configure_options(url: str) -> dict:
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "process_revision_directives": _prevent_unintended_drops,
        # SQLite cannot ALTER constraints in place; batch mode rebuilds the table.
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    url = settings.DATABASE_URL
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_options(url),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = settings.DATABASE_URL
    config.set_main_option("sqlalchemy.url", url)
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, **_configure_options(url))

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
