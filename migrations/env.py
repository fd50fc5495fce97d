import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from config import Config
from pickapp import models  # noqa: F401 - registers the tables on the metadata
from pickapp.extensions import db

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = db.Model.metadata


def _database_url() -> str:
    """Resolve ``sqlalchemy.url``; ``env://NAME`` reads the named variable.

    Without an explicit URL the application's own ``DB_URL`` setting is used,
    so migrations and the API always target the same warehouse database.
    """

    url = config.get_main_option("sqlalchemy.url") or ""
    if url.startswith("env://"):
        url = os.getenv(url[len("env://"):] or "DB_URL", "")
    return url or Config.SQLALCHEMY_DATABASE_URI


def _configure(**options) -> None:
    # SQLite cannot ALTER constraints in place; batch mode rebuilds the table.
    render_as_batch = _database_url().startswith("sqlite")
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=render_as_batch,
        **options,
    )


def run_migrations_offline() -> None:
    _configure(
        url=_database_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    section = dict(config.get_section(config.config_ini_section) or {})
    section["sqlalchemy.url"] = _database_url()
    connectable = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with connectable.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
