import os
import sys
from logging.config import fileConfig

# Make the project root (parent of the 'learnhub' package) importable when alembic
# is run from learnhub/alembic.
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from sqlalchemy import engine_from_config
from sqlalchemy import pool

from alembic import context

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

from learnhub.core.database import Base
from learnhub.models import ( # noqa: F401 - registers every table with Base.metadata
    user_model,
    course_model,
    user_progress_model,
    notification_model
)
target_metadata = Base.metadata

from learnhub.core.config import settings


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode, emitting SQL against the configured URL."""
    url = settings.DATABASE_URL
    if not url:
        raise ValueError("DATABASE_URL is not set in the environment or config.")

    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against a live connection."""
    db_url = settings.DATABASE_URL
    if not db_url:
        raise ValueError("DATABASE_URL is not set in the environment or config for online migrations.")

    configuration = config.get_section(config.config_ini_section, {})
    configuration['sqlalchemy.url'] = db_url # Settings win over alembic.ini

    connectable = engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection, target_metadata=target_metadata
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
