import os
from logging.config import fileConfig

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import create_engine, pool

load_dotenv(os.path.join(os.path.dirname(os.path.dirname(__file__)), '.env'))

config = context.config

if config.config_file_name:
    fileConfig(config.config_file_name)

# Collaboration tables register themselves on the shared Base
from database.models import Base
from database import collaboration_models  # noqa: F401

target_metadata = Base.metadata


def _database_url() -> str:
    """DATABASE_URL wins over alembic.ini so migrations hit the same database as the API."""
    return os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url")


def run_migrations_offline():
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    # Built directly rather than through the ini so '%' in passwords needs no escaping
    connectable = create_engine(_database_url(), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
