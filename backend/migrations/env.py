# ------------------------------ IMPORTS ------------------------------
from alembic import context
from sqlalchemy import engine_from_config, pool

from core.database.connection import Base
import core.database.models  # noqa: F401

# ------------------------------ CONFIG ------------------------------
config = context.config
target_metadata = Base.metadata

def _database_url() -> str:
    url = config.get_main_option("sqlalchemy.url")
    if url:
        return url
    from core.config.settings import settings
    return settings.database.database_url

# ------------------------------ RUNNERS ------------------------------

def run_migrations_offline() -> None:
    """Emit SQL without a live connection."""
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()

def run_migrations_online() -> None:
    """Apply migrations against the configured database."""
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = _database_url()
    connectable = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, render_as_batch=True)
        with context.begin_transaction():
            context.run_migrations()

if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

# ------------------------------ END OF FILE ------------------------------
