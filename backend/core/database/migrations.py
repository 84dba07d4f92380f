# ------------------------------ IMPORTS ------------------------------
from pathlib import Path
import logging

from alembic import command
from alembic.config import Config

# ------------------------------ LOGGING ------------------------------
logger = logging.getLogger(__name__)

# ------------------------------ PATHS ------------------------------
BACKEND_DIR = Path(__file__).resolve().parents[2]
ALEMBIC_INI = BACKEND_DIR / "alembic.ini"
MIGRATIONS_DIR = BACKEND_DIR / "migrations"

# ------------------------------ MIGRATIONS ------------------------------

def get_alembic_config(database_url: str) -> Config:
    """Build an Alembic config pointed at the bundled migration scripts."""
    cfg = Config(str(ALEMBIC_INI))
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    cfg.set_main_option("sqlalchemy.url", database_url)
    return cfg

def run_migrations(database_url: str, revision: str = "head") -> None:
    """Apply every pending migration up to ``revision``."""
    logger.info(f"Applying migrations up to {revision}")
    command.upgrade(get_alembic_config(database_url), revision)

# ------------------------------ END OF FILE ------------------------------
