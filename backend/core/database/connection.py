# ------------------------------ IMPORTS ------------------------------
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from typing import Generator
import logging

from core.config.settings import settings

# ------------------------------ LOGGING ------------------------------
logger = logging.getLogger(__name__)

# ------------------------------ BASE CLASS ------------------------------
Base = declarative_base()

# ------------------------------ DATABASE ENGINE ------------------------------

def _engine_options() -> dict:
    """Pool options only apply to server databases."""
    if settings.database.is_sqlite:
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": settings.database.pool_size,
        "max_overflow": settings.database.max_overflow,
    }

engine = create_engine(
    settings.database.database_url,
    echo=False,
    **_engine_options()
)

# ------------------------------ SESSION FACTORY ------------------------------
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# ------------------------------ DATABASE FUNCTIONS ------------------------------

def get_db() -> Generator:
    """Dependency for FastAPI to get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db() -> None:
    """Bring the database schema up to the latest migration."""
    from core.database.migrations import run_migrations

    try:
        run_migrations(settings.database.database_url)
        logger.info("Database schema is up to date")
    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        raise

# ------------------------------ END OF FILE ------------------------------
