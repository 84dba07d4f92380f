# ------------------------------ IMPORTS ------------------------------
"""
Database initialization script.

Run this script to apply every pending schema migration.
Usage: python -m core.database.init_db
"""
import sys
import logging
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from core.database.connection import init_db
from core.config.settings import settings

# ------------------------------ LOGGING ------------------------------
logger = logging.getLogger(__name__)

# ------------------------------ MAIN ------------------------------

def main():
    """Bring the schema up to the latest migration."""
    url = settings.database.database_url
    try:
        logger.info(f"Database URL: {url.split('@')[1] if '@' in url else url if settings.database.is_sqlite else 'hidden'}")
        init_db()
        logger.info("Database initialized successfully!")

    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()

# ------------------------------ END OF FILE ------------------------------
