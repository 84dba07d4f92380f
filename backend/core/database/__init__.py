# ------------------------------ IMPORTS ------------------------------
from .connection import get_db, init_db, engine, Base, SessionLocal

__all__ = ["get_db", "init_db", "engine", "Base", "SessionLocal"]
