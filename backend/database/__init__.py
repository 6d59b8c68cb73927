"""
Database module for the PostgreSQL storage backend.
"""

from database.base import Base
from database.session import close_db, create_engine, create_session_maker, init_db

__all__ = ["Base", "close_db", "create_engine", "create_session_maker", "init_db"]
