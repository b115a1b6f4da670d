"""Database base class and async session management."""

from estatehub.db.base import Base
from estatehub.db.session import create_engine_from_settings, get_db, get_session_maker

__all__ = ["Base", "create_engine_from_settings", "get_db", "get_session_maker"]
