"""Database module for the Linkly application."""
from linkly.db.base import engine, get_engine, create_tables, DatabaseHealthCheck
from linkly.db.session import get_db, db_transaction, SessionManager

__all__ = [
    "engine",
    "get_engine",
    "create_tables",
    "DatabaseHealthCheck",
    "get_db",
    "db_transaction",
    "SessionManager",
]
