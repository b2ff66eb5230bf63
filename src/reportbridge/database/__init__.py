"""Database layer for reportbridge application."""

from reportbridge.database.base import Database
from reportbridge.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
