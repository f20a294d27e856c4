"""Database layer for famfin application."""

from famfin.database.base import Database
from famfin.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
