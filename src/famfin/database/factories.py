"""Construction of the famfin storage client."""

import os
from pathlib import Path
from typing import Optional

from famfin.database.sqlalchemy_db import SQLAlchemyDatabase

DB_PATH_ENV = "FAMFIN_DB_PATH"
DEFAULT_DB_PATH = Path("~/.famfin/famfin.db")


def default_database_path() -> Path:
    """Location of the family ledger when no path is given.

    ``FAMFIN_DB_PATH`` wins over the per-user file in the home directory.
    """
    configured = os.environ.get(DB_PATH_ENV)
    return Path(configured).expanduser() if configured else DEFAULT_DB_PATH.expanduser()


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Open the SQLite-backed storage client.

    Args:
        database_path: Ledger file; see ``default_database_path`` when omitted

    Returns:
        SQLAlchemyDatabase bound to the file, whose folder is created if needed
    """
    path = Path(database_path).expanduser() if database_path else default_database_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    return SQLAlchemyDatabase(f"sqlite:///{path}")
