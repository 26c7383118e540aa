"""Factory functions for creating database and storage instances."""

import os
from pathlib import Path
from typing import Optional

from bankrecon.database.sqlalchemy_db import SQLAlchemyDatabase

DEFAULT_HOME = Path.home() / ".bankrecon"


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks BANKRECON_DB_PATH
            environment variable, then defaults to ~/.bankrecon/bankrecon.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        # Check environment variable
        database_path = os.environ.get("BANKRECON_DB_PATH")

    if database_path is None:
        DEFAULT_HOME.mkdir(exist_ok=True)
        database_path = str(DEFAULT_HOME / "bankrecon.db")

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyDatabase(database_url)
