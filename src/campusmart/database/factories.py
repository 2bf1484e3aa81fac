"""Datastore factory functions for creating datastore instances."""

import os
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from campusmart.database.sqlalchemy_db import SQLAlchemyDatastore


def default_database_path() -> str:
    """Return ~/.campusmart/campusmart.db, creating the directory if needed."""
    db_dir = Path.home() / ".campusmart"
    db_dir.mkdir(exist_ok=True)
    return str(db_dir / "campusmart.db")


def create_sqlite_datastore(
    database_path: Optional[str] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> SQLAlchemyDatastore:
    """Create a SQLite-backed datastore.

    Args:
        database_path: Path to SQLite database file. If None, checks CAMPUSMART_DB_PATH
            environment variable, then defaults to ~/.campusmart/campusmart.db
        clock: Optional source of server timestamps

    Returns:
        SQLAlchemyDatastore instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get("CAMPUSMART_DB_PATH")

    if database_path is None:
        database_path = default_database_path()

    return SQLAlchemyDatastore(f"sqlite:///{database_path}", clock=clock)


def create_datastore(
    database_url: Optional[str] = None,
    database_path: Optional[str] = None,
) -> SQLAlchemyDatastore:
    """Create a datastore from a full SQLAlchemy URL or a SQLite path.

    ``database_url`` (or CAMPUSMART_DB_URL) wins, e.g. a PostgreSQL URL for
    the hosted database; otherwise a SQLite file is used.
    """
    if database_url is None:
        database_url = os.environ.get("CAMPUSMART_DB_URL")

    if database_url:
        return SQLAlchemyDatastore(database_url)
    return create_sqlite_datastore(database_path=database_path)
