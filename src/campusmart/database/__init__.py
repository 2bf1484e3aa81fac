"""Datastore layer for campusmart."""

from campusmart.database.base import ChangeEvent, Datastore
from campusmart.database.factories import create_datastore, create_sqlite_datastore

__all__ = ["ChangeEvent", "Datastore", "create_datastore", "create_sqlite_datastore"]
