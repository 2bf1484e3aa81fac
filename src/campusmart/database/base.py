"""Abstract datastore interface.

The datastore is the remote, authoritative store. It speaks in rows: plain
dicts keyed by remote (snake_case) column names. Translation to domain
entities happens in ``campusmart.database.mappers``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Optional

Row = dict[str, Any]


@dataclass(frozen=True)
class ChangeEvent:
    """Notification published after a committed write."""

    collection: str
    kind: str  # INSERT, UPDATE or DELETE
    row_id: str


ChangeCallback = Callable[[ChangeEvent], None]
Unsubscribe = Callable[[], None]


class Datastore(ABC):
    """Abstract remote datastore with a per-collection change feed."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the datastore."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the datastore."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize schema (create tables)."""
        pass

    # Reads
    @abstractmethod
    def fetch_all(self, collection: str) -> list[Row]:
        """Fetch every row of a collection."""
        pass

    @abstractmethod
    def get_row(self, collection: str, row_id: str) -> Optional[Row]:
        """Fetch one row by id, or None if it does not exist."""
        pass

    # Writes
    @abstractmethod
    def insert(self, collection: str, values: Row) -> Row:
        """Insert a row and return it as stored (with id and server timestamp)."""
        pass

    @abstractmethod
    def update(self, collection: str, row_id: str, values: Row) -> bool:
        """Partially update a row. Returns False if the row does not exist."""
        pass

    @abstractmethod
    def delete(self, collection: str, row_id: str) -> bool:
        """Delete a row. Returns False if the row did not exist."""
        pass

    # Atomic store-side primitives
    @abstractmethod
    def toggle_flag(self, collection: str, row_id: str, column: str) -> Optional[bool]:
        """Negate a boolean column in place. Returns the new value, or None if missing."""
        pass

    @abstractmethod
    def add_to_set(self, collection: str, row_id: str, column: str, value: str) -> bool:
        """Add a value to an array column unless already present."""
        pass

    @abstractmethod
    def remove_from_set(self, collection: str, row_id: str, column: str, value: str) -> bool:
        """Remove every occurrence of a value from an array column."""
        pass

    @abstractmethod
    def record_rating(self, user_id: str, rating: int) -> Optional[tuple[Decimal, int]]:
        """Fold one rating into a user's running average.

        Returns the new (average, count), or None if the user does not exist.
        """
        pass

    # Change feed
    @abstractmethod
    def subscribe(self, collection: str, callback: ChangeCallback) -> Unsubscribe:
        """Subscribe to change events on a collection. Returns an unsubscribe callable."""
        pass
