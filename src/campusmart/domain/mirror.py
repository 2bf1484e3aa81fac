"""Remote mirror: live, read-only snapshots of the remote collections."""

import logging
import time
from typing import Any, Callable, Iterable, Optional

from campusmart.database.base import Datastore, ChangeEvent, Unsubscribe
from campusmart.database.mappers import row_to_domain
from campusmart.domain.entities import (
    Account,
    Listing,
    LostReport,
    Complaint,
    Claim,
    Message,
)
from campusmart.domain.errors import NotAuthenticatedError, RemoteError, not_signed_in
from campusmart.utils.retry import RetryPolicy, call_with_retry

logger = logging.getLogger(__name__)

MIRRORED_COLLECTIONS = ("users", "items", "lost_items", "complaints", "claims", "messages")

SnapshotListener = Callable[[tuple], None]


class RemoteMirror:
    """Keeps one immutable snapshot per remote collection.

    Every change event on a collection triggers a full re-fetch of that
    collection; the result replaces the previous snapshot wholesale. The
    latest change-feed fetch wins, there is no sequence numbering.
    Consumers read snapshots and never mutate them.
    """

    def __init__(
        self,
        datastore: Datastore,
        retry_policy: RetryPolicy = RetryPolicy(),
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize remote mirror.

        Args:
            datastore: Remote datastore to mirror
            retry_policy: Retry policy for transient fetch failures
            sleep: Sleep function used between retries
        """
        self.datastore = datastore
        self.retry_policy = retry_policy
        self._sleep = sleep
        self._snapshots: dict[str, tuple] = {c: () for c in MIRRORED_COLLECTIONS}
        self._indexes: dict[str, dict[str, Any]] = {c: {} for c in MIRRORED_COLLECTIONS}
        self._listeners: dict[str, list[SnapshotListener]] = {c: [] for c in MIRRORED_COLLECTIONS}
        self._unsubscribers: list[Unsubscribe] = []
        self._actor_id: Optional[str] = None
        # Bumped on every activate/deactivate so late fetches can be dropped.
        self._generation = 0

    @property
    def actor_id(self) -> Optional[str]:
        return self._actor_id

    @property
    def is_active(self) -> bool:
        return self._actor_id is not None

    def activate(self, actor_id: str) -> None:
        """Open one subscription per collection and load initial snapshots.

        Re-activating for the same actor is a no-op; activating for a
        different actor tears the previous subscriptions down first.
        """
        if not actor_id:
            raise NotAuthenticatedError(not_signed_in())
        if self._actor_id == actor_id:
            return
        if self.is_active:
            self.deactivate()

        self._actor_id = actor_id
        self._generation += 1
        for collection in MIRRORED_COLLECTIONS:
            self._unsubscribers.append(self.datastore.subscribe(collection, self._on_change))
        logger.debug("Mirror activated for %s", actor_id)

        for collection in MIRRORED_COLLECTIONS:
            self.refresh(collection)

    def deactivate(self) -> None:
        """Unsubscribe everything and clear all snapshots."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        was_active = self.is_active
        self._actor_id = None
        self._generation += 1
        if was_active:
            for collection in MIRRORED_COLLECTIONS:
                self._publish(collection, ())
            logger.debug("Mirror deactivated")

    def _on_change(self, event: ChangeEvent) -> None:
        self.refresh(event.collection)

    def refresh(self, collection: str) -> bool:
        """Re-fetch a collection and republish its snapshot.

        A fetch that still fails after retries leaves the previous snapshot
        in place; other collections are unaffected. Returns True when a new
        snapshot was published.
        """
        if not self.is_active:
            return False
        generation = self._generation
        try:
            rows = call_with_retry(
                lambda: self.datastore.fetch_all(collection),
                self.retry_policy,
                sleep=self._sleep,
                description=f"fetch {collection}",
            )
        except RemoteError as exc:
            logger.warning("Could not refresh %s, keeping previous snapshot: %s", collection, exc)
            return False

        if generation != self._generation:
            logger.debug("Discarding %s fetch from a closed session", collection)
            return False

        records = []
        for row in rows:
            try:
                records.append(row_to_domain(collection, row))
            except (KeyError, ValueError) as exc:
                logger.warning("Skipping unreadable %s row %s: %s", collection, row.get("id"), exc)
        self._publish(collection, tuple(records))
        return True

    def apply_local(self, collection: str, records: Iterable[Any]) -> None:
        """Optimistically replace records (matched by id) in a snapshot.

        The next change event for the collection re-syncs from the remote.
        """
        updates = {record.id: record for record in records}
        if not updates:
            return
        merged = [updates.pop(record.id, record) for record in self._snapshots[collection]]
        merged.extend(updates.values())
        self._publish(collection, tuple(merged))

    def on_change(self, collection: str, callback: SnapshotListener) -> Unsubscribe:
        """Call ``callback(snapshot)`` whenever a collection's snapshot is replaced."""
        listeners = self._listeners[collection]
        listeners.append(callback)

        def unsubscribe() -> None:
            if callback in listeners:
                listeners.remove(callback)

        return unsubscribe

    def _publish(self, collection: str, records: tuple) -> None:
        self._snapshots[collection] = records
        self._indexes[collection] = {record.id: record for record in records}
        for listener in list(self._listeners[collection]):
            try:
                listener(records)
            except Exception:
                logger.exception("Snapshot listener on %s failed", collection)

    # Snapshots
    def snapshot(self, collection: str) -> tuple:
        return self._snapshots[collection]

    @property
    def accounts(self) -> tuple[Account, ...]:
        return self._snapshots["users"]

    @property
    def listings(self) -> tuple[Listing, ...]:
        return self._snapshots["items"]

    @property
    def lost_reports(self) -> tuple[LostReport, ...]:
        return self._snapshots["lost_items"]

    @property
    def complaints(self) -> tuple[Complaint, ...]:
        return self._snapshots["complaints"]

    @property
    def claims(self) -> tuple[Claim, ...]:
        return self._snapshots["claims"]

    @property
    def messages(self) -> tuple[Message, ...]:
        return self._snapshots["messages"]

    # Lookups
    def get_account_by_id(self, account_id: str) -> Optional[Account]:
        return self._indexes["users"].get(account_id)

    def get_listing_by_id(self, listing_id: str) -> Optional[Listing]:
        return self._indexes["items"].get(listing_id)

    def get_lost_report_by_id(self, report_id: str) -> Optional[LostReport]:
        return self._indexes["lost_items"].get(report_id)

    def get_complaint_by_id(self, complaint_id: str) -> Optional[Complaint]:
        return self._indexes["complaints"].get(complaint_id)

    def get_claim_by_id(self, claim_id: str) -> Optional[Claim]:
        return self._indexes["claims"].get(claim_id)
