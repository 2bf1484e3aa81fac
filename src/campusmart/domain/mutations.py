"""Mutation gateway: every write the application makes to the datastore."""

import logging
from dataclasses import replace
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, TypeVar

from campusmart.config import LostReportPolicy, Settings
from campusmart.database.base import Datastore
from campusmart.database.mappers import (
    to_remote,
    remote_field,
    listing_to_domain,
    lost_report_to_domain,
    complaint_to_domain,
    claim_to_domain,
    message_to_domain,
)
from campusmart.domain.entities import (
    Account,
    Claim,
    ClaimStatus,
    Complaint,
    ComplaintAction,
    ComplaintStatus,
    Listing,
    ListingCategory,
    ListingCondition,
    LostReport,
    Message,
)
from campusmart.domain.errors import (
    NotFoundError,
    PartialTransitionError,
    PermissionDeniedError,
    RemoteError,
    RemoteWriteError,
    ValidationError,
    account_not_found,
    claim_not_found,
    complaint_not_found,
    listing_not_found,
    lost_report_not_found,
    partial_transition,
)
from campusmart.domain.mirror import RemoteMirror
from campusmart.domain.session import SessionBridge

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

EDITABLE_ACCOUNT_FIELDS = frozenset(
    {"display_name", "registration_number", "branch", "year", "hostel_block", "avatar_url"}
)


def coerce_enum(enum_cls: type[E], value: Any, label: str) -> E:
    """Accept an enum member, its value, or its name (case-insensitive).

    Raises:
        ValidationError: If the value names no member
    """
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip()
    for member in enum_cls:
        if text == member.value or text.lower() == member.value.lower():
            return member
        if text.upper().replace("-", "_").replace(" ", "_") == member.name:
            return member
    allowed = ", ".join(member.value for member in enum_cls)
    raise ValidationError(f"Invalid {label} '{value}'. Expected one of: {allowed}")


def _price(value: Any) -> Decimal:
    try:
        price = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"Invalid price '{value}'") from None
    if price < 0:
        raise ValidationError("Price cannot be negative")
    return price


def _required_text(value: Optional[str], label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{label} cannot be empty")
    return text


class MutationGateway:
    """Intention-revealing write operations.

    Operations translate local field names to remote ones, write, and let the
    change feed bring the result back into the mirror. Remote-write failures
    propagate as ``RemoteWriteError``; nothing here retries.

    Toggle and rating operations use the datastore's atomic primitives
    instead of writing back values derived from a possibly stale snapshot.
    """

    def __init__(
        self,
        datastore: Datastore,
        mirror: RemoteMirror,
        session: SessionBridge,
        settings: Settings = Settings(),
    ):
        """Initialize mutation gateway.

        Args:
            datastore: Remote datastore
            mirror: Mirror used for lookups and optimistic updates
            session: Source of the current actor
            settings: Application settings
        """
        self.datastore = datastore
        self.mirror = mirror
        self.session = session
        self.settings = settings

    def _actor_record(self) -> Account:
        actor = self.session.require_actor()
        return self.mirror.get_account_by_id(actor.id) or actor

    # Listings
    def add_listing(
        self,
        owner_id: str,
        title: str,
        description: str,
        category: ListingCategory | str,
        price: Decimal | int | float | str,
        location: str,
        condition: ListingCondition | str,
        image_url: str,
        exchange_eligible: bool = False,
    ) -> Listing:
        """Create a listing. It starts unsold, timestamped by the datastore.

        Raises:
            ValidationError: On empty title, negative price or unknown enums
        """
        values = {
            "owner_id": owner_id,
            "title": _required_text(title, "Title"),
            "description": (description or "").strip(),
            "category": coerce_enum(ListingCategory, category, "category"),
            "price": _price(price),
            "location": (location or "").strip(),
            "condition": coerce_enum(ListingCondition, condition, "condition"),
            "image_url": image_url or "",
            "exchange_eligible": bool(exchange_eligible),
            "sold": False,
        }
        row = self.datastore.insert("items", to_remote("items", values))
        logger.info("Listing %s created by %s", row["id"], owner_id)
        return listing_to_domain(row)

    def remove_listing(self, listing_id: str) -> bool:
        """Delete a listing. Removing an already-deleted listing returns False."""
        deleted = self.datastore.delete("items", listing_id)
        if not deleted:
            logger.warning("Listing %s was already removed", listing_id)
        return deleted

    def mark_listing_sold(self, listing_id: str, sold: bool = True) -> None:
        """Set or clear a listing's sold flag."""
        if not self.datastore.update("items", listing_id, to_remote("items", {"sold": sold})):
            raise NotFoundError(listing_not_found(listing_id))

    # Accounts
    def toggle_suspend_account(self, account_id: str) -> bool:
        """Flip an account's suspension flag. Returns the new value."""
        suspended = self.datastore.toggle_flag(
            "users", account_id, remote_field("users", "suspended")
        )
        if suspended is None:
            raise NotFoundError(account_not_found(account_id))
        logger.info("Account %s %s", account_id, "suspended" if suspended else "reinstated")
        return suspended

    def update_account(self, account_id: str, **fields: Any) -> None:
        """Partially update an account's editable profile fields.

        Only supplied (non-None) fields are sent, so anything omitted keeps
        its stored value.
        """
        unknown = set(fields) - EDITABLE_ACCOUNT_FIELDS
        if unknown:
            raise ValidationError(f"Cannot edit account fields: {', '.join(sorted(unknown))}")
        changes = {name: value for name, value in fields.items() if value is not None}
        if "display_name" in changes:
            changes["display_name"] = _required_text(changes["display_name"], "Name")
        if "year" in changes:
            try:
                changes["year"] = int(changes["year"])
            except (TypeError, ValueError):
                raise ValidationError(f"Invalid year '{changes['year']}'") from None
            if changes["year"] < 1:
                raise ValidationError("Year must be at least 1")
        if not changes:
            return

        if not self.datastore.update("users", account_id, to_remote("users", changes)):
            raise NotFoundError(account_not_found(account_id))

        actor = self.session.current_actor()
        if actor is not None and actor.id == account_id:
            self.session.refresh_actor()

    def rate_seller(self, seller_id: str, rating: int) -> tuple[Decimal, int]:
        """Fold a 1-5 star rating into the seller's average.

        Returns:
            The seller's new (average, count)
        """
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError(f"Rating must be a whole number from 1 to 5, got {rating!r}")
        result = self.datastore.record_rating(seller_id, rating)
        if result is None:
            raise NotFoundError(account_not_found(seller_id))
        return result

    # Wishlist
    def is_in_wishlist(self, listing_id: str) -> bool:
        if self.session.current_actor() is None:
            return False
        return listing_id in self._actor_record().wishlist

    def toggle_wishlist(self, listing_id: str) -> bool:
        """Add or remove a listing from the actor's wishlist.

        Store-side set add/remove means a repeated add (double-click on a
        stale snapshot) cannot duplicate or drop the entry.

        Returns:
            True if the listing is now in the wishlist
        """
        actor = self._actor_record()
        column = remote_field("users", "wishlist")
        if listing_id in actor.wishlist:
            found = self.datastore.remove_from_set("users", actor.id, column, listing_id)
            added = False
        else:
            found = self.datastore.add_to_set("users", actor.id, column, listing_id)
            added = True
        if not found:
            raise NotFoundError(account_not_found(actor.id))
        self.session.refresh_actor()
        return added

    # Lost and found
    def add_lost_report(
        self, name: str, description: str, location_found: str, image_url: str
    ) -> LostReport:
        """File a lost-and-found report, subject to the configured creation policy."""
        actor = self.session.require_actor()
        if self.settings.lost_report_policy == LostReportPolicy.ADMIN_ONLY and not actor.is_admin:
            raise PermissionDeniedError("Only administrators can add lost-and-found reports")
        values = {
            "name": _required_text(name, "Name"),
            "description": (description or "").strip(),
            "location_found": (location_found or "").strip(),
            "image_url": image_url or "",
        }
        row = self.datastore.insert("lost_items", to_remote("lost_items", values))
        return lost_report_to_domain(row)

    def submit_claim(
        self,
        lost_report_id: str,
        claimant_id: str,
        proof_image_url: str,
        comments: str = "",
        bill_image_url: Optional[str] = None,
    ) -> Claim:
        """Claim a lost report. A proof image is mandatory."""
        if not (proof_image_url or "").strip():
            raise ValidationError("A proof image is required to submit a claim")
        values = {
            "lost_report_id": lost_report_id,
            "claimant_id": claimant_id,
            "proof_image_url": proof_image_url.strip(),
            "bill_image_url": bill_image_url or None,
            "comments": (comments or "").strip(),
            "status": ClaimStatus.PENDING,
        }
        row = self.datastore.insert("claims", to_remote("claims", values))
        return claim_to_domain(row)

    def resolve_claim(self, claim_id: str, status: ClaimStatus | str) -> None:
        """Approve or reject a claim.

        The claim's status is written first. On approval the lost report's
        claimant is set second; if that write fails the status stays
        committed and ``PartialTransitionError`` names the pending step.
        """
        status = coerce_enum(ClaimStatus, status, "claim status")
        if status == ClaimStatus.PENDING:
            raise ValidationError("A claim can only be resolved as approved or rejected")

        claim = self.mirror.get_claim_by_id(claim_id)
        if claim is None:
            row = self.datastore.get_row("claims", claim_id)
            if row is None:
                raise NotFoundError(claim_not_found(claim_id))
            claim = claim_to_domain(row)

        if not self.datastore.update("claims", claim_id, to_remote("claims", {"status": status})):
            raise NotFoundError(claim_not_found(claim_id))
        logger.info("Claim %s %s", claim_id, status.value)

        if status != ClaimStatus.APPROVED:
            return

        report_id = claim.lost_report_id
        try:
            found = self.datastore.update(
                "lost_items", report_id, to_remote("lost_items", {"claimant_id": claim.claimant_id})
            )
            if not found:
                raise NotFoundError(lost_report_not_found(report_id))
        except (RemoteError, NotFoundError) as exc:
            raise PartialTransitionError(
                partial_transition("Claim", claim_id, "approved", f"recording claimant on {report_id}", exc),
                completed_step="claim approved",
                pending_step="set lost report claimant",
                entity_id=claim_id,
                target_id=report_id,
            ) from exc

    # Complaints
    def report_listing(self, listing_id: str, reporter_id: str, reason: str) -> Complaint:
        """File a pending complaint against a listing."""
        values = {
            "listing_id": listing_id,
            "reporter_id": reporter_id,
            "reason": _required_text(reason, "Reason"),
            "status": ComplaintStatus.PENDING,
        }
        row = self.datastore.insert("complaints", to_remote("complaints", values))
        return complaint_to_domain(row)

    def resolve_complaint(self, complaint_id: str, action: ComplaintAction | str) -> None:
        """Resolve a complaint, optionally deleting the reported listing.

        The complaint is marked resolved first; the listing is only deleted
        once that write has committed. A failed delete raises
        ``PartialTransitionError`` so the listing removal can be retried on
        its own with ``remove_listing``.
        """
        action = coerce_enum(ComplaintAction, action, "complaint action")

        complaint = self.mirror.get_complaint_by_id(complaint_id)
        if complaint is None:
            row = self.datastore.get_row("complaints", complaint_id)
            if row is None:
                raise NotFoundError(complaint_not_found(complaint_id))
            complaint = complaint_to_domain(row)

        resolved = to_remote("complaints", {"status": ComplaintStatus.RESOLVED})
        if not self.datastore.update("complaints", complaint_id, resolved):
            raise NotFoundError(complaint_not_found(complaint_id))
        logger.info("Complaint %s resolved (%s)", complaint_id, action.value)

        if action != ComplaintAction.DELETE_ITEM:
            return

        listing_id = complaint.listing_id
        try:
            deleted = self.datastore.delete("items", listing_id)
        except RemoteError as exc:
            raise PartialTransitionError(
                partial_transition("Complaint", complaint_id, "resolved", f"deleting listing {listing_id}", exc),
                completed_step="complaint resolved",
                pending_step="delete listing",
                entity_id=complaint_id,
                target_id=listing_id,
            ) from exc
        if not deleted:
            logger.warning("Listing %s for complaint %s was already removed", listing_id, complaint_id)

    # Messages
    def send_message(
        self, receiver_id: str, content: str, listing_id: Optional[str] = None
    ) -> Message:
        """Send a message from the current actor."""
        actor = self.session.require_actor()
        text = _required_text(content, "Message")
        if receiver_id == actor.id:
            raise ValidationError("You cannot message yourself")
        values = {
            "sender_id": actor.id,
            "receiver_id": receiver_id,
            "listing_id": listing_id,
            "content": text,
            "read": False,
        }
        row = self.datastore.insert("messages", to_remote("messages", values))
        return message_to_domain(row)

    def get_messages(self, other_user_id: str, listing_id: Optional[str] = None) -> list[Message]:
        """Chronological thread between the actor and another account."""
        actor = self.session.require_actor()
        participants = {actor.id, other_user_id}
        thread = [
            message
            for message in self.mirror.messages
            if {message.sender_id, message.receiver_id} == participants
            and message.listing_id == listing_id
        ]
        return sorted(thread, key=lambda message: (message.created_at, message.id))

    def mark_messages_as_read(self, other_user_id: str, listing_id: Optional[str] = None) -> int:
        """Mark every unread message from ``other_user_id`` to the actor as read.

        The mirror is updated optimistically before the writes go out. If any
        write fails the messages snapshot is re-synced and the failure raised.

        Returns:
            Number of messages marked
        """
        actor = self.session.require_actor()
        unread = [
            message
            for message in self.mirror.messages
            if message.receiver_id == actor.id
            and message.sender_id == other_user_id
            and message.listing_id == listing_id
            and not message.read
        ]
        if not unread:
            return 0

        self.mirror.apply_local("messages", [replace(message, read=True) for message in unread])

        read = to_remote("messages", {"read": True})
        failures: list[RemoteError] = []
        for message in unread:
            try:
                self.datastore.update("messages", message.id, read)
            except RemoteError as exc:
                failures.append(exc)

        if failures:
            self.mirror.refresh("messages")
            raise RemoteWriteError(
                f"Could not mark {len(failures)} of {len(unread)} messages as read: {failures[0]}"
            )
        return len(unread)
