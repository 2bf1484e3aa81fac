"""Tests for the mutation gateway."""

import pytest
from decimal import Decimal

from campusmart.domain.entities import (
    ClaimStatus,
    ComplaintStatus,
    ListingCategory,
    ListingCondition,
)
from campusmart.domain.errors import (
    NotFoundError,
    PartialTransitionError,
    PermissionDeniedError,
    RemoteWriteError,
    ValidationError,
)
from campusmart.domain.mutations import coerce_enum


def fail_writes_to(monkeypatch, datastore, method, collection):
    """Make ``datastore.<method>`` raise for one collection only."""
    real = getattr(datastore, method)

    def failing(target, *args, **kwargs):
        if target == collection:
            raise RemoteWriteError(f"{method} on {collection} rejected")
        return real(target, *args, **kwargs)

    monkeypatch.setattr(datastore, method, failing)


class TestCoerceEnum:
    """Tests for enum input coercion."""

    def test_accepts_value_name_and_member(self):
        assert coerce_enum(ListingCategory, "Hostel Essentials", "category") == ListingCategory.HOSTEL_ESSENTIALS
        assert coerce_enum(ListingCategory, "hostel essentials", "category") == ListingCategory.HOSTEL_ESSENTIALS
        assert coerce_enum(ListingCategory, "HOSTEL_ESSENTIALS", "category") == ListingCategory.HOSTEL_ESSENTIALS
        assert coerce_enum(ListingCondition, ListingCondition.NEW, "condition") == ListingCondition.NEW

    def test_rejects_unknown(self):
        with pytest.raises(ValidationError, match="Invalid category 'Furniture'"):
            coerce_enum(ListingCategory, "Furniture", "category")


class TestListings:
    """Tests for listing writes."""

    def test_add_listing(self, seller, buyer, seller_id, sample_listing):
        assert sample_listing.owner_id == seller_id
        assert sample_listing.category == ListingCategory.TEXTBOOKS
        assert sample_listing.condition == ListingCondition.GOOD
        assert sample_listing.price == Decimal("350")
        assert sample_listing.sold is False
        assert sample_listing.created_at is not None
        # the change feed delivers it to every mirror
        assert seller.mirror.get_listing_by_id(sample_listing.id) is not None
        assert buyer.mirror.get_listing_by_id(sample_listing.id) is not None

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"title": "  "}, "Title cannot be empty"),
            ({"price": "-1"}, "Price cannot be negative"),
            ({"price": "free"}, "Invalid price"),
            ({"category": "Furniture"}, "Invalid category"),
            ({"condition": "Broken"}, "Invalid condition"),
        ],
    )
    def test_add_listing_validation(self, seller, seller_id, overrides, message):
        values = dict(
            owner_id=seller_id, title="Lamp", description="", category="Other", price="10",
            location="", condition="Good", image_url="",
        )
        values.update(overrides)
        with pytest.raises(ValidationError, match=message):
            seller.gateway.add_listing(**values)
        assert seller.mirror.listings == ()

    def test_remove_listing(self, seller, buyer, sample_listing):
        assert seller.gateway.remove_listing(sample_listing.id) is True
        assert buyer.mirror.get_listing_by_id(sample_listing.id) is None
        assert seller.gateway.remove_listing(sample_listing.id) is False

    def test_mark_sold(self, seller, sample_listing):
        seller.gateway.mark_listing_sold(sample_listing.id)
        assert seller.mirror.get_listing_by_id(sample_listing.id).sold is True

        seller.gateway.mark_listing_sold(sample_listing.id, sold=False)
        assert seller.mirror.get_listing_by_id(sample_listing.id).sold is False

    def test_mark_sold_missing(self, seller):
        with pytest.raises(NotFoundError, match="Listing nope not found"):
            seller.gateway.mark_listing_sold("nope")


class TestAccounts:
    """Tests for account writes."""

    def test_toggle_suspend(self, admin, buyer_id):
        assert admin.gateway.toggle_suspend_account(buyer_id) is True
        assert admin.mirror.get_account_by_id(buyer_id).suspended is True
        assert admin.gateway.toggle_suspend_account(buyer_id) is False
        assert admin.mirror.get_account_by_id(buyer_id).suspended is False

    def test_toggle_suspend_missing(self, admin):
        with pytest.raises(NotFoundError):
            admin.gateway.toggle_suspend_account("nobody")

    def test_update_account_is_partial(self, buyer, buyer_id):
        buyer.gateway.update_account(buyer_id, branch="ECE", hostel_block=None)

        actor = buyer.actor
        assert actor.branch == "ECE"
        assert actor.hostel_block == "A"
        assert actor.display_name == "Bea Buyer"

    def test_update_account_rejects_protected_fields(self, buyer, buyer_id):
        with pytest.raises(ValidationError, match="rating"):
            buyer.gateway.update_account(buyer_id, rating=5)

    def test_update_account_validates_year(self, buyer, buyer_id):
        with pytest.raises(ValidationError, match="Invalid year"):
            buyer.gateway.update_account(buyer_id, year="second")
        with pytest.raises(ValidationError, match="at least 1"):
            buyer.gateway.update_account(buyer_id, year=0)

    def test_update_missing_account(self, buyer):
        with pytest.raises(NotFoundError):
            buyer.gateway.update_account("nobody", branch="ME")


class TestRatings:
    """Tests for seller ratings."""

    def test_sequential_ratings(self, buyer, seller_id):
        assert buyer.gateway.rate_seller(seller_id, 5) == (Decimal("5.0"), 1)
        assert buyer.gateway.rate_seller(seller_id, 4) == (Decimal("4.5"), 2)
        assert buyer.gateway.rate_seller(seller_id, 4) == (Decimal("4.3"), 3)

        seller = buyer.mirror.get_account_by_id(seller_id)
        assert seller.rating == Decimal("4.3")
        assert seller.ratings_count == 3

    @pytest.mark.parametrize("rating", [0, 6, 4.5, True, "5"])
    def test_invalid_rating(self, buyer, seller_id, rating):
        with pytest.raises(ValidationError):
            buyer.gateway.rate_seller(seller_id, rating)
        assert buyer.mirror.get_account_by_id(seller_id).ratings_count == 0

    def test_missing_seller(self, buyer):
        with pytest.raises(NotFoundError):
            buyer.gateway.rate_seller("nobody", 3)

    def test_concurrent_raters_both_count(self, make_client, register, seller_id, buyer):
        register("third@student.edu", name="Third")
        other = make_client("third@student.edu")

        buyer.gateway.rate_seller(seller_id, 5)
        other.gateway.rate_seller(seller_id, 3)

        seller = buyer.mirror.get_account_by_id(seller_id)
        assert (seller.rating, seller.ratings_count) == (Decimal("4.0"), 2)


class TestWishlist:
    """Tests for wishlist toggling."""

    def test_toggle_adds_then_removes(self, buyer, sample_listing):
        assert buyer.gateway.is_in_wishlist(sample_listing.id) is False

        assert buyer.gateway.toggle_wishlist(sample_listing.id) is True
        assert buyer.gateway.is_in_wishlist(sample_listing.id) is True
        assert sample_listing.id in buyer.actor.wishlist

        assert buyer.gateway.toggle_wishlist(sample_listing.id) is False
        assert buyer.actor.wishlist == frozenset()

    def test_stale_add_does_not_duplicate(self, buyer, buyer_id, sample_listing, temp_datastore):
        buyer.gateway.toggle_wishlist(sample_listing.id)
        # a second add racing in from another device
        temp_datastore.add_to_set("users", buyer_id, "wishlist", sample_listing.id)

        assert temp_datastore.get_row("users", buyer_id)["wishlist"] == [sample_listing.id]

    def test_not_signed_in(self, make_client, sample_listing):
        client = make_client()
        assert client.gateway.is_in_wishlist(sample_listing.id) is False


class TestLostReports:
    """Tests for lost-and-found reports and claims."""

    def test_admin_only_by_default(self, buyer):
        with pytest.raises(PermissionDeniedError):
            buyer.gateway.add_lost_report("Umbrella", "Black", "Library", "")

    def test_admin_can_add(self, admin, buyer):
        report = admin.gateway.add_lost_report("Umbrella", "Black", "Library", "")
        assert report.claimant_id is None
        assert buyer.mirror.get_lost_report_by_id(report.id).name == "Umbrella"

    def test_open_policy(self, make_client, open_settings, buyer_id):
        client = make_client("buyer@student.edu", client_settings=open_settings)
        report = client.gateway.add_lost_report("Keys", "", "Canteen", "")
        assert client.mirror.get_lost_report_by_id(report.id) is not None

    def test_claim_requires_proof(self, admin, buyer, buyer_id):
        report = admin.gateway.add_lost_report("Umbrella", "", "Library", "")
        with pytest.raises(ValidationError, match="proof image"):
            buyer.gateway.submit_claim(report.id, buyer_id, "  ")

    def test_approve_claim_sets_claimant(self, admin, buyer, buyer_id):
        report = admin.gateway.add_lost_report("Umbrella", "", "Library", "")
        claim = buyer.gateway.submit_claim(report.id, buyer_id, "file:///proof.jpg", comments="Mine")
        assert claim.status == ClaimStatus.PENDING

        admin.gateway.resolve_claim(claim.id, "approved")

        assert admin.mirror.get_claim_by_id(claim.id).status == ClaimStatus.APPROVED
        assert admin.mirror.get_lost_report_by_id(report.id).claimant_id == buyer_id

    def test_reject_claim_leaves_report_unclaimed(self, admin, buyer, buyer_id):
        report = admin.gateway.add_lost_report("Umbrella", "", "Library", "")
        claim = buyer.gateway.submit_claim(report.id, buyer_id, "file:///proof.jpg")

        admin.gateway.resolve_claim(claim.id, ClaimStatus.REJECTED)

        assert admin.mirror.get_claim_by_id(claim.id).status == ClaimStatus.REJECTED
        assert admin.mirror.get_lost_report_by_id(report.id).claimant_id is None

    def test_cannot_resolve_as_pending(self, admin):
        with pytest.raises(ValidationError):
            admin.gateway.resolve_claim("any", "pending")

    def test_missing_claim(self, admin):
        with pytest.raises(NotFoundError):
            admin.gateway.resolve_claim("nope", "approved")

    def test_partial_approval(self, admin, buyer, buyer_id, temp_datastore, monkeypatch):
        report = admin.gateway.add_lost_report("Umbrella", "", "Library", "")
        claim = buyer.gateway.submit_claim(report.id, buyer_id, "file:///proof.jpg")
        fail_writes_to(monkeypatch, temp_datastore, "update", "lost_items")

        with pytest.raises(PartialTransitionError) as excinfo:
            admin.gateway.resolve_claim(claim.id, "approved")

        error = excinfo.value
        assert error.completed_step == "claim approved"
        assert error.pending_step == "set lost report claimant"
        assert error.entity_id == claim.id
        assert error.target_id == report.id
        # the first step stays committed
        assert admin.mirror.get_claim_by_id(claim.id).status == ClaimStatus.APPROVED
        assert admin.mirror.get_lost_report_by_id(report.id).claimant_id is None

    def test_approval_when_report_is_gone(self, admin, buyer, buyer_id, temp_datastore):
        report = admin.gateway.add_lost_report("Umbrella", "", "Library", "")
        claim = buyer.gateway.submit_claim(report.id, buyer_id, "file:///proof.jpg")
        temp_datastore.delete("lost_items", report.id)

        with pytest.raises(PartialTransitionError):
            admin.gateway.resolve_claim(claim.id, "approved")


class TestComplaints:
    """Tests for listing complaints."""

    def test_report_listing(self, buyer, buyer_id, admin, sample_listing):
        complaint = buyer.gateway.report_listing(sample_listing.id, buyer_id, "Fake item")
        assert complaint.status == ComplaintStatus.PENDING
        assert admin.mirror.get_complaint_by_id(complaint.id).reason == "Fake item"

    def test_report_requires_reason(self, buyer, buyer_id, sample_listing):
        with pytest.raises(ValidationError):
            buyer.gateway.report_listing(sample_listing.id, buyer_id, "")

    def test_dismiss_keeps_listing(self, buyer, buyer_id, admin, sample_listing):
        complaint = buyer.gateway.report_listing(sample_listing.id, buyer_id, "Overpriced")

        admin.gateway.resolve_complaint(complaint.id, "dismiss")

        assert admin.mirror.get_complaint_by_id(complaint.id).status == ComplaintStatus.RESOLVED
        assert admin.mirror.get_listing_by_id(sample_listing.id) is not None

    def test_delete_item_removes_listing(self, buyer, buyer_id, admin, sample_listing):
        complaint = buyer.gateway.report_listing(sample_listing.id, buyer_id, "Fake item")

        admin.gateway.resolve_complaint(complaint.id, "deleteItem")

        assert admin.mirror.get_complaint_by_id(complaint.id).status == ComplaintStatus.RESOLVED
        assert admin.mirror.get_listing_by_id(sample_listing.id) is None
        assert buyer.mirror.get_listing_by_id(sample_listing.id) is None

    def test_partial_delete(self, buyer, buyer_id, admin, sample_listing, temp_datastore, monkeypatch):
        complaint = buyer.gateway.report_listing(sample_listing.id, buyer_id, "Fake item")
        fail_writes_to(monkeypatch, temp_datastore, "delete", "items")

        with pytest.raises(PartialTransitionError) as excinfo:
            admin.gateway.resolve_complaint(complaint.id, "deleteItem")

        assert excinfo.value.completed_step == "complaint resolved"
        assert excinfo.value.pending_step == "delete listing"
        assert excinfo.value.target_id == sample_listing.id
        assert admin.mirror.get_complaint_by_id(complaint.id).status == ComplaintStatus.RESOLVED
        assert admin.mirror.get_listing_by_id(sample_listing.id) is not None

        # the pending step can be retried on its own
        monkeypatch.undo()
        assert admin.gateway.remove_listing(sample_listing.id) is True

    def test_listing_already_removed(self, buyer, buyer_id, admin, seller, sample_listing):
        complaint = buyer.gateway.report_listing(sample_listing.id, buyer_id, "Fake item")
        seller.gateway.remove_listing(sample_listing.id)

        admin.gateway.resolve_complaint(complaint.id, "deleteItem")

        assert admin.mirror.get_complaint_by_id(complaint.id).status == ComplaintStatus.RESOLVED

    def test_unknown_action(self, admin):
        with pytest.raises(ValidationError):
            admin.gateway.resolve_complaint("any", "ban")


class TestMessages:
    """Tests for messaging writes."""

    def test_send_message(self, buyer, seller, seller_id, buyer_id, sample_listing):
        message = buyer.gateway.send_message(seller_id, "  Still available?  ", listing_id=sample_listing.id)

        assert message.content == "Still available?"
        assert message.sender_id == buyer_id
        assert message.read is False
        assert seller.gateway.get_messages(buyer_id, sample_listing.id) == [message]

    def test_empty_message(self, buyer, seller_id):
        with pytest.raises(ValidationError):
            buyer.gateway.send_message(seller_id, "   ")

    def test_cannot_message_self(self, buyer, buyer_id):
        with pytest.raises(ValidationError):
            buyer.gateway.send_message(buyer_id, "hello me")

    def test_thread_is_chronological_and_scoped(self, buyer, seller, seller_id, buyer_id, sample_listing):
        first = buyer.gateway.send_message(seller_id, "Hi", listing_id=sample_listing.id)
        second = seller.gateway.send_message(buyer_id, "Hello", listing_id=sample_listing.id)
        buyer.gateway.send_message(seller_id, "Unrelated chat")

        thread = buyer.gateway.get_messages(seller_id, sample_listing.id)
        assert [m.id for m in thread] == [first.id, second.id]
        assert [m.content for m in buyer.gateway.get_messages(seller_id)] == ["Unrelated chat"]

    def test_mark_messages_as_read(self, buyer, seller, seller_id, buyer_id):
        buyer.gateway.send_message(seller_id, "One")
        buyer.gateway.send_message(seller_id, "Two")
        seller.gateway.send_message(buyer_id, "Reply")

        assert seller.gateway.mark_messages_as_read(buyer_id) == 2

        to_seller = [m for m in seller.mirror.messages if m.receiver_id == seller_id]
        assert all(m.read for m in to_seller)
        # the seller's own reply is untouched
        reply = next(m for m in seller.mirror.messages if m.sender_id == seller_id)
        assert reply.read is False
        assert seller.gateway.mark_messages_as_read(buyer_id) == 0

    def test_mark_read_failure_resyncs(self, buyer, seller, seller_id, buyer_id, temp_datastore, monkeypatch):
        buyer.gateway.send_message(seller_id, "One")
        fail_writes_to(monkeypatch, temp_datastore, "update", "messages")

        with pytest.raises(RemoteWriteError, match="1 of 1"):
            seller.gateway.mark_messages_as_read(buyer_id)

        assert [m.read for m in seller.mirror.messages] == [False]
