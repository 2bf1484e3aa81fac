"""Tests for listing queries."""

import pytest
from dataclasses import replace
from datetime import datetime, timedelta, UTC
from decimal import Decimal

from campusmart.domain.entities import Listing, ListingCategory, ListingCondition
from campusmart.domain.errors import ValidationError
from campusmart.domain.listings import browse_listings, listings_by_owner, wishlist_listings

T0 = datetime(2025, 1, 1, tzinfo=UTC)


def listing(listing_id, title, price, minutes=0, category=ListingCategory.OTHER, owner_id="u1",
            description="", sold=False):
    return Listing(
        id=listing_id,
        owner_id=owner_id,
        title=title,
        description=description,
        category=category,
        price=Decimal(price),
        location="",
        condition=ListingCondition.GOOD,
        image_url="",
        exchange_eligible=False,
        sold=sold,
        created_at=T0 + timedelta(minutes=minutes),
    )


@pytest.fixture
def catalogue():
    return [
        listing("i1", "Physics Notes", "50", minutes=1, category=ListingCategory.NOTES),
        listing("i2", "Desk Lamp", "300", minutes=2, description="LED, three brightness levels"),
        listing("i3", "Bucket", "120", minutes=3, category=ListingCategory.HOSTEL_ESSENTIALS, owner_id="u2"),
        listing("i4", "Old Phone", "2000", minutes=4, category=ListingCategory.ELECTRONICS, sold=True),
    ]


class TestBrowse:
    """Tests for browse_listings."""

    def test_newest_first_without_sold(self, catalogue):
        assert [item.id for item in browse_listings(catalogue)] == ["i3", "i2", "i1"]

    def test_search_matches_title_and_description(self, catalogue):
        assert [item.id for item in browse_listings(catalogue, search="notes")] == ["i1"]
        assert [item.id for item in browse_listings(catalogue, search="  led ")] == ["i2"]

    def test_blank_search_matches_everything(self, catalogue):
        assert len(browse_listings(catalogue, search="   ")) == 3

    def test_category_filter(self, catalogue):
        results = browse_listings(catalogue, category=ListingCategory.HOSTEL_ESSENTIALS)
        assert [item.id for item in results] == ["i3"]

    def test_price_sorts(self, catalogue):
        assert [item.id for item in browse_listings(catalogue, sort="price_asc")] == ["i1", "i3", "i2"]
        assert [item.id for item in browse_listings(catalogue, sort="price_desc")] == ["i2", "i3", "i1"]

    def test_unknown_sort(self, catalogue):
        with pytest.raises(ValidationError, match="Unknown sort"):
            browse_listings(catalogue, sort="cheapest")


def test_listings_by_owner_includes_sold(catalogue):
    assert [item.id for item in listings_by_owner(catalogue, "u1")] == ["i4", "i2", "i1"]


def test_wishlist_skips_deleted_listings(catalogue, buyer):
    actor = replace(buyer.actor, wishlist=frozenset({"i2", "deleted"}))
    assert [item.id for item in wishlist_listings(catalogue, actor)] == ["i2"]
