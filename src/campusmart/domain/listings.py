"""Listing queries over mirror snapshots."""

from typing import Iterable, Optional

from campusmart.domain.entities import Account, Listing, ListingCategory
from campusmart.domain.errors import ValidationError

SORT_ORDERS = ("newest", "price_asc", "price_desc")


def _matches(listing: Listing, needle: str) -> bool:
    return needle in listing.title.lower() or needle in listing.description.lower()


def browse_listings(
    listings: Iterable[Listing],
    search: Optional[str] = None,
    category: Optional[ListingCategory] = None,
    sort: str = "newest",
) -> list[Listing]:
    """Unsold listings filtered by search text and category.

    Args:
        listings: Listing snapshot
        search: Case-insensitive text matched against title and description
        category: Only listings in this category
        sort: 'newest', 'price_asc' or 'price_desc'

    Raises:
        ValidationError: If the sort order is unknown
    """
    if sort not in SORT_ORDERS:
        raise ValidationError(f"Unknown sort '{sort}'. Supported: {', '.join(SORT_ORDERS)}")

    results = [listing for listing in listings if not listing.sold]
    if search and search.strip():
        needle = search.strip().lower()
        results = [listing for listing in results if _matches(listing, needle)]
    if category is not None:
        results = [listing for listing in results if listing.category == category]

    if sort == "price_asc":
        results.sort(key=lambda listing: (listing.price, listing.id))
    elif sort == "price_desc":
        results.sort(key=lambda listing: (listing.price, listing.id), reverse=True)
    else:
        results.sort(key=lambda listing: (listing.created_at, listing.id), reverse=True)
    return results


def wishlist_listings(listings: Iterable[Listing], account: Account) -> list[Listing]:
    """Listings in an account's wishlist that still exist."""
    return [listing for listing in listings if listing.id in account.wishlist]


def listings_by_owner(listings: Iterable[Listing], owner_id: str) -> list[Listing]:
    """An account's own listings, newest first, sold ones included."""
    owned = [listing for listing in listings if listing.owner_id == owner_id]
    return sorted(owned, key=lambda listing: listing.created_at, reverse=True)
