"""Field translation between domain entities and remote rows.

Each remote collection has exactly one bidirectional mapping table. Rows are
translated inbound at the mirror boundary and change sets outbound at the
gateway boundary, so nothing else sees remote column names.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Callable

from campusmart.database.base import Row
from campusmart.domain import entities as domain
from campusmart.domain.errors import ValidationError, unknown_field
from campusmart.utils.timestamps import parse_timestamp

# local field name -> remote column name
ACCOUNT_FIELDS = {
    "id": "id",
    "display_name": "full_name",
    "email": "email",
    "registration_number": "reg_no",
    "branch": "branch",
    "year": "year",
    "hostel_block": "hostel_block",
    "role": "role",
    "avatar_url": "profile_picture_url",
    "rating": "rating",
    "ratings_count": "ratings_count",
    "suspended": "is_suspended",
    "wishlist": "wishlist",
}

LISTING_FIELDS = {
    "id": "id",
    "owner_id": "seller_id",
    "title": "title",
    "description": "description",
    "category": "category",
    "price": "price",
    "location": "location",
    "condition": "condition",
    "image_url": "image_url",
    "exchange_eligible": "open_to_exchange",
    "sold": "is_sold",
    "created_at": "created_at",
}

LOST_REPORT_FIELDS = {
    "id": "id",
    "name": "name",
    "description": "description",
    "location_found": "location_found",
    "image_url": "image_url",
    "claimant_id": "claimed_by",
    "found_at": "date_found",
}

COMPLAINT_FIELDS = {
    "id": "id",
    "listing_id": "item_id",
    "reporter_id": "reporter_id",
    "reason": "reason",
    "status": "status",
    "created_at": "created_at",
}

CLAIM_FIELDS = {
    "id": "id",
    "lost_report_id": "lost_item_id",
    "claimant_id": "claimant_id",
    "proof_image_url": "proof_image_url",
    "bill_image_url": "bill_image_url",
    "comments": "comments",
    "status": "status",
    "created_at": "created_at",
}

MESSAGE_FIELDS = {
    "id": "id",
    "sender_id": "sender_id",
    "receiver_id": "receiver_id",
    "listing_id": "item_id",
    "content": "content",
    "read": "is_read",
    "created_at": "created_at",
}

FIELD_MAPS: dict[str, dict[str, str]] = {
    "users": ACCOUNT_FIELDS,
    "items": LISTING_FIELDS,
    "lost_items": LOST_REPORT_FIELDS,
    "complaints": COMPLAINT_FIELDS,
    "claims": CLAIM_FIELDS,
    "messages": MESSAGE_FIELDS,
}

_REVERSE_MAPS = {
    collection: {remote: local for local, remote in fields.items()}
    for collection, fields in FIELD_MAPS.items()
}


def _encode(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    return value


def to_remote(collection: str, changes: dict[str, Any]) -> Row:
    """Translate a local change set into remote column names.

    Only the supplied fields are translated, so a partial update stays
    partial.

    Raises:
        ValidationError: If a field has no remote counterpart
    """
    fields = FIELD_MAPS[collection]
    row: Row = {}
    for name, value in changes.items():
        if name not in fields:
            raise ValidationError(unknown_field(collection, name))
        row[fields[name]] = _encode(value)
    return row


def to_local(collection: str, row: Row) -> dict[str, Any]:
    """Translate a remote row into local field names, dropping unknown columns."""
    reverse = _REVERSE_MAPS[collection]
    return {reverse[name]: value for name, value in row.items() if name in reverse}


def _decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def account_to_domain(row: Row) -> domain.Account:
    """Convert a ``users`` row to a domain Account entity."""
    data = to_local("users", row)
    return domain.Account(
        id=data["id"],
        display_name=data.get("display_name") or "",
        email=data.get("email") or "",
        registration_number=data.get("registration_number") or "",
        branch=data.get("branch") or "",
        year=int(data.get("year") or 1),
        hostel_block=data.get("hostel_block") or "",
        role=domain.Role(data.get("role") or domain.Role.STUDENT.value),
        avatar_url=data.get("avatar_url") or "",
        rating=_decimal(data.get("rating")),
        ratings_count=int(data.get("ratings_count") or 0),
        suspended=bool(data.get("suspended")),
        wishlist=frozenset(data.get("wishlist") or ()),
    )


def listing_to_domain(row: Row) -> domain.Listing:
    """Convert an ``items`` row to a domain Listing entity."""
    data = to_local("items", row)
    return domain.Listing(
        id=data["id"],
        owner_id=data["owner_id"],
        title=data.get("title") or "",
        description=data.get("description") or "",
        category=domain.ListingCategory(data["category"]),
        price=_decimal(data.get("price")),
        location=data.get("location") or "",
        condition=domain.ListingCondition(data["condition"]),
        image_url=data.get("image_url") or "",
        exchange_eligible=bool(data.get("exchange_eligible")),
        sold=bool(data.get("sold")),
        created_at=parse_timestamp(data.get("created_at")),
    )


def lost_report_to_domain(row: Row) -> domain.LostReport:
    """Convert a ``lost_items`` row to a domain LostReport entity."""
    data = to_local("lost_items", row)
    return domain.LostReport(
        id=data["id"],
        name=data.get("name") or "",
        description=data.get("description") or "",
        location_found=data.get("location_found") or "",
        image_url=data.get("image_url") or "",
        claimant_id=data.get("claimant_id"),
        found_at=parse_timestamp(data.get("found_at")),
    )


def complaint_to_domain(row: Row) -> domain.Complaint:
    """Convert a ``complaints`` row to a domain Complaint entity."""
    data = to_local("complaints", row)
    return domain.Complaint(
        id=data["id"],
        listing_id=data["listing_id"],
        reporter_id=data["reporter_id"],
        reason=data.get("reason") or "",
        status=domain.ComplaintStatus(data.get("status") or "pending"),
        created_at=parse_timestamp(data.get("created_at")),
    )


def claim_to_domain(row: Row) -> domain.Claim:
    """Convert a ``claims`` row to a domain Claim entity."""
    data = to_local("claims", row)
    return domain.Claim(
        id=data["id"],
        lost_report_id=data["lost_report_id"],
        claimant_id=data["claimant_id"],
        proof_image_url=data.get("proof_image_url") or "",
        bill_image_url=data.get("bill_image_url"),
        comments=data.get("comments") or "",
        status=domain.ClaimStatus(data.get("status") or "pending"),
        created_at=parse_timestamp(data.get("created_at")),
    )


def message_to_domain(row: Row) -> domain.Message:
    """Convert a ``messages`` row to a domain Message entity."""
    data = to_local("messages", row)
    return domain.Message(
        id=data["id"],
        sender_id=data["sender_id"],
        receiver_id=data["receiver_id"],
        listing_id=data.get("listing_id"),
        content=data.get("content") or "",
        read=bool(data.get("read")),
        created_at=parse_timestamp(data.get("created_at")),
    )


TO_DOMAIN: dict[str, Callable[[Row], Any]] = {
    "users": account_to_domain,
    "items": listing_to_domain,
    "lost_items": lost_report_to_domain,
    "complaints": complaint_to_domain,
    "claims": claim_to_domain,
    "messages": message_to_domain,
}


def row_to_domain(collection: str, row: Row) -> Any:
    """Convert a row of any mirrored collection to its domain entity."""
    return TO_DOMAIN[collection](row)


def remote_field(collection: str, local_name: str) -> str:
    """Remote column name for a single local field."""
    try:
        return FIELD_MAPS[collection][local_name]
    except KeyError:
        raise ValidationError(unknown_field(collection, local_name)) from None
