"""Domain model entities for campusmart.

These are pure data classes representing marketplace concepts, independent of
the remote datastore's schema and naming convention. Rows are converted into
these entities at the mirror boundary (see ``campusmart.database.mappers``).
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class Role(str, Enum):
    """Account role."""

    STUDENT = "STUDENT"
    ADMIN = "ADMIN"


class ListingCategory(str, Enum):
    """Closed set of listing categories."""

    TEXTBOOKS = "Textbooks"
    ELECTRONICS = "Electronics"
    NOTES = "Notes"
    HOSTEL_ESSENTIALS = "Hostel Essentials"
    OTHER = "Other"


class ListingCondition(str, Enum):
    """Closed set of listing conditions."""

    NEW = "New"
    LIKE_NEW = "Like New"
    GOOD = "Good"
    USED = "Used"


class ComplaintStatus(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"


class ComplaintAction(str, Enum):
    """Administrator action taken when resolving a complaint."""

    DISMISS = "dismiss"
    DELETE_ITEM = "deleteItem"


class ClaimStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Account:
    """Marketplace account domain entity.

    ``rating`` is only meaningful when ``ratings_count`` is positive.
    """

    id: str
    display_name: str
    email: str
    registration_number: str
    branch: str
    year: int
    hostel_block: str
    role: Role
    avatar_url: str
    rating: Decimal = Decimal("0")
    ratings_count: int = 0
    suspended: bool = False
    wishlist: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass(frozen=True)
class Listing:
    """Second-hand item listing domain entity."""

    id: str
    owner_id: str
    title: str
    description: str
    category: ListingCategory
    price: Decimal
    location: str
    condition: ListingCondition
    image_url: str
    exchange_eligible: bool
    sold: bool
    created_at: datetime


@dataclass(frozen=True)
class LostReport:
    """Lost-and-found report domain entity."""

    id: str
    name: str
    description: str
    location_found: str
    image_url: str
    claimant_id: Optional[str]
    found_at: datetime


@dataclass(frozen=True)
class Complaint:
    """Complaint raised against a listing."""

    id: str
    listing_id: str
    reporter_id: str
    reason: str
    status: ComplaintStatus
    created_at: datetime


@dataclass(frozen=True)
class Claim:
    """Ownership claim on a lost report."""

    id: str
    lost_report_id: str
    claimant_id: str
    proof_image_url: str
    bill_image_url: Optional[str]
    comments: str
    status: ClaimStatus
    created_at: datetime


@dataclass(frozen=True)
class Message:
    """Direct message between two accounts, optionally about a listing."""

    id: str
    sender_id: str
    receiver_id: str
    listing_id: Optional[str]
    content: str
    read: bool
    created_at: datetime


@dataclass(frozen=True)
class Conversation:
    """Derived conversation thread; never persisted.

    Keyed by ``(counterpart_id, listing_id)`` where a ``None`` listing id is
    the general bucket.
    """

    counterpart_id: str
    counterpart_name: str
    counterpart_avatar: str
    listing_id: Optional[str]
    listing_title: Optional[str]
    last_message: str
    last_message_at: datetime
    last_message_id: str
    unread_count: int
