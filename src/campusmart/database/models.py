"""SQLAlchemy models for the campusmart remote datastore.

Table and column names follow the remote (snake_case) convention; nothing
outside ``campusmart.database`` sees these names.
"""

from datetime import datetime, UTC
from uuid import uuid4
from sqlalchemy import (
    Column,
    String,
    Integer,
    DateTime,
    Numeric,
    Boolean,
    JSON,
    ForeignKey,
    create_engine,
)
from sqlalchemy.orm import declarative_base, sessionmaker, Session

Base = declarative_base()


def _new_id() -> str:
    return str(uuid4())


class User(Base):
    """Account profile row. ``id`` is the auth provider's uid."""

    __tablename__ = "users"

    id = Column(String, primary_key=True)
    full_name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    reg_no = Column(String, nullable=False, default="UPDATE_ME")
    branch = Column(String, nullable=False, default="UPDATE_ME")
    year = Column(Integer, nullable=False, default=1)
    hostel_block = Column(String, nullable=False, default="UPDATE_ME")
    role = Column(String, nullable=False, default="STUDENT")
    profile_picture_url = Column(String, nullable=False, default="")
    rating = Column(Numeric(3, 1), nullable=False, default=0)
    ratings_count = Column(Integer, nullable=False, default=0)
    # Unrounded sum of all ratings; lets the average be recomputed exactly.
    rating_total = Column(Numeric(10, 2), nullable=True)
    is_suspended = Column(Boolean, nullable=False, default=False)
    wishlist = Column(JSON, nullable=False, default=list)


class Item(Base):
    """Marketplace listing row."""

    __tablename__ = "items"

    id = Column(String, primary_key=True, default=_new_id)
    seller_id = Column(String, ForeignKey("users.id"), nullable=False)
    title = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    category = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    location = Column(String, nullable=False, default="")
    condition = Column(String, nullable=False)
    image_url = Column(String, nullable=False, default="")
    open_to_exchange = Column(Boolean, nullable=False, default=False)
    is_sold = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False)


class LostItem(Base):
    """Lost-and-found report row."""

    __tablename__ = "lost_items"

    id = Column(String, primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    location_found = Column(String, nullable=False, default="")
    image_url = Column(String, nullable=False, default="")
    claimed_by = Column(String, ForeignKey("users.id"), nullable=True)
    date_found = Column(DateTime(timezone=True), nullable=False)


class Complaint(Base):
    """Complaint row. ``item_id`` is not a foreign key: the listing may be deleted."""

    __tablename__ = "complaints"

    id = Column(String, primary_key=True, default=_new_id)
    item_id = Column(String, nullable=False)
    reporter_id = Column(String, ForeignKey("users.id"), nullable=False)
    reason = Column(String, nullable=False)
    status = Column(String, nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), nullable=False)


class Claim(Base):
    """Claim row against a lost-and-found report."""

    __tablename__ = "claims"

    id = Column(String, primary_key=True, default=_new_id)
    lost_item_id = Column(String, ForeignKey("lost_items.id"), nullable=False)
    claimant_id = Column(String, ForeignKey("users.id"), nullable=False)
    proof_image_url = Column(String, nullable=False)
    bill_image_url = Column(String, nullable=True)
    comments = Column(String, nullable=False, default="")
    status = Column(String, nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), nullable=False)


class Message(Base):
    """Direct message row. ``item_id`` survives deletion of the listing."""

    __tablename__ = "messages"

    id = Column(String, primary_key=True, default=_new_id)
    sender_id = Column(String, ForeignKey("users.id"), nullable=False)
    receiver_id = Column(String, ForeignKey("users.id"), nullable=False)
    item_id = Column(String, nullable=True)
    content = Column(String, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False)


class AuthCredential(Base):
    """Credential row owned by the local auth provider, not a mirrored collection."""

    __tablename__ = "auth_credentials"

    uid = Column(String, primary_key=True, default=_new_id)
    email = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=True)
    password_salt = Column(String, nullable=True)
    email_verified = Column(Boolean, nullable=False, default=False)
    verification_token = Column(String, nullable=True)
    reset_token = Column(String, nullable=True)
    display_name = Column(String, nullable=True)
    photo_url = Column(String, nullable=True)
    provider = Column(String, nullable=False, default="password")
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)


# Remote collection name -> model class.
COLLECTIONS = {
    "users": User,
    "items": Item,
    "lost_items": LostItem,
    "complaints": Complaint,
    "claims": Claim,
    "messages": Message,
}

# Columns the datastore stamps with its own clock on insert.
SERVER_TIMESTAMP_COLUMNS = {
    "items": "created_at",
    "lost_items": "date_found",
    "complaints": "created_at",
    "claims": "created_at",
    "messages": "created_at",
}


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
