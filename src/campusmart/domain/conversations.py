"""Conversation projector: threads derived from the flat message mirror."""

import logging
from typing import Callable, Iterable, Mapping, Optional

from campusmart.database.base import Unsubscribe
from campusmart.domain.entities import Account, Conversation, Listing, Message
from campusmart.domain.mirror import RemoteMirror
from campusmart.domain.session import SessionBridge

logger = logging.getLogger(__name__)

ConversationListener = Callable[[list[Conversation]], None]


def _ordering(message: Message) -> tuple:
    # Equal timestamps are broken by message id so the projection is deterministic.
    return (message.created_at, message.id)


def project_conversations(
    messages: Iterable[Message],
    accounts: Mapping[str, Account],
    listings: Mapping[str, Listing],
    actor_id: str,
) -> list[Conversation]:
    """Group the actor's messages into conversations.

    Messages are keyed by (counterpart id, listing id or None for general
    chat). Each conversation carries its latest message and the number of
    unread messages addressed to the actor. Conversations whose counterpart
    or listing is not in the mirror (not arrived yet, or deleted) are left
    out.

    Args:
        messages: Every mirrored message
        accounts: Accounts by id
        listings: Listings by id
        actor_id: Current actor's account id

    Returns:
        Conversations, most recent first
    """
    latest: dict[tuple[str, Optional[str]], Message] = {}
    unread: dict[tuple[str, Optional[str]], int] = {}

    for message in messages:
        if message.sender_id == actor_id:
            counterpart_id = message.receiver_id
        elif message.receiver_id == actor_id:
            counterpart_id = message.sender_id
        else:
            continue

        key = (counterpart_id, message.listing_id)
        current = latest.get(key)
        if current is None or _ordering(message) > _ordering(current):
            latest[key] = message
        if message.receiver_id == actor_id and not message.read:
            unread[key] = unread.get(key, 0) + 1
        else:
            unread.setdefault(key, 0)

    conversations = []
    for (counterpart_id, listing_id), last in latest.items():
        counterpart = accounts.get(counterpart_id)
        if counterpart is None:
            logger.debug("Skipping conversation with unknown account %s", counterpart_id)
            continue
        listing_title = None
        if listing_id is not None:
            listing = listings.get(listing_id)
            if listing is None:
                logger.debug("Skipping conversation about unknown listing %s", listing_id)
                continue
            listing_title = listing.title

        conversations.append(
            Conversation(
                counterpart_id=counterpart_id,
                counterpart_name=counterpart.display_name,
                counterpart_avatar=counterpart.avatar_url,
                listing_id=listing_id,
                listing_title=listing_title,
                last_message=last.content,
                last_message_at=last.created_at,
                last_message_id=last.id,
                unread_count=unread[(counterpart_id, listing_id)],
            )
        )

    conversations.sort(key=lambda c: (c.last_message_at, c.last_message_id), reverse=True)
    return conversations


class ConversationProjector:
    """Recomputes the actor's conversations whenever the mirror changes.

    Holds no state of its own beyond the latest projection, so marking
    messages read is reflected as soon as the messages snapshot changes.
    """

    WATCHED = ("messages", "users", "items")

    def __init__(self, mirror: RemoteMirror, session: SessionBridge):
        """Initialize conversation projector.

        Args:
            mirror: Mirror providing messages, accounts and listings
            session: Source of the current actor
        """
        self.mirror = mirror
        self.session = session
        self._conversations: list[Conversation] = []
        self._listeners: list[ConversationListener] = []
        self._unsubscribers: list[Unsubscribe] = [
            mirror.on_change(collection, self._on_snapshot) for collection in self.WATCHED
        ]
        self.recompute()

    def _on_snapshot(self, _snapshot: tuple) -> None:
        self.recompute()

    def recompute(self) -> list[Conversation]:
        """Rebuild the projection from the current snapshots and notify listeners."""
        actor = self.session.current_actor()
        if actor is None:
            conversations = []
        else:
            conversations = project_conversations(
                self.mirror.messages,
                {account.id: account for account in self.mirror.accounts},
                {listing.id: listing for listing in self.mirror.listings},
                actor.id,
            )
        self._conversations = conversations
        for listener in list(self._listeners):
            listener(conversations)
        return conversations

    @property
    def conversations(self) -> list[Conversation]:
        return list(self._conversations)

    def total_unread(self) -> int:
        return sum(conversation.unread_count for conversation in self._conversations)

    def on_change(self, callback: ConversationListener) -> Unsubscribe:
        """Call ``callback(conversations)`` after every recomputation."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def close(self) -> None:
        """Stop listening to the mirror."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
