"""Composition of the marketplace core for one client session."""

import logging
from typing import Optional

from campusmart.config import Settings
from campusmart.database.base import Datastore, Unsubscribe
from campusmart.domain.conversations import ConversationProjector
from campusmart.domain.entities import Account, ListingCategory
from campusmart.domain.errors import ValidationError
from campusmart.domain.mirror import RemoteMirror
from campusmart.domain.mutations import MutationGateway
from campusmart.domain.session import SessionBridge
from campusmart.providers.auth import AuthProvider
from campusmart.providers.blobs import BlobStore
from campusmart.providers.text import TextGenerator, describe_listing
from campusmart.utils.retry import RetryPolicy

logger = logging.getLogger(__name__)


class MarketplaceClient:
    """Wires session, mirror, gateway and projector together.

    Composition order: the session bridge resolves the actor, which activates
    the mirror; the projector and the session follow mirror updates. Every
    collaborator is passed in explicitly.
    """

    def __init__(
        self,
        datastore: Datastore,
        auth: AuthProvider,
        settings: Settings = Settings(),
        blobs: Optional[BlobStore] = None,
        text_generator: Optional[TextGenerator] = None,
        retry_policy: RetryPolicy = RetryPolicy(),
    ):
        self.datastore = datastore
        self.settings = settings
        self.blobs = blobs
        self.text_generator = text_generator
        self.session = SessionBridge(auth, datastore, settings)
        self.mirror = RemoteMirror(datastore, retry_policy=retry_policy)
        self.gateway = MutationGateway(datastore, self.mirror, self.session, settings)
        self.projector = ConversationProjector(self.mirror, self.session)
        self._unsubscribers: list[Unsubscribe] = [
            self.session.on_actor_changed(self._on_actor_changed),
            self.mirror.on_change("users", self.session.absorb_accounts),
        ]

    def _on_actor_changed(self, actor: Optional[Account]) -> None:
        if actor is None:
            self.mirror.deactivate()
        else:
            self.mirror.activate(actor.id)

    @property
    def actor(self) -> Optional[Account]:
        return self.session.current_actor()

    def login(self, email: str, password: str) -> Account:
        return self.session.login(email, password)

    def logout(self) -> None:
        self.session.logout()

    def upload_image(self, data: bytes, filename: str, bucket: str, path: str) -> str:
        """Store an image in the blob store and return its public URL."""
        if self.blobs is None:
            raise ValidationError("No blob store is configured for image uploads")
        return self.blobs.upload(data, filename, bucket, path)

    def describe(self, title: str, category: ListingCategory) -> str:
        """Suggest a listing description."""
        return describe_listing(self.text_generator, title, category)

    def close(self) -> None:
        """Tear down every subscription this client holds."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self.projector.close()
        self.mirror.deactivate()
