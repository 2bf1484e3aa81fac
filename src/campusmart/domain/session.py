"""Session bridge: the current actor, resolved through the auth provider."""

import logging
from typing import Callable, Iterable, Optional
from urllib.parse import quote

from campusmart.config import Settings
from campusmart.database.base import Datastore, Unsubscribe
from campusmart.database.mappers import account_to_domain, to_remote
from campusmart.domain.entities import Account, Role
from campusmart.domain.errors import (
    AuthenticationError,
    NotAuthenticatedError,
    ValidationError,
    not_signed_in,
)
from campusmart.providers.auth import AuthIdentity, AuthProvider, FederatedProfile

logger = logging.getLogger(__name__)

PLACEHOLDER = "UPDATE_ME"

ActorListener = Callable[[Optional[Account]], None]


def default_avatar_url(name: str) -> str:
    """Initial-letter avatar for accounts without a profile photo."""
    letter = name.strip()[:1].upper() or "U"
    return (
        f"https://ui-avatars.com/api/?name={quote(letter)}"
        "&background=1a1a1a&color=ffffff&size=200&bold=true"
    )


def role_for_email(email: str, admin_domain: str) -> Role:
    """Accounts under the administrators' email domain are created as admins."""
    if admin_domain and email.lower().endswith(admin_domain.lower()):
        return Role.ADMIN
    return Role.STUDENT


class SessionBridge:
    """Thin wrapper over the auth provider that owns the current actor."""

    def __init__(self, auth: AuthProvider, datastore: Datastore, settings: Settings = Settings()):
        """Initialize session bridge.

        Args:
            auth: External authentication provider
            datastore: Datastore holding account profiles
            settings: Application settings
        """
        self.auth = auth
        self.datastore = datastore
        self.settings = settings
        self._actor: Optional[Account] = None
        self._listeners: list[ActorListener] = []

    def current_actor(self) -> Optional[Account]:
        return self._actor

    def require_actor(self) -> Account:
        """Return the current actor.

        Raises:
            NotAuthenticatedError: If nobody is signed in
        """
        if self._actor is None:
            raise NotAuthenticatedError(not_signed_in())
        return self._actor

    def on_actor_changed(self, callback: ActorListener) -> Unsubscribe:
        """Call ``callback(actor_or_none)`` whenever the current actor changes."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _set_actor(self, actor: Optional[Account]) -> None:
        if actor == self._actor:
            return
        self._actor = actor
        for listener in list(self._listeners):
            listener(actor)

    def login(self, email: str, password: str) -> Account:
        """Sign in with email and password.

        Raises:
            AuthenticationError: On bad credentials, an unverified email or a
                suspended account
        """
        identity = self.auth.sign_in(email, password)
        if not identity.email_verified:
            self.auth.sign_out()
            raise AuthenticationError(
                "Please verify your email before logging in. "
                "Check your inbox for the verification link."
            )
        return self._establish(identity)

    def login_federated(self, profile: FederatedProfile) -> Account:
        """Sign in with a federated (e.g. Google) identity."""
        identity = self.auth.sign_in_federated(profile)
        return self._establish(identity)

    def _establish(self, identity: AuthIdentity) -> Account:
        row = self.datastore.get_row("users", identity.uid)
        if row is None:
            logger.info("No profile for %s yet, creating one", identity.email)
            name = identity.display_name or "Campus Student"
            row = self.datastore.insert(
                "users",
                self._profile_row(
                    uid=identity.uid,
                    email=identity.email,
                    display_name=name,
                    avatar_url=identity.photo_url or default_avatar_url(name),
                ),
            )
        account = account_to_domain(row)
        if account.suspended:
            self.auth.sign_out()
            raise AuthenticationError("This account has been suspended")
        self._set_actor(account)
        return account

    def _profile_row(
        self,
        uid: str,
        email: str,
        display_name: str,
        avatar_url: str,
        registration_number: str = PLACEHOLDER,
        branch: str = PLACEHOLDER,
        year: int = 1,
        hostel_block: str = PLACEHOLDER,
    ) -> dict:
        return to_remote(
            "users",
            {
                "id": uid,
                "display_name": display_name,
                "email": email,
                "registration_number": registration_number,
                "branch": branch,
                "year": year,
                "hostel_block": hostel_block,
                "role": role_for_email(email, self.settings.admin_email_domain),
                "avatar_url": avatar_url,
                "rating": 0,
                "ratings_count": 0,
                "suspended": False,
                "wishlist": frozenset(),
            },
        )

    def signup(
        self,
        email: str,
        password: str,
        display_name: str,
        registration_number: str,
        branch: str,
        year: int,
        hostel_block: str,
    ) -> str:
        """Register a new account and send the verification email.

        The new user is signed out again; they can log in once verified.

        Returns:
            The new account id
        """
        if not display_name.strip():
            raise ValidationError("Name cannot be empty")
        identity = self.auth.create_user(email, password, display_name=display_name)
        try:
            self.auth.send_email_verification(identity.uid)
            self.datastore.insert(
                "users",
                self._profile_row(
                    uid=identity.uid,
                    email=identity.email,
                    display_name=display_name.strip(),
                    avatar_url=identity.photo_url or default_avatar_url(display_name),
                    registration_number=registration_number,
                    branch=branch,
                    year=year,
                    hostel_block=hostel_block,
                ),
            )
        finally:
            self.auth.sign_out()
        return identity.uid

    def logout(self) -> None:
        self.auth.sign_out()
        self._set_actor(None)

    def reset_password(self, email: str) -> Optional[str]:
        """Start the password-reset-by-email flow."""
        return self.auth.send_password_reset(email)

    def refresh_actor(self) -> Optional[Account]:
        """Re-read the actor's record straight from the datastore.

        Used after the actor changes their own record, when the change feed
        may not have delivered it yet.
        """
        if self._actor is None:
            return None
        row = self.datastore.get_row("users", self._actor.id)
        if row is not None:
            self._set_actor(account_to_domain(row))
        return self._actor

    def absorb_accounts(self, accounts: Iterable[Account]) -> None:
        """Adopt the newest mirrored version of the actor's record."""
        if self._actor is None:
            return
        for account in accounts:
            if account.id == self._actor.id:
                self._set_actor(account)
                return
