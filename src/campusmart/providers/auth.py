"""Authentication provider interface and a local implementation.

The provider only verifies identities; it knows nothing about marketplace
profiles. ``LocalAuthProvider`` keeps credentials in the datastore's
database and stands in for a hosted identity service: verification and
password-reset tokens are returned to the caller and logged instead of
being emailed.
"""

import hashlib
import hmac
import logging
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
from sqlalchemy import select

from campusmart.database.models import AuthCredential
from campusmart.database.sqlalchemy_db import SQLAlchemyDatastore
from campusmart.domain.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
PBKDF2_ITERATIONS = 200_000


@dataclass(frozen=True)
class AuthIdentity:
    """Identity issued by the auth provider for a signed-in user."""

    uid: str
    email: str
    email_verified: bool
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    provider: str = "password"


@dataclass(frozen=True)
class FederatedProfile:
    """Claims already verified by a federated identity provider (e.g. Google)."""

    email: str
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    provider: str = "google"


class AuthProvider(ABC):
    """Abstract external authentication provider."""

    @abstractmethod
    def create_user(self, email: str, password: str, display_name: Optional[str] = None) -> AuthIdentity:
        """Register an email/password user. Returns the unverified identity."""
        pass

    @abstractmethod
    def send_email_verification(self, uid: str) -> str:
        """Issue an email-verification token for a user."""
        pass

    @abstractmethod
    def verify_email(self, token: str) -> AuthIdentity:
        """Mark the user owning ``token`` as verified."""
        pass

    @abstractmethod
    def sign_in(self, email: str, password: str) -> AuthIdentity:
        """Sign in with email and password."""
        pass

    @abstractmethod
    def sign_in_federated(self, profile: FederatedProfile) -> AuthIdentity:
        """Sign in with a federated identity, registering it on first use."""
        pass

    @abstractmethod
    def sign_out(self) -> None:
        """End the current provider session."""
        pass

    @abstractmethod
    def current_identity(self) -> Optional[AuthIdentity]:
        """Identity of the current provider session, if any."""
        pass

    @abstractmethod
    def send_password_reset(self, email: str) -> Optional[str]:
        """Issue a password-reset token. Unknown emails are not revealed."""
        pass

    @abstractmethod
    def confirm_password_reset(self, token: str, new_password: str) -> None:
        """Set a new password using a reset token."""
        pass


def _hash_password(password: str, salt: str, iterations: int = PBKDF2_ITERATIONS) -> str:
    """Return an encoded hash: ``pbkdf2_sha256$<iterations>$<hex digest>``."""
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations
    )
    return f"pbkdf2_sha256${iterations}${digest.hex()}"


def _password_matches(password: str, salt: str, encoded: str) -> bool:
    try:
        _, iterations, _ = encoded.split("$", 2)
        expected = _hash_password(password, salt, int(iterations))
    except ValueError:
        return False
    return hmac.compare_digest(expected, encoded)


def _check_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def _normalize_email(email: str) -> str:
    email = email.strip().lower()
    if "@" not in email:
        raise ValidationError(f"Invalid email address '{email}'")
    return email


def _to_identity(credential: AuthCredential) -> AuthIdentity:
    return AuthIdentity(
        uid=credential.uid,
        email=credential.email,
        email_verified=credential.email_verified,
        display_name=credential.display_name,
        photo_url=credential.photo_url,
        provider=credential.provider,
    )


class LocalAuthProvider(AuthProvider):
    """Auth provider backed by the ``auth_credentials`` table."""

    def __init__(self, datastore: SQLAlchemyDatastore, iterations: int = PBKDF2_ITERATIONS):
        """Initialize local auth provider.

        Args:
            datastore: Datastore whose database holds the credentials table
            iterations: PBKDF2 iterations for newly hashed passwords
        """
        self.datastore = datastore
        self.iterations = iterations
        self._current: Optional[AuthIdentity] = None

    def _find_by_email(self, session, email: str) -> Optional[AuthCredential]:
        return session.execute(
            select(AuthCredential).where(AuthCredential.email == email)
        ).scalar_one_or_none()

    def create_user(self, email: str, password: str, display_name: Optional[str] = None) -> AuthIdentity:
        email = _normalize_email(email)
        _check_password(password)
        salt = secrets.token_hex(16)
        with self.datastore.session_scope(writing=True) as session:
            if self._find_by_email(session, email) is not None:
                raise ConflictError(f"An account with email '{email}' already exists")
            credential = AuthCredential(
                email=email,
                password_salt=salt,
                password_hash=_hash_password(password, salt, self.iterations),
                display_name=display_name,
                email_verified=False,
                provider="password",
            )
            session.add(credential)
            session.flush()
            identity = _to_identity(credential)
        self._current = identity
        return identity

    def send_email_verification(self, uid: str) -> str:
        token = secrets.token_urlsafe(24)
        with self.datastore.session_scope(writing=True) as session:
            credential = session.get(AuthCredential, uid)
            if credential is None:
                raise NotFoundError(f"No credential for user {uid}")
            credential.verification_token = token
            email = credential.email
        logger.info("Email verification token for %s: %s", email, token)
        return token

    def verify_email(self, token: str) -> AuthIdentity:
        with self.datastore.session_scope(writing=True) as session:
            credential = session.execute(
                select(AuthCredential).where(AuthCredential.verification_token == token)
            ).scalar_one_or_none()
            if credential is None:
                raise AuthenticationError("Invalid or expired verification link")
            credential.email_verified = True
            credential.verification_token = None
            session.flush()
            return _to_identity(credential)

    def sign_in(self, email: str, password: str) -> AuthIdentity:
        email = _normalize_email(email)
        with self.datastore.session_scope() as session:
            credential = self._find_by_email(session, email)
            if credential is None or credential.password_hash is None:
                raise AuthenticationError("Invalid email or password")
            if not _password_matches(password, credential.password_salt, credential.password_hash):
                raise AuthenticationError("Invalid email or password")
            identity = _to_identity(credential)
        self._current = identity
        return identity

    def sign_in_federated(self, profile: FederatedProfile) -> AuthIdentity:
        email = _normalize_email(profile.email)
        with self.datastore.session_scope(writing=True) as session:
            credential = self._find_by_email(session, email)
            if credential is None:
                credential = AuthCredential(
                    email=email,
                    display_name=profile.display_name,
                    photo_url=profile.photo_url,
                    email_verified=True,
                    provider=profile.provider,
                )
                session.add(credential)
            else:
                # The federated provider has verified the address
                credential.email_verified = True
                if credential.photo_url is None:
                    credential.photo_url = profile.photo_url
                if credential.display_name is None:
                    credential.display_name = profile.display_name
            session.flush()
            identity = _to_identity(credential)
        self._current = identity
        return identity

    def sign_out(self) -> None:
        self._current = None

    def current_identity(self) -> Optional[AuthIdentity]:
        return self._current

    def send_password_reset(self, email: str) -> Optional[str]:
        email = _normalize_email(email)
        token = secrets.token_urlsafe(24)
        with self.datastore.session_scope(writing=True) as session:
            credential = self._find_by_email(session, email)
            if credential is None:
                logger.debug("Password reset requested for unknown email %s", email)
                return None
            credential.reset_token = token
        logger.info("Password reset token for %s: %s", email, token)
        return token

    def confirm_password_reset(self, token: str, new_password: str) -> None:
        _check_password(new_password)
        with self.datastore.session_scope(writing=True) as session:
            credential = session.execute(
                select(AuthCredential).where(AuthCredential.reset_token == token)
            ).scalar_one_or_none()
            if credential is None:
                raise AuthenticationError("Invalid or expired password reset link")
            salt = secrets.token_hex(16)
            credential.password_salt = salt
            credential.password_hash = _hash_password(new_password, salt, self.iterations)
            credential.reset_token = None
