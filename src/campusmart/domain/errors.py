"""Shared domain error messages and error types."""

from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class AuthenticationError(DomainError):
    """Bad credentials, unverified email or suspended account."""


class NotAuthenticatedError(DomainError):
    """Operation requires a current actor but none is signed in."""


class PermissionDeniedError(DomainError):
    """Current actor is not allowed to perform the operation."""


class RemoteError(DomainError):
    """Remote datastore or provider call failed."""


class TransientRemoteError(RemoteError):
    """Remote call failed in a way that may succeed when retried."""


class RemoteWriteError(RemoteError):
    """Remote write (insert, update, delete) failed."""


class PartialTransitionError(RemoteWriteError):
    """First write of a two-step transition committed, the second failed.

    The completed step is never rolled back; an operator can finish the
    pending step on its own.
    """

    def __init__(
        self,
        message: str,
        completed_step: str,
        pending_step: str,
        entity_id: str,
        target_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.completed_step = completed_step
        self.pending_step = pending_step
        self.entity_id = entity_id
        self.target_id = target_id


def account_not_found(account_id: str) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def listing_not_found(listing_id: str) -> str:
    """Return message for missing listing."""
    return f"Listing {listing_id} not found"


def lost_report_not_found(report_id: str) -> str:
    """Return message for missing lost report."""
    return f"Lost report {report_id} not found"


def complaint_not_found(complaint_id: str) -> str:
    """Return message for missing complaint."""
    return f"Complaint {complaint_id} not found"


def claim_not_found(claim_id: str) -> str:
    """Return message for missing claim."""
    return f"Claim {claim_id} not found"


def not_signed_in() -> str:
    return "You must be signed in to do that"


def unknown_field(collection: str, field_name: str) -> str:
    """Return message for a local field with no remote counterpart."""
    return f"Unknown field '{field_name}' for {collection}"


def partial_transition(
    entity: str, entity_id: str, completed: str, pending: str, cause: Exception
) -> str:
    """Return message when the second write of a two-step transition fails."""
    return (
        f"{entity} {entity_id}: {completed}, but {pending} failed ({cause}). "
        f"Retry {pending} on its own."
    )
