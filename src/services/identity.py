"""
Identity provider for service calls.

Every list/create/update/delete operation is scoped to an organization.
There is no process-wide "signed in" user: the host opens a block with
``acting_as`` and the services called inside it resolve that identity. The
identity lives in a ContextVar, so each thread or asyncio task sees only the
block it entered, and nested blocks restore the outer identity on exit.

Usage:
    from src.services import identity

    with identity.acting_as(identity.Identity("u-1", "org-1")):
        food_taxonomy_service.create_group("Food")

AppState owns an Identity per editing session and exposes the same block as
``state.acting()``.
"""

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Iterator, Optional

from src.services.exceptions import AuthorizationError


@dataclass(frozen=True)
class Identity:
    """A user and the organization they act for."""

    user_id: Optional[str]
    organization_id: Optional[str]


_acting_identity: ContextVar[Optional[Identity]] = ContextVar(
    "kitchen_backoffice_identity", default=None
)


@contextmanager
def acting_as(current: Optional[Identity]) -> Iterator[Optional[Identity]]:
    """
    Run the enclosed service calls as ``current``.

    Passing None runs the block with no identity, so organization-scoped
    calls inside it raise AuthorizationError.
    """
    token = _acting_identity.set(current)
    try:
        yield current
    finally:
        _acting_identity.reset(token)


def get_current_identity() -> Optional[Identity]:
    """Identity of the innermost acting_as block, or None outside one."""
    return _acting_identity.get()


def resolve_organization_id(organization_id: Optional[str] = None) -> str:
    """
    Resolve the organization a service call is scoped to.

    Args:
        organization_id: Explicit override; when None the acting identity is used

    Returns:
        Organization id

    Raises:
        AuthorizationError: If no organization can be resolved
    """
    if organization_id:
        return organization_id
    current = _acting_identity.get()
    if current is None or not current.organization_id:
        raise AuthorizationError()
    return current.organization_id


def resolve_user_id() -> Optional[str]:
    """User id of the acting identity, or None outside an acting_as block."""
    current = _acting_identity.get()
    return current.user_id if current is not None else None
