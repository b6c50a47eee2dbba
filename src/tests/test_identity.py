"""Tests for identity resolution."""

import pytest

from src.services import identity
from src.services.exceptions import AuthorizationError
from src.services.identity import Identity


def test_resolve_without_identity_raises():
    with pytest.raises(AuthorizationError) as exc:
        identity.resolve_organization_id()
    assert str(exc.value) == "No organization ID found"


def test_resolve_acting_organization():
    with identity.acting_as(Identity("user-1", "org-1")):
        assert identity.resolve_organization_id() == "org-1"
        assert identity.resolve_user_id() == "user-1"


def test_explicit_organization_wins():
    with identity.acting_as(Identity("user-1", "org-1")):
        assert identity.resolve_organization_id("org-9") == "org-9"


def test_identity_without_organization_is_rejected():
    with identity.acting_as(Identity("user-1", None)):
        with pytest.raises(AuthorizationError):
            identity.resolve_organization_id()


def test_block_exit_restores_outer_identity():
    with identity.acting_as(Identity("user-1", "org-1")):
        with identity.acting_as(Identity("user-2", "org-2")):
            assert identity.resolve_organization_id() == "org-2"
        assert identity.resolve_organization_id() == "org-1"

    assert identity.get_current_identity() is None
    assert identity.resolve_user_id() is None


def test_identity_restored_after_error():
    with pytest.raises(RuntimeError):
        with identity.acting_as(Identity("user-1", "org-1")):
            raise RuntimeError("boom")
    assert identity.get_current_identity() is None
