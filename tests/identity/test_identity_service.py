from __future__ import annotations

import logging

import pytest

from attendance_tracker.core.enums import Role
from attendance_tracker.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotLinkedError,
    ValidationError,
)
from attendance_tracker.identity.service import parse_role

TEST_PASSWORD = "secret123"


def test_missing_role_row_means_member(world):
    account_id = world.add_account("ana@example.com")
    assert world.container.identity_service.resolve_role(account_id) == Role.MEMBER


def test_admin_role_is_resolved(world):
    admin_id = world.add_admin()
    assert world.container.identity_service.resolve_role(admin_id) == Role.ADMIN


def test_set_user_role_requires_admin(world):
    account_id = world.add_account("ana@example.com")
    svc = world.container.identity_service

    with pytest.raises(AuthorizationError):
        svc.set_user_role(current_role=Role.MEMBER, account_id=account_id, role=Role.ADMIN)

    svc.set_user_role(current_role=Role.ADMIN, account_id=account_id, role=Role.ADMIN)
    assert svc.resolve_role(account_id) == Role.ADMIN


def test_parse_role():
    assert parse_role(" Admin ") == Role.ADMIN
    with pytest.raises(ValidationError):
        parse_role("owner")


def test_auto_link_attaches_unlinked_person_with_matching_email(world):
    person = world.add_person("Ana Lima", email="ana@example.com")
    account_id = world.add_account("ana@example.com")

    linked = world.container.identity_service.auto_link_on_authenticate(account_id, "ana@example.com")

    assert linked.person_id == person.person_id
    assert world.container.identity_service.resolve_person_for_account(account_id).person_id == person.person_id


def test_auto_link_is_noop_when_already_linked(world):
    account_id, person = world.add_member("Ana Lima", email="ana@example.com")
    other = world.add_person("Ana Clone", email="ana@example.com")

    assert world.container.identity_service.auto_link_on_authenticate(account_id, "ana@example.com") is None
    assert world.people.get_by_id(other.person_id).user_id is None


def test_auto_link_never_raises(world, monkeypatch, caplog):
    account_id = world.add_account("ana@example.com")

    def boom(_user_id):
        raise RuntimeError("database went away")

    monkeypatch.setattr(world.people, "get_by_user_id", boom)

    with caplog.at_level(logging.ERROR):
        assert world.container.identity_service.auto_link_on_authenticate(account_id, "ana@example.com") is None
    assert "Auto-link failed" in caplog.text


def test_unlinked_account_has_no_person(world):
    account_id = world.add_account("ana@example.com")
    with pytest.raises(NotLinkedError):
        world.container.identity_service.resolve_person_for_account(account_id)


def test_authenticate(world):
    account_id = world.add_account("ana@example.com")
    auth = world.container.auth_service

    assert auth.authenticate("ana@example.com", TEST_PASSWORD).account_id == account_id
    with pytest.raises(AuthenticationError, match="Invalid email or password"):
        auth.authenticate("ana@example.com", "wrong-password")
    with pytest.raises(AuthenticationError, match="Invalid email or password"):
        auth.authenticate("nobody@example.com", TEST_PASSWORD)
    with pytest.raises(ValidationError):
        auth.authenticate("", "")


def test_sign_up_creates_member_account(world):
    auth = world.container.auth_service
    account_id = auth.sign_up("new@example.com", "longenough")

    assert world.container.identity_service.resolve_role(account_id) == Role.MEMBER
    with pytest.raises(ValidationError, match="already exists"):
        auth.sign_up("new@example.com", "longenough")
    with pytest.raises(ValidationError, match="at least 6"):
        auth.sign_up("other@example.com", "short")


def test_change_password(world):
    account_id = world.add_account("ana@example.com")
    auth = world.container.auth_service

    with pytest.raises(ValidationError, match="Current password is incorrect"):
        auth.change_password(account_id, "wrong-password", "brand-new-pass")
    with pytest.raises(ValidationError, match="at least 6"):
        auth.change_password(account_id, TEST_PASSWORD, "tiny")

    auth.change_password(account_id, TEST_PASSWORD, "brand-new-pass")
    assert auth.authenticate("ana@example.com", "brand-new-pass").account_id == account_id
