from unittest.mock import MagicMock

import pytest

from workback.common.identity import UserContext
from workback.permissions.models import PermissionEntry, UserPermissions
from workback.permissions.repository import InMemoryPermissionRepository, SharePointPermissionRepository
from workback.permissions.service import (
    PermissionService,
    can_tick,
    can_write,
    normalize_role,
    resolve_permissions,
    role_for_page,
    role_rank,
)

ALICE = UserContext(authenticated=True, name="Alice", email="Alice@Example.com", oid="oid-alice")


@pytest.mark.parametrize(
    "role,rank",
    [("viewer", 0), ("ReadOnly", 0), ("tickonly", 1), ("CHECKBOX", 1), ("editor", 2), ("admin", 3), ("owner", 3), ("guest", 0), (None, 0)],
)
def test_role_rank(role, rank):
    assert role_rank(role) == rank


def test_normalize_role_keeps_admin_and_owner_distinct():
    assert normalize_role("readonly") == "viewer"
    assert normalize_role("Checkbox") == "tickonly"
    assert normalize_role("admin") == "admin"
    assert normalize_role("owner") == "owner"
    assert normalize_role("superuser") == "viewer"


def test_write_and_tick_roles():
    assert can_write("Editor") and can_write("owner") and can_write("admin")
    assert not can_write("tickonly")
    assert can_tick("checkbox") and can_tick("editor")
    assert not can_tick("viewer") and not can_tick("readonly")


def test_resolve_permissions_strongest_role_and_page_overrides():
    entries = [
        PermissionEntry(user_email="alice@example.com", role="checkbox"),
        PermissionEntry(user_email="alice@example.com", page_id="pg1", role="Editor"),
        PermissionEntry(user_object_id="OID-ALICE", page_id="pg2", role="readonly"),
        PermissionEntry(user_email="bob@example.com", role="owner"),
    ]
    perms = resolve_permissions(entries, ALICE)
    assert perms.role == "editor"
    assert perms.roles_by_page_id == {"pg1": "editor", "pg2": "viewer"}


def test_unauthenticated_user_is_viewer():
    entries = [PermissionEntry(user_email="", role="owner")]
    assert resolve_permissions(entries, UserContext()) == UserPermissions()


def test_role_for_page_prefers_page_override():
    perms = UserPermissions(role="tickonly", roles_by_page_id={"pg1": "viewer"})
    assert role_for_page(perms, "pg1") == "viewer"
    assert role_for_page(perms, "pg2") == "tickonly"
    assert role_for_page(perms, None) == "tickonly"


def test_service_falls_back_to_viewer_when_source_fails():
    repo = MagicMock()
    repo.list_entries.side_effect = RuntimeError("graph down")
    perms = PermissionService(repo=repo).for_user(ALICE)
    assert perms.role == "viewer"
    assert perms.roles_by_page_id == {}


def test_service_uses_repository():
    repo = InMemoryPermissionRepository([PermissionEntry(user_email="alice@example.com", role="admin")])
    assert PermissionService(repo=repo).for_user(ALICE).role == "admin"
    repo.add(PermissionEntry(user_object_id="oid-alice", page_id="pg1", role="tickonly"))
    assert PermissionService(repo=repo).for_user(ALICE).roles_by_page_id == {"pg1": "tickonly"}


def test_sharepoint_repository_maps_list_fields():
    lists = MagicMock()
    lists.iter_fields.return_value = [
        {"UserEmail": "alice@example.com", "UserObjectId": None, "PageId": "", "Role": "Editor"},
        {"UserEmail": "bob@example.com", "PageId": "pg9"},
    ]
    entries = SharePointPermissionRepository(lists, list_name="Perms").list_entries()
    lists.iter_fields.assert_called_once_with("Perms")
    assert entries[0] == PermissionEntry(user_email="alice@example.com", user_object_id="", page_id=None, role="Editor")
    assert entries[1].role == "viewer"
    assert entries[1].page_id == "pg9"
