"""Role ranking and per-user permission resolution."""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from workback.common.identity import UserContext
from workback.config import runtime_config
from workback.permissions.models import PermissionEntry, Role, UserPermissions
from workback.permissions.repository import (
    InMemoryPermissionRepository,
    PermissionRepository,
    SharePointPermissionRepository,
)
from workback.sharepoint.lists import SharePointLists

logger = logging.getLogger(__name__)

# Synonyms share a rank: readonly=viewer, checkbox=tickonly, admin=owner.
ROLE_RANK = {
    "viewer": 0,
    "readonly": 0,
    "tickonly": 1,
    "checkbox": 1,
    "editor": 2,
    "admin": 3,
    "owner": 3,
}

_CANONICAL = {
    "viewer": Role.viewer,
    "readonly": Role.viewer,
    "tickonly": Role.tickonly,
    "checkbox": Role.tickonly,
    "editor": Role.editor,
    "admin": Role.admin,
    "owner": Role.owner,
}

WRITE_ROLES = frozenset({"editor", "admin", "owner"})
TICK_ROLES = frozenset({"tickonly", "checkbox", "editor", "admin", "owner"})


def role_rank(role: Optional[str]) -> int:
    return ROLE_RANK.get(str(role or "").lower(), 0)


def normalize_role(role: Optional[str]) -> str:
    """Canonical lowercase role; unknown names collapse to viewer."""
    return _CANONICAL.get(str(role or "").lower(), Role.viewer).value


def can_write(role: Optional[str]) -> bool:
    return str(role or "").lower() in WRITE_ROLES


def can_tick(role: Optional[str]) -> bool:
    return str(role or "").lower() in TICK_ROLES


def _matches(entry: PermissionEntry, user: UserContext) -> bool:
    email = user.email.lower()
    oid = user.oid.lower()
    entry_email = entry.user_email.lower()
    entry_oid = entry.user_object_id.lower()
    if oid and entry_oid and entry_oid == oid:
        return True
    return bool(email and entry_email and entry_email == email)


def resolve_permissions(entries: Iterable[PermissionEntry], user: UserContext) -> UserPermissions:
    if not user.authenticated:
        return UserPermissions()

    roles_by_page_id = {}
    strongest = Role.viewer.value
    for entry in entries:
        if not _matches(entry, user):
            continue
        role = normalize_role(entry.role)
        if entry.page_id:
            roles_by_page_id[entry.page_id] = role
        if role_rank(role) > role_rank(strongest):
            strongest = role
    return UserPermissions(role=strongest, roles_by_page_id=roles_by_page_id)


def role_for_page(perms: UserPermissions, page_id: Optional[str]) -> str:
    if page_id and page_id in perms.roles_by_page_id:
        return perms.roles_by_page_id[page_id]
    return perms.role or Role.viewer.value


def _default_repo() -> PermissionRepository:
    backend = runtime_config.get_permissions_backend()
    if backend == "sharepoint":
        return SharePointPermissionRepository(SharePointLists.from_env())
    return InMemoryPermissionRepository()


class PermissionService:
    def __init__(self, repo: Optional[PermissionRepository] = None) -> None:
        self.repo = repo or _default_repo()

    def for_user(self, user: UserContext) -> UserPermissions:
        if not user.authenticated:
            return UserPermissions()
        try:
            entries = self.repo.list_entries()
        except Exception as exc:
            logger.warning("Permission lookup failed for %s, defaulting to viewer: %s", user.email, exc)
            return UserPermissions()
        return resolve_permissions(entries, user)


_default_service: Optional[PermissionService] = None


def get_permission_service() -> PermissionService:
    global _default_service
    if _default_service is None:
        _default_service = PermissionService()
    return _default_service


def set_permission_service(service: PermissionService) -> None:
    global _default_service
    _default_service = service
