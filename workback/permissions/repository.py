from __future__ import annotations

from typing import Iterable, List, Optional, Protocol

from workback.config import runtime_config
from workback.permissions.models import PermissionEntry
from workback.sharepoint.lists import SharePointLists


class PermissionRepository(Protocol):
    def list_entries(self) -> List[PermissionEntry]: ...


class InMemoryPermissionRepository:
    def __init__(self, entries: Optional[Iterable[PermissionEntry]] = None) -> None:
        self._entries: List[PermissionEntry] = list(entries or [])

    def add(self, entry: PermissionEntry) -> PermissionEntry:
        self._entries.append(entry)
        return entry

    def list_entries(self) -> List[PermissionEntry]:
        return list(self._entries)


class SharePointPermissionRepository:
    """Reads every item of the permissions list (UserEmail, UserObjectId, PageId, Role)."""

    def __init__(self, lists: SharePointLists, list_name: Optional[str] = None) -> None:
        self._lists = lists
        self._list_name = list_name or runtime_config.get_sp_list_permissions()

    def list_entries(self) -> List[PermissionEntry]:
        return [PermissionEntry.from_list_fields(fields) for fields in self._lists.iter_fields(self._list_name)]
