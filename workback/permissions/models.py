from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field


class Role(str, Enum):
    viewer = "viewer"
    tickonly = "tickonly"
    editor = "editor"
    admin = "admin"
    owner = "owner"


class PermissionEntry(BaseModel):
    """One row of the permissions list: a user granted a role, optionally per page."""
    user_email: str = ""
    user_object_id: str = ""
    page_id: Optional[str] = None
    role: str = Role.viewer.value

    @classmethod
    def from_list_fields(cls, fields: Dict[str, object]) -> "PermissionEntry":
        return cls(
            user_email=str(fields.get("UserEmail") or ""),
            user_object_id=str(fields.get("UserObjectId") or ""),
            page_id=str(fields.get("PageId") or "") or None,
            role=str(fields.get("Role") or Role.viewer.value),
        )


class UserPermissions(BaseModel):
    role: str = Role.viewer.value
    roles_by_page_id: Dict[str, str] = Field(default_factory=dict)
