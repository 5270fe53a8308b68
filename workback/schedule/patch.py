"""Row-level milestone flag patches (the only partial write the store accepts)."""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

from workback.schedule.models import AppState, Page, Project, Row

ALLOWED_PATCH_FIELDS = ("completed", "notRequired", "statusADone", "firstIssueDone")

_FIELD_ATTRS = {
    "completed": "completed",
    "notRequired": "not_required",
    "statusADone": "status_a_done",
    "firstIssueDone": "first_issue_done",
}


class InvalidPatchError(ValueError):
    """Patch is empty or names fields outside the milestone flags."""

    def __init__(self, invalid_fields: List[str]):
        self.invalid_fields = invalid_fields
        if invalid_fields:
            message = f"patch may only set {', '.join(ALLOWED_PATCH_FIELDS)}; got {', '.join(invalid_fields)}"
        else:
            message = "patch is empty"
        super().__init__(message)


def validate_row_patch(patch: Any) -> Dict[str, bool]:
    if not isinstance(patch, Mapping) or not patch:
        raise InvalidPatchError([])
    invalid = sorted(str(k) for k in patch.keys() if k not in ALLOWED_PATCH_FIELDS)
    if invalid:
        raise InvalidPatchError(invalid)
    return {key: bool(value) for key, value in patch.items()}


def apply_row_patch(row: Row, patch: Mapping[str, Any]) -> Row:
    """Return a patched copy; setting Not Required clears the other ticks."""
    flags = validate_row_patch(patch)
    update = {_FIELD_ATTRS[key]: value for key, value in flags.items()}
    updated = row.model_copy(update=update, deep=True)
    if updated.not_required:
        updated.completed = False
        updated.status_a_done = False
        updated.first_issue_done = False
    return updated


def find_row(state: AppState, row_id: str) -> Optional[Tuple[Project, Page, int]]:
    for project in state.projects:
        for page in project.pages:
            for idx, row in enumerate(page.rows):
                if row.id == row_id:
                    return project, page, idx
    return None
