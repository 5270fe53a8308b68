"""State service: bootstrap, whole-document save, row ticks and backups."""
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from fastapi import HTTPException
from pydantic import ValidationError

from workback.common.error_envelope import error_response, forbidden_error
from workback.common.identity import UserContext
from workback.permissions.models import UserPermissions
from workback.permissions.service import (
    PermissionService,
    can_tick,
    can_write,
    get_permission_service,
    role_for_page,
)
from workback.schedule.dates import today_iso
from workback.schedule.generation import hydrate_projects, refresh_project
from workback.schedule.models import AppState, Row
from workback.schedule.patch import InvalidPatchError, apply_row_patch, find_row, validate_row_patch
from workback.state_store.repository import StateRepository, build_state_repository

logger = logging.getLogger(__name__)

LANDING_DEFAULTS: Dict[str, Any] = {
    "projects": [],
    "settings": None,
    "view": "landing",
    "summaryFilter": "ongoing",
    "summaryProjectId": "all",
    "summarySupplier": "all",
    "activeProjectId": None,
    "activePageId": None,
}


def parse_state(document: Mapping[str, Any]) -> AppState:
    """Hydrate a stored or posted document into an AppState."""
    data = dict(document)
    data["projects"] = hydrate_projects(document.get("projects"))
    return AppState.model_validate(data)


class StateService:
    def __init__(
        self,
        repo: Optional[StateRepository] = None,
        permissions: Optional[PermissionService] = None,
    ) -> None:
        self.repo = repo or build_state_repository()
        self._permissions = permissions

    @property
    def permissions(self) -> PermissionService:
        return self._permissions or get_permission_service()

    # --- reads ---

    def read_raw(self) -> Optional[Dict[str, Any]]:
        return self.repo.read_state()

    def load_state(self) -> Optional[AppState]:
        document = self.repo.read_state()
        if document is None:
            return None
        return parse_state(document)

    def current_state(self) -> AppState:
        """The stored state, or an empty one; read failures become a 500 envelope."""
        try:
            return self.load_state() or AppState()
        except Exception as exc:
            logger.error("State read failed: %s", exc)
            error_response(code="state.read_failed", message="could not load state", status_code=500, resource_kind="state")

    def bootstrap(self, user: UserContext) -> Dict[str, Any]:
        perms = self.permissions.for_user(user)
        try:
            state = self.repo.read_state()
        except Exception as exc:
            logger.error("State read failed during bootstrap: %s", exc)
            state = None

        body = dict(state) if state else dict(LANDING_DEFAULTS)
        body["me"] = {**user.to_dict(), "role": perms.role}
        body["rolesByPageId"] = perms.roles_by_page_id
        return body

    # --- writes ---

    def write_raw(self, body: Any) -> None:
        state = body.get("state", body) if isinstance(body, dict) else body
        if not isinstance(state, dict):
            error_response(
                code="state.invalid",
                message="state must be a JSON object",
                status_code=400,
                resource_kind="state",
            )
        self._write(state, code="state.save_failed")

    def save(self, user: UserContext, body: Mapping[str, Any]) -> AppState:
        perms = self.permissions.for_user(user)
        if not can_write(perms.role):
            forbidden_error("save", perms.role)
        try:
            state = parse_state(body)
        except ValidationError as exc:
            error_response(
                code="state.invalid",
                message="state document failed validation",
                status_code=422,
                resource_kind="state",
                details={"errors": exc.errors(include_url=False, include_context=False, include_input=False)},
            )
        state.projects = [refresh_project(project) for project in state.projects]
        self._write(state.to_document(), code="state.save_failed")
        logger.info("State saved by %s (%d projects)", user.email or "anonymous", len(state.projects))
        return state

    def tick(self, user: UserContext, row_id: str, patch: Any) -> Row:
        try:
            flags = validate_row_patch(patch)
        except InvalidPatchError as exc:
            error_response(
                code="row_tick.invalid_patch",
                message=str(exc),
                status_code=400,
                resource_kind="row",
                details={"invalid_fields": exc.invalid_fields},
            )

        perms: UserPermissions = self.permissions.for_user(user)
        try:
            state = self.load_state()
        except Exception as exc:
            logger.error("State read failed for tick on row %s: %s", row_id, exc)
            error_response(code="row_tick.failed", message="could not load state", status_code=500, resource_kind="row")

        ref = find_row(state, row_id) if state is not None else None
        if ref is None:
            error_response(
                code="row_tick.row_not_found",
                message=f"row {row_id} not found",
                status_code=404,
                resource_kind="row",
            )

        _, page, idx = ref
        page_role = role_for_page(perms, page.id)
        if not can_tick(page_role):
            forbidden_error("tick", page_role)

        updated = apply_row_patch(page.rows[idx], flags)
        page.rows[idx] = updated
        self._write(state.to_document(), code="row_tick.failed")
        return updated

    def run_weekly_backup(self, date_iso: Optional[str] = None) -> Optional[str]:
        """Append a dated snapshot of the current state; None when nothing is stored yet."""
        state = self.repo.read_state()
        if not state:
            logger.info("No state stored yet; skipping backup")
            return None
        date_iso = date_iso or today_iso()
        name = self.repo.append_backup(state, date_iso)
        logger.info("Backup written for %s: %s", date_iso, name)
        return name

    def _write(self, document: Dict[str, Any], code: str) -> None:
        try:
            self.repo.write_state(document)
        except HTTPException:
            raise
        except Exception as exc:
            logger.error("State write failed: %s", exc)
            error_response(code=code, message="could not write state", status_code=500, resource_kind="state")


_default_service: Optional[StateService] = None


def get_state_service() -> StateService:
    global _default_service
    if _default_service is None:
        _default_service = StateService()
    return _default_service


def set_state_service(service: StateService) -> None:
    global _default_service
    _default_service = service
