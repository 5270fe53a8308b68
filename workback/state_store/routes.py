from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from workback.common.error_envelope import error_response
from workback.common.identity import UserContext, get_user_context
from workback.state_store.service import get_state_service

logger = logging.getLogger(__name__)


class RowTickRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    patch: Any = Field(default_factory=dict)
    project_id: Optional[str] = None
    page_id: Optional[str] = None


router = APIRouter(prefix="/api", tags=["state"])


@router.get("/bootstrap")
def bootstrap(user: UserContext = Depends(get_user_context)):
    try:
        return get_state_service().bootstrap(user)
    except HTTPException:
        raise
    except Exception as exc:
        logger.error("Bootstrap failed: %s", exc)
        error_response(code="bootstrap.failed", message="bootstrap failed", status_code=500, resource_kind="state")


@router.post("/save")
def save_state(
    payload: Dict[str, Any] = Body(...),
    user: UserContext = Depends(get_user_context),
):
    get_state_service().save(user, payload)
    return {"ok": True}


@router.patch("/rows/{row_id}/tick")
def tick_row(
    row_id: str,
    payload: RowTickRequest,
    user: UserContext = Depends(get_user_context),
):
    row = get_state_service().tick(user, row_id, payload.patch)
    return {"ok": True, "row": row.model_dump(mode="json", by_alias=True)}


@router.get("/state")
def read_state():
    try:
        state = get_state_service().read_raw()
    except Exception as exc:
        logger.error("State read failed: %s", exc)
        error_response(code="state.read_failed", message=str(exc), status_code=500, resource_kind="state")
    return {"ok": True, "state": state}


@router.post("/state")
def write_state(payload: Any = Body(...)):
    get_state_service().write_raw(payload)
    return {"ok": True}
