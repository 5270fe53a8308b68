"""Error bodies for the workback API.

Every failure raised through ``error_response`` reaches the client as
``{"detail": <envelope>}`` where the envelope is:
{
  "error": {
    "code": "string",
    "message": "string",
    "http_status": 400,
    "resource_kind": "string | null",
    "details": {}
  }
}
"""
from __future__ import annotations

from typing import Any, Dict, NoReturn, Optional

from fastapi import HTTPException
from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Code is ``<area>.<reason>``, e.g. ``state.read_failed``."""
    code: str
    message: str
    http_status: int
    resource_kind: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class ErrorEnvelope(BaseModel):
    error: ErrorDetail


def build_error_envelope(
    code: str,
    message: str,
    status_code: int = 400,
    resource_kind: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> ErrorEnvelope:
    error_detail = ErrorDetail(
        code=code,
        message=message,
        http_status=status_code,
        resource_kind=resource_kind,
        details=details or {},
    )
    return ErrorEnvelope(error=error_detail)


def error_response(
    code: str,
    message: str,
    status_code: int = 400,
    resource_kind: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> NoReturn:
    """Raise an HTTPException carrying the envelope.

    Codes in use: ``state.invalid`` / ``state.save_failed`` / ``state.read_failed``
    for the stored document, ``row_tick.*`` for tick requests, ``project.not_found``
    for the programme view and ``chat.not_configured`` / ``chat.upstream_failed``
    for the chat proxy. ``resource_kind`` names the area (state, row, project, chat).
    """
    envelope = build_error_envelope(
        code=code,
        message=message,
        status_code=status_code,
        resource_kind=resource_kind,
        details=details,
    )
    raise HTTPException(status_code=status_code, detail=envelope.model_dump())


def forbidden_error(action: str, role: str, resource_kind: str = "state") -> NoReturn:
    """403 ``<resource_kind>.forbidden`` for a role below editor (save) or tickonly (tick)."""
    error_response(
        code=f"{resource_kind}.forbidden",
        message=f"role '{role}' may not {action}",
        status_code=403,
        resource_kind=resource_kind,
        details={"role": role, "action": action},
    )
