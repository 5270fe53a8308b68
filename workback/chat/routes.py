from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter
from pydantic import BaseModel

from workback.chat.service import ChatConfigError, ChatUpstreamError, get_chat_service
from workback.common.error_envelope import error_response
from workback.schedule.dates import today_iso
from workback.schedule.summary import build_chat_context, build_summary
from workback.state_store.service import get_state_service


class ChatRequest(BaseModel):
    messages: Any = None
    context: Any = None


router = APIRouter(prefix="/api", tags=["chat"])


def _stored_context() -> Dict[str, Any]:
    state = get_state_service().current_state()
    today = today_iso()
    return build_chat_context(state, build_summary(state, today), today)


@router.post("/chat")
def chat(payload: ChatRequest):
    context = payload.context if payload.context is not None else _stored_context()
    try:
        answer = get_chat_service().answer(payload.messages, context)
    except ChatConfigError as exc:
        error_response(code="chat.not_configured", message=str(exc), status_code=500, resource_kind="chat")
    except ChatUpstreamError as exc:
        error_response(
            code="chat.upstream_failed",
            message=str(exc),
            status_code=502,
            resource_kind="chat",
            details={"status": exc.status_code, "details": exc.details},
        )
    return {"answer": answer}
