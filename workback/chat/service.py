"""Chat proxy: answers questions about the programme from a compact JSON context."""
from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Optional

import httpx

from workback.chat.llm_client import LLMRequestError, OpenAIResponsesClient
from workback.config import runtime_config

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful assistant for a design programme tracker web app. "
    "Use the provided APP_CONTEXT_JSON to answer questions accurately. "
    "If the user asks for something not in the context, say what you'd need."
)
CONTEXT_PREFIX = "APP_CONTEXT_JSON:\n"


class ChatConfigError(RuntimeError):
    pass


class ChatUpstreamError(RuntimeError):
    def __init__(self, status_code: Optional[int], details: Any):
        super().__init__("OpenAI request failed")
        self.status_code = status_code
        self.details = details


def build_input(messages: Any, context: Any) -> List[Dict[str, Any]]:
    history = messages if isinstance(messages, list) else []
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "system", "content": CONTEXT_PREFIX + json.dumps(context if context is not None else {}, indent=2)},
        *history,
    ]


def _default_client() -> OpenAIResponsesClient:
    api_key = runtime_config.get_openai_api_key()
    if not api_key:
        raise ChatConfigError(
            "OPENAI_API_KEY is not set. Add it to the application settings of the deployment."
        )
    return OpenAIResponsesClient(api_key=api_key)


class ChatService:
    def __init__(self, client_factory: Callable[[], OpenAIResponsesClient] = _default_client) -> None:
        self._client_factory = client_factory
        self._client: Optional[OpenAIResponsesClient] = None

    def _get_client(self) -> OpenAIResponsesClient:
        # Built on first use so a missing key surfaces per request, not at startup.
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def answer(self, messages: Any, context: Any = None) -> str:
        client = self._get_client()
        try:
            return client.create_response(build_input(messages, context))
        except LLMRequestError as exc:
            logger.warning("Chat upstream returned %s", exc.status_code)
            raise ChatUpstreamError(exc.status_code, exc.body) from exc
        except httpx.HTTPError as exc:
            logger.warning("Chat upstream unreachable: %s", exc)
            raise ChatUpstreamError(None, str(exc)) from exc


_default_service: Optional[ChatService] = None


def get_chat_service() -> ChatService:
    global _default_service
    if _default_service is None:
        _default_service = ChatService()
    return _default_service


def set_chat_service(service: ChatService) -> None:
    global _default_service
    _default_service = service
