"""OpenAI Responses API client.

Callers may pass their own ``httpx.Client`` (tests use a mock).
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from workback.config import runtime_config

DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_OUTPUT_TOKENS = 800
NO_TEXT_ANSWER = "No response text returned."


class LLMRequestError(RuntimeError):
    def __init__(self, status_code: int, body: Any):
        super().__init__(f"Responses API request failed with status {status_code}")
        self.status_code = status_code
        self.body = body


def extract_output_text(data: Dict[str, Any]) -> str:
    if not isinstance(data, dict):
        return NO_TEXT_ANSWER
    text = data.get("output_text")
    if text:
        return text
    try:
        return data["output"][0]["content"][0]["text"] or NO_TEXT_ANSWER
    except (KeyError, IndexError, TypeError):
        return NO_TEXT_ANSWER


class OpenAIResponsesClient:
    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        http: Optional[httpx.Client] = None,
        timeout: float = 60.0,
    ) -> None:
        self.api_key = api_key
        self.model = model or runtime_config.get_openai_model()
        self.base_url = (base_url or runtime_config.get_openai_base_url()).rstrip("/")
        self._owns_http = http is None
        self._http = http or httpx.Client(timeout=timeout)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def create_response(
        self,
        input_messages: List[Dict[str, Any]],
        temperature: float = DEFAULT_TEMPERATURE,
        max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
    ) -> str:
        resp = self._http.post(
            f"{self.base_url}/responses",
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.api_key}",
            },
            json={
                "model": self.model,
                "input": input_messages,
                "temperature": temperature,
                "max_output_tokens": max_output_tokens,
            },
        )
        try:
            data = resp.json()
        except ValueError:
            data = {}
        if resp.status_code >= 400:
            raise LLMRequestError(resp.status_code, data)
        return extract_output_text(data)
