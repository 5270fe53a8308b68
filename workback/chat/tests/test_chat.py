import json
from unittest.mock import MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from workback.chat.llm_client import LLMRequestError, OpenAIResponsesClient, extract_output_text
from workback.chat.service import (
    CONTEXT_PREFIX,
    SYSTEM_PROMPT,
    ChatConfigError,
    ChatService,
    ChatUpstreamError,
    build_input,
    set_chat_service,
)
from workback.permissions.repository import InMemoryPermissionRepository
from workback.permissions.service import PermissionService
from workback.server import create_app
from workback.state_store.repository import InMemoryStateRepository
from workback.state_store.service import StateService, set_state_service


def _response(status_code=200, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload or {}
    return resp


def test_build_input_prepends_system_messages():
    messages = [{"role": "user", "content": "What is overdue?"}]
    built = build_input(messages, {"counts": {"overdue": 2}})
    assert built[0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert built[1]["content"].startswith(CONTEXT_PREFIX)
    assert json.loads(built[1]["content"][len(CONTEXT_PREFIX):]) == {"counts": {"overdue": 2}}
    assert built[2:] == messages


def test_build_input_ignores_non_list_messages():
    built = build_input("hello", None)
    assert len(built) == 2
    assert built[1]["content"] == CONTEXT_PREFIX + "{}"


def test_extract_output_text():
    assert extract_output_text({"output_text": "hi"}) == "hi"
    assert extract_output_text({"output": [{"content": [{"text": "nested"}]}]}) == "nested"
    assert extract_output_text({}) == "No response text returned."


def test_client_posts_responses_request():
    http = MagicMock()
    http.post.return_value = _response(payload={"output_text": "Two items are overdue."})
    client = OpenAIResponsesClient(api_key="sk-test", model="gpt-4o-mini", base_url="https://api.openai.com/v1/", http=http)
    assert client.create_response([{"role": "user", "content": "?"}]) == "Two items are overdue."

    args, kwargs = http.post.call_args
    assert args[0] == "https://api.openai.com/v1/responses"
    assert kwargs["headers"]["Authorization"] == "Bearer sk-test"
    assert kwargs["json"]["temperature"] == 0.2
    assert kwargs["json"]["max_output_tokens"] == 800
    assert kwargs["json"]["model"] == "gpt-4o-mini"


def test_client_raises_on_upstream_error():
    http = MagicMock()
    http.post.return_value = _response(status_code=429, payload={"error": {"message": "rate limited"}})
    client = OpenAIResponsesClient(api_key="sk-test", http=http)
    with pytest.raises(LLMRequestError) as excinfo:
        client.create_response([])
    assert excinfo.value.status_code == 429


def test_service_requires_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(ChatConfigError) as excinfo:
        ChatService().answer([])
    assert "OPENAI_API_KEY" in str(excinfo.value)


def test_service_wraps_transport_errors():
    llm = MagicMock()
    llm.create_response.side_effect = httpx.ConnectError("no route")
    with pytest.raises(ChatUpstreamError) as excinfo:
        ChatService(client_factory=lambda: llm).answer([])
    assert excinfo.value.status_code is None


@pytest.fixture
def client():
    set_state_service(
        StateService(repo=InMemoryStateRepository(), permissions=PermissionService(repo=InMemoryPermissionRepository()))
    )
    return TestClient(create_app())


def test_chat_route_uses_given_context(client):
    llm = MagicMock()
    llm.create_response.return_value = "Nothing is overdue."
    set_chat_service(ChatService(client_factory=lambda: llm))

    resp = client.post("/api/chat", json={"messages": [{"role": "user", "content": "Status?"}], "context": {"x": 1}})
    assert resp.status_code == 200
    assert resp.json() == {"answer": "Nothing is overdue."}
    sent = llm.create_response.call_args.args[0]
    assert sent[1]["content"] == CONTEXT_PREFIX + json.dumps({"x": 1}, indent=2)


def test_chat_route_builds_context_from_state(client):
    llm = MagicMock()
    llm.create_response.return_value = "ok"
    set_chat_service(ChatService(client_factory=lambda: llm))

    client.post("/api/chat", json={"messages": []})
    sent = llm.create_response.call_args.args[0]
    context = json.loads(sent[1]["content"][len(CONTEXT_PREFIX):])
    assert context["counts"]["projects"] == 0
    assert set(context["sample"]) == {"overdueTop", "upcomingStatusA"}


def test_chat_route_error_mapping(client):
    def not_configured():
        raise ChatConfigError("OPENAI_API_KEY is not set.")

    set_chat_service(ChatService(client_factory=not_configured))
    resp = client.post("/api/chat", json={"messages": []})
    assert resp.status_code == 500
    assert resp.json()["detail"]["error"]["code"] == "chat.not_configured"

    llm = MagicMock()
    llm.create_response.side_effect = LLMRequestError(401, {"error": "bad key"})
    set_chat_service(ChatService(client_factory=lambda: llm))
    resp = client.post("/api/chat", json={"messages": []})
    assert resp.status_code == 502
    error = resp.json()["detail"]["error"]
    assert error["code"] == "chat.upstream_failed"
    assert error["details"] == {"status": 401, "details": {"error": "bad key"}}


def test_chat_route_ignores_non_list_messages(client):
    llm = MagicMock()
    llm.create_response.return_value = "ok"
    set_chat_service(ChatService(client_factory=lambda: llm))

    resp = client.post("/api/chat", json={"messages": "hello", "context": {}})
    assert resp.status_code == 200
    sent = llm.create_response.call_args.args[0]
    assert len(sent) == 2
    assert sent[1]["content"] == CONTEXT_PREFIX + "{}"


def test_service_reuses_one_client():
    llm = MagicMock()
    llm.create_response.return_value = "ok"
    factory = MagicMock(return_value=llm)
    service = ChatService(client_factory=factory)

    service.answer([])
    service.answer([])
    assert factory.call_count == 1

    service.close()
    llm.close.assert_called_once_with()
    service.answer([])
    assert factory.call_count == 2


def test_client_closes_only_its_own_http(monkeypatch):
    given = MagicMock()
    OpenAIResponsesClient(api_key="sk-test", http=given).close()
    given.close.assert_not_called()

    owned = MagicMock()
    monkeypatch.setattr(httpx, "Client", MagicMock(return_value=owned))
    OpenAIResponsesClient(api_key="sk-test").close()
    owned.close.assert_called_once_with()
