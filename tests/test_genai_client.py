from __future__ import annotations

import pytest
import requests

from src.smartdoc.config import LLMSettings
from src.smartdoc.domain.chat_models import Turn
from src.smartdoc.services import genai_client as gc
from src.smartdoc.services.model_router import ModelRouter


class FakeResponse:
    def __init__(self, payload=None, status_code=200, bad_json=False):
        self._payload = payload
        self.status_code = status_code
        self._bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if self._bad_json:
            raise ValueError("not json")
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return self.response


def _gemini(session, env=None):
    router = ModelRouter(env=env or {"GEMINI_API_KEY": "k"})
    return gc.GeminiTransport(router.select_provider("conversation"), LLMSettings(), session=session)


@pytest.mark.parametrize(
    "error",
    [
        requests.ConnectionError("boom"),
        requests.Timeout("slow"),
        requests.HTTPError("401 Unauthorized"),
        gc.ExternalCallError("llm_empty_response"),
        KeyError("candidates"),
    ],
)
def test_chat_never_raises_and_returns_fallback(transport, error):
    transport.error = error
    client = gc.TextGenerationClient(transport=transport)
    out = client.chat("sys", [Turn(role="user", text="hi")])
    assert out == gc.CHAT_FALLBACK


@pytest.mark.parametrize("error", [requests.ConnectionError("boom"), RuntimeError("quota")])
def test_complete_never_raises_and_returns_analysis_fallback(transport, error):
    transport.error = error
    client = gc.TextGenerationClient(transport=transport)
    assert client.complete("prompt") == gc.ANALYSIS_FALLBACK
    assert gc.ANALYSIS_FALLBACK != gc.CHAT_FALLBACK


def test_result_variant_reports_failure_cause(transport):
    transport.error = requests.ConnectionError("dns failure")
    result = gc.TextGenerationClient(transport=transport).chat_result("sys", [Turn(role="user", text="hi")])
    assert not result.ok
    assert result.fallback
    assert "dns failure" in result.error
    assert result.provider == "stub"


def test_success_passes_text_through(transport):
    client = gc.TextGenerationClient(transport=transport)
    result = client.chat_result("sys", [Turn(role="user", text="hi")])
    assert result.ok and result.error is None
    assert result.text == transport.reply
    call = transport.calls[0]
    assert call["system_instruction"] == "sys"
    assert call["turns"] == [Turn(role="user", text="hi")]


def test_complete_sends_single_user_turn_without_instruction(transport):
    gc.TextGenerationClient(transport=transport).complete("analise isto")
    call = transport.calls[0]
    assert call["system_instruction"] is None
    assert call["turns"] == [Turn(role="user", text="analise isto")]


def test_missing_provider_configuration_falls_back():
    client = gc.TextGenerationClient(router=ModelRouter(env={}))
    result = client.chat_result("sys", [Turn(role="user", text="hi")])
    assert not result.ok
    assert result.text == gc.CHAT_FALLBACK
    assert "No active model provider" in result.error


def test_failure_is_logged(transport, caplog):
    transport.error = requests.ConnectionError("boom")
    with caplog.at_level("WARNING", logger="smartdoc.llm"):
        gc.TextGenerationClient(transport=transport).chat("sys", [Turn(role="user", text="hi")])
    assert any(r.getMessage() == "llm_call_failed" for r in caplog.records)


def test_gemini_transport_request_shape():
    session = FakeSession(FakeResponse({"candidates": [{"content": {"parts": [{"text": "Olá"}, {"text": "!"}]}}]}))
    transport = _gemini(session)
    turns = [Turn(role="model", text="greeting"), Turn(role="user", text="question")]
    assert transport.generate("be concise", turns) == "Olá!"

    call = session.calls[0]
    assert call["url"] == "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-flash:generateContent"
    assert call["headers"] == {"x-goog-api-key": "k"}
    assert call["timeout"] == (3.0, 60.0)
    assert call["json"] == {
        "contents": [
            {"role": "model", "parts": [{"text": "greeting"}]},
            {"role": "user", "parts": [{"text": "question"}]},
        ],
        "systemInstruction": {"parts": [{"text": "be concise"}]},
    }


def test_gemini_transport_omits_instruction_for_single_prompt():
    session = FakeSession(FakeResponse({"candidates": [{"content": {"parts": [{"text": "ok"}]}}]}))
    _gemini(session).generate(None, [Turn(role="user", text="p")])
    assert "systemInstruction" not in session.calls[0]["json"]


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse({"candidates": []}),
        FakeResponse({"candidates": [{"content": {"parts": [{"text": "  "}]}}]}),
        FakeResponse({"promptFeedback": {"blockReason": "SAFETY"}}),
        FakeResponse(["unexpected"]),
        FakeResponse(bad_json=True),
        FakeResponse({}, status_code=403),
    ],
)
def test_gemini_bad_responses_become_fallback(response):
    client = gc.TextGenerationClient(transport=_gemini(FakeSession(response)))
    assert client.chat("sys", [Turn(role="user", text="hi")]) == gc.CHAT_FALLBACK


def test_gemini_transport_requires_key():
    selection = ModelRouter(env={}).resolve_provider("gemini")
    with pytest.raises(RuntimeError, match="LLM not configured"):
        gc.GeminiTransport(selection, LLMSettings(), session=FakeSession())


def test_openai_transport_maps_model_role_to_assistant():
    captured = {}

    class StubLLM:
        def invoke(self, msgs):
            captured["msgs"] = msgs
            return type("Resp", (), {"content": "resposta"})()

    selection = ModelRouter(env={"OPENAI_API_KEY": "k"}).select_provider("conversation")
    transport = gc.OpenAICompatTransport(selection, LLMSettings(), llm=StubLLM())
    out = transport.generate("sys", [Turn(role="user", text="a"), Turn(role="model", text="b")])
    assert out == "resposta"
    assert captured["msgs"] == [
        {"role": "system", "content": "sys"},
        {"role": "user", "content": "a"},
        {"role": "assistant", "content": "b"},
    ]


def test_client_builds_openai_transport_from_router(monkeypatch):
    created = {}

    class StubChatOpenAI:
        def __init__(self, **kwargs):
            created.update(kwargs)

        def invoke(self, msgs):
            return type("Resp", (), {"content": "via openai"})()

    monkeypatch.setattr(gc, "ChatOpenAI", StubChatOpenAI)
    client = gc.TextGenerationClient(router=ModelRouter(env={"OPENAI_API_KEY": "sk"}), settings=LLMSettings(read_timeout=7))
    result = client.chat_result("sys", [Turn(role="user", text="hi")])
    assert result.ok and result.text == "via openai"
    assert result.provider == "openai" and result.model == "gpt-4o-mini"
    assert created["api_key"] == "sk"
    assert created["timeout"] == 7


def test_describe_provider_hides_secrets():
    ready, meta = gc.describe_provider(router=ModelRouter(env={"GEMINI_API_KEY": "secret"}))
    assert ready
    assert meta["provider"] == "gemini"
    assert "secret" not in meta.values()

    ready, meta = gc.describe_provider(router=ModelRouter(env={}))
    assert not ready and meta["provider"] is None


def test_client_reuses_one_http_session_across_calls(monkeypatch):
    built = []

    class PooledSession(FakeSession):
        closed = False

        def close(self):
            self.closed = True

    def fake_build_session(retries):
        session = PooledSession(response=FakeResponse({"candidates": [{"content": {"parts": [{"text": "ok"}]}}]}))
        built.append(session)
        return session

    monkeypatch.setattr(gc, "_build_session", fake_build_session)
    client = gc.TextGenerationClient(router=ModelRouter(env={"GEMINI_API_KEY": "k"}), settings=LLMSettings())
    for _ in range(3):
        assert client.chat("sys", [Turn(role="user", text="hi")]) == "ok"
    assert client.complete("prompt") == "ok"

    assert len(built) == 1
    assert len(built[0].calls) == 4
    assert not built[0].closed

    client.close()
    assert built[0].closed


def test_injected_session_is_left_open():
    session = FakeSession(response=FakeResponse({"candidates": [{"content": {"parts": [{"text": "ok"}]}}]}))
    session.close = lambda: pytest.fail("caller-owned session must not be closed")
    _gemini(session).close()
