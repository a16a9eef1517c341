from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Dict, List, Optional, Protocol, Sequence, Tuple
import logging

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from langchain_openai import ChatOpenAI

from ..config import LLMSettings
from ..domain.chat_models import Turn
from ..observability.metrics import record_llm_call
from .model_router import ModelRouter, ProviderSelection
from .prompts import to_wire_contents


logger = logging.getLogger(__name__)
LOG = logging.getLogger("smartdoc.llm")

CHAT_FALLBACK = "Sorry, I encountered an error accessing the knowledge base."
ANALYSIS_FALLBACK = "Não foi possível analisar o documento neste momento."


class ExternalCallError(RuntimeError):
    """Raised by transports for malformed or empty provider responses."""


@dataclass(frozen=True)
class GenerationResult:
    """Display text plus the structured outcome of one external call."""

    text: str
    ok: bool
    error: Optional[str] = None
    provider: Optional[str] = None
    model: Optional[str] = None

    @property
    def fallback(self) -> bool:
        return not self.ok


class Transport(Protocol):
    provider: str
    model: str

    def generate(self, system_instruction: Optional[str], turns: Sequence[Turn]) -> str: ...


def _build_session(retries: int) -> requests.Session:
    session = requests.Session()
    retry = Retry(
        total=retries,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset(["POST"]),
    )
    adapter = HTTPAdapter(max_retries=retry, pool_connections=10, pool_maxsize=10)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class GeminiTransport:
    """``generateContent`` over plain HTTP."""

    def __init__(
        self,
        selection: ProviderSelection,
        settings: LLMSettings,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not selection.api_key:
            raise RuntimeError("LLM not configured")
        self.provider = selection.name
        self.model = selection.model
        self.base_url = selection.base_url.rstrip("/")
        self._api_key = selection.api_key
        self._timeout = settings.timeout
        self._owns_session = session is None
        self._session = session or _build_session(settings.retries)

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def build_payload(self, system_instruction: Optional[str], turns: Sequence[Turn]) -> Dict[str, object]:
        payload: Dict[str, object] = {"contents": to_wire_contents(turns)}
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        return payload

    def generate(self, system_instruction: Optional[str], turns: Sequence[Turn]) -> str:
        LOG.debug("gemini_generate", extra={"model": self.model, "turns": len(turns)})
        resp = self._session.post(
            f"{self.base_url}/models/{self.model}:generateContent",
            json=self.build_payload(system_instruction, turns),
            headers={"x-goog-api-key": self._api_key},
            timeout=self._timeout,
        )
        resp.raise_for_status()
        try:
            data = resp.json()
        except ValueError as exc:
            raise ExternalCallError("llm_malformed_response") from exc
        return self.extract_text(data)

    @staticmethod
    def extract_text(data: object) -> str:
        if not isinstance(data, dict):
            raise ExternalCallError("llm_malformed_response")
        candidates = data.get("candidates") or []
        if not candidates:
            raise ExternalCallError("llm_empty_response")
        content = (candidates[0] or {}).get("content") or {}
        parts = content.get("parts") or []
        text = "".join(str(p.get("text") or "") for p in parts if isinstance(p, dict))
        if not text.strip():
            raise ExternalCallError("llm_empty_response")
        return text


class OpenAICompatTransport:
    """Any OpenAI-compatible chat endpoint through langchain-openai."""

    _ROLE_MAP = {"user": "user", "model": "assistant"}

    def __init__(self, selection: ProviderSelection, settings: LLMSettings, llm: object = None) -> None:
        if not selection.api_key and llm is None:
            raise RuntimeError("LLM not configured")
        self.provider = selection.name
        self.model = selection.model
        self._llm = llm or ChatOpenAI(
            api_key=selection.api_key,
            base_url=selection.base_url,
            model=selection.model,
            temperature=settings.temperature,
            timeout=settings.read_timeout,
            max_retries=settings.retries,
        )

    def build_messages(self, system_instruction: Optional[str], turns: Sequence[Turn]) -> List[Dict[str, str]]:
        msgs: List[Dict[str, str]] = []
        if system_instruction:
            msgs.append({"role": "system", "content": system_instruction})
        for t in turns:
            msgs.append({"role": self._ROLE_MAP.get(t.role, "user"), "content": t.text})
        return msgs

    def generate(self, system_instruction: Optional[str], turns: Sequence[Turn]) -> str:
        res = self._llm.invoke(self.build_messages(system_instruction, turns))
        text = res.content if hasattr(res, "content") else str(res)
        if not isinstance(text, str) or not text.strip():
            raise ExternalCallError("llm_empty_response")
        return text


_TRANSPORTS = {
    "gemini": GeminiTransport,
    "openai": OpenAICompatTransport,
}


class TextGenerationClient:
    """One round-trip to the external text service per call; never raises.

    Failures of any kind (no provider configured, network, auth, malformed
    or empty responses) are logged and turned into the fixed fallback text.
    ``*_result`` variants expose the outcome for callers that need to tell a
    fallback apart from a real reply.
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        router: Optional[ModelRouter] = None,
        settings: Optional[LLMSettings] = None,
    ) -> None:
        self._transport = transport
        self._router = router
        self._settings = settings
        # Built transports are reused so each provider keeps one pooled HTTP session
        self._transports: Dict[Tuple[ProviderSelection, LLMSettings], Transport] = {}
        self._lock = Lock()

    def _get_transport(self, purpose: str) -> Transport:
        if self._transport is not None:
            return self._transport
        router = self._router or ModelRouter()
        settings = self._settings or LLMSettings.from_env()
        selection = router.select_provider(purpose)
        key = (selection, settings)
        with self._lock:
            transport = self._transports.get(key)
            if transport is None:
                transport = _TRANSPORTS[selection.name](selection, settings)
                self._transports[key] = transport
                LOG.info("llm_transport_created", extra={"provider": selection.name, "model": selection.model})
        return transport

    def close(self) -> None:
        """Release pooled connections held by transports this client built."""

        with self._lock:
            transports = list(self._transports.values())
            self._transports.clear()
        for transport in transports:
            closer = getattr(transport, "close", None)
            if callable(closer):
                closer()

    def _call(
        self,
        operation: str,
        purpose: str,
        system_instruction: Optional[str],
        turns: Sequence[Turn],
        fallback: str,
    ) -> GenerationResult:
        provider: Optional[str] = None
        model: Optional[str] = None
        try:
            transport = self._get_transport(purpose)
            provider = getattr(transport, "provider", None)
            model = getattr(transport, "model", None)
            text = transport.generate(system_instruction, list(turns))
        except Exception as exc:
            LOG.warning(
                "llm_call_failed",
                extra={"operation": operation, "provider": provider, "model": model, "err": str(exc)},
            )
            logger.exception("External %s call failed; returning fallback text", operation)
            record_llm_call(operation, ok=False)
            return GenerationResult(text=fallback, ok=False, error=str(exc) or type(exc).__name__, provider=provider, model=model)
        record_llm_call(operation, ok=True)
        return GenerationResult(text=text, ok=True, provider=provider, model=model)

    def chat_result(self, system_instruction: str, turns: Sequence[Turn]) -> GenerationResult:
        return self._call("chat", "conversation", system_instruction, turns, CHAT_FALLBACK)

    def chat(self, system_instruction: str, turns: Sequence[Turn]) -> str:
        return self.chat_result(system_instruction, turns).text

    def complete_result(self, prompt: str) -> GenerationResult:
        return self._call("analysis", "analysis", None, [Turn(role="user", text=prompt)], ANALYSIS_FALLBACK)

    def complete(self, prompt: str) -> str:
        return self.complete_result(prompt).text


def describe_provider(purpose: str = "conversation", router: Optional[ModelRouter] = None) -> Tuple[bool, Dict[str, Optional[str]]]:
    """Return ``(ready, metadata)`` for the provider a call would use, without secrets."""

    router = router or ModelRouter()
    selection = router.maybe_select_provider(purpose)
    if selection is None:
        return False, {"provider": None, "model": None, "api_key_env": None, "base_url": None}
    return True, selection.public_metadata()
