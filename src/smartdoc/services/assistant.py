from __future__ import annotations

"""Chat and analysis flows for one dashboard session.

A send appends the user message, calls the text service once, and appends
exactly one model message: the reply, or the fallback text when the call
failed. Only one request of each kind may be in flight per session; a
concurrent one is rejected with :class:`SessionBusy` instead of queued.
"""

from contextlib import contextmanager
from datetime import UTC, datetime
from threading import Lock
from typing import Iterator, Optional, Set, Tuple
import logging

from ..domain.analysis_models import AnalysisRequest, AnalysisResult
from ..domain.chat_models import ChatMessage, ChatSession, Turn
from ..infrastructure.session_store import SessionNotFound, SessionStore, get_session_store
from .catalog_service import KNOWLEDGE_SUBJECTS
from .genai_client import GenerationResult, TextGenerationClient
from .prompts import build_analysis_prompt, build_chat_context


logger = logging.getLogger(__name__)

GREETING = "Olá! Sou o assistente Smart Doc. Selecione um tópico para começar."


class SessionBusy(RuntimeError):
    def __init__(self, session_id: str, kind: str) -> None:
        super().__init__(f"A {kind} request is already in flight for session {session_id}")
        self.session_id = session_id
        self.kind = kind


def _result_metadata(result: GenerationResult) -> dict:
    meta = {"provider": result.provider, "model": result.model, "fallback": result.fallback}
    if result.error:
        meta["error"] = result.error
    return meta


class AssistantService:
    def __init__(self, store: Optional[SessionStore] = None, client: Optional[TextGenerationClient] = None) -> None:
        self.store = store or get_session_store()
        self.client = client or TextGenerationClient()
        self._in_flight: Set[Tuple[str, str]] = set()
        self._guard = Lock()

    @contextmanager
    def _single_flight(self, session_id: str, kind: str) -> Iterator[None]:
        key = (kind, session_id)
        with self._guard:
            if key in self._in_flight:
                raise SessionBusy(session_id, kind)
            self._in_flight.add(key)
        try:
            yield
        finally:
            with self._guard:
                self._in_flight.discard(key)

    def _require_session(self, session_id: str) -> ChatSession:
        sess = self.store.get_session(session_id)
        if not sess:
            raise SessionNotFound(session_id)
        return sess

    def is_busy(self, session_id: str, kind: str = "chat") -> bool:
        with self._guard:
            return (kind, session_id) in self._in_flight

    def start_session(self, subject: Optional[str] = None, title: Optional[str] = None, greeting: bool = True) -> ChatSession:
        subject = (subject or "").strip() or KNOWLEDGE_SUBJECTS[0]
        sess = self.store.create_session(subject=subject, title=title)
        if greeting:
            self.store.add_message(sess.session_id, role="model", text=GREETING)
        logger.info("Started chat session %s on subject %r", sess.session_id, subject)
        return sess

    def change_subject(self, session_id: str, subject: str) -> ChatSession:
        subject = subject.strip()
        if not subject:
            raise ValueError("Subject must not be blank")
        return self.store.update_session_subject(session_id, subject)

    def end_session(self, session_id: str) -> bool:
        return self.store.delete_session(session_id)

    def send_message(self, session_id: str, text: str) -> Tuple[ChatMessage, ChatMessage]:
        """Record ``text`` from the user and the single model reply that follows it."""

        if not text or not text.strip():
            raise ValueError("Message text must not be blank")
        sess = self._require_session(session_id)
        with self._single_flight(session_id, "chat"):
            history = [Turn(role=m.role, text=m.text) for m in self.store.list_messages(session_id)]
            user_msg = self.store.add_message(session_id, role="user", text=text)
            system_instruction, turns = build_chat_context(sess.subject, history, text)
            result = self.client.chat_result(system_instruction, turns)
            model_msg = self.store.add_message(
                session_id,
                role="model",
                text=result.text,
                metadata=_result_metadata(result),
            )
        return user_msg, model_msg

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """Run the simulated analysis; only the file metadata reaches the model."""

        sid = request.session_id
        if sid:
            self._require_session(sid)
        prompt = build_analysis_prompt(request.file_name, request.file_type, request.company, request.doc_type)
        guard = self._single_flight(sid, "analysis") if sid else _no_guard()
        with guard:
            result = self.client.complete_result(prompt)
        analysis = AnalysisResult(
            text=result.text,
            request=request,
            created_at=datetime.now(UTC),
            fallback=result.fallback,
            provider=result.provider,
            model=result.model,
        )
        if sid:
            self.store.set_analysis(sid, analysis)
        return analysis

    def last_analysis(self, session_id: str) -> Optional[AnalysisResult]:
        return self.store.get_analysis(session_id)


@contextmanager
def _no_guard() -> Iterator[None]:
    yield


_assistant: AssistantService | None = None


def get_assistant() -> AssistantService:
    global _assistant
    if _assistant is None:
        _assistant = AssistantService()
    return _assistant


def reset_assistant() -> None:
    global _assistant
    if _assistant is not None:
        _assistant.client.close()
    _assistant = None
