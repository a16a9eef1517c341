from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from threading import RLock
from typing import Any, Dict, List, Optional, Protocol
import uuid

from ..domain.analysis_models import AnalysisResult
from ..domain.chat_models import ChatSession, ChatMessage


_ROLES = ("user", "model")


class SessionNotFound(KeyError):
    pass


class SessionStore(Protocol):
    def create_session(self, subject: str, title: Optional[str] = None) -> ChatSession: ...

    def get_session(self, session_id: str) -> Optional[ChatSession]: ...

    def update_session_subject(self, session_id: str, subject: str) -> ChatSession: ...

    def delete_session(self, session_id: str) -> bool: ...

    def count_sessions(self) -> int: ...

    def add_message(self, session_id: str, role: str, text: str, metadata: Optional[Dict[str, Any]] = None) -> ChatMessage: ...

    def list_messages(self, session_id: str) -> List[ChatMessage]: ...

    def set_analysis(self, session_id: str, result: AnalysisResult) -> None: ...

    def get_analysis(self, session_id: str) -> Optional[AnalysisResult]: ...


@dataclass
class _Session:
    session_id: str
    subject: str
    title: str
    created_at: datetime
    updated_at: datetime
    messages: List[ChatMessage] = field(default_factory=list)
    analysis: Optional[AnalysisResult] = None


class InMemorySessionStore:
    """Per-session conversation logs kept for the lifetime of the process.

    Each session owns an append-only message list; messages are never
    edited, removed or reordered. Deleting a session discards its log and
    last analysis together.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, _Session] = {}
        self._lock = RLock()

    def _now(self) -> datetime:
        return datetime.now(UTC)

    def _session_model(self, sess: _Session) -> ChatSession:
        return ChatSession(
            session_id=sess.session_id,
            subject=sess.subject,
            title=sess.title,
            created_at=sess.created_at,
            updated_at=sess.updated_at,
        )

    def _require(self, session_id: str) -> _Session:
        sess = self._sessions.get(session_id)
        if not sess:
            raise SessionNotFound(session_id)
        return sess

    def create_session(self, subject: str, title: Optional[str] = None) -> ChatSession:
        with self._lock:
            sid = uuid.uuid4().hex
            now = self._now()
            sess = _Session(
                session_id=sid,
                subject=subject,
                title=title or subject,
                created_at=now,
                updated_at=now,
            )
            self._sessions[sid] = sess
            return self._session_model(sess)

    def get_session(self, session_id: str) -> Optional[ChatSession]:
        with self._lock:
            sess = self._sessions.get(session_id)
            if not sess:
                return None
            return self._session_model(sess)

    def update_session_subject(self, session_id: str, subject: str) -> ChatSession:
        with self._lock:
            sess = self._require(session_id)
            sess.subject = subject
            sess.updated_at = self._now()
            return self._session_model(sess)

    def delete_session(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def count_sessions(self) -> int:
        with self._lock:
            return len(self._sessions)

    def add_message(
        self,
        session_id: str,
        role: str,
        text: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ChatMessage:
        if role not in _ROLES:
            raise ValueError(f"Unsupported role: {role!r}")
        with self._lock:
            sess = self._require(session_id)
            now = self._now()
            msg = ChatMessage(
                id=uuid.uuid4().hex,
                session_id=session_id,
                role=role,
                text=text,
                timestamp=now,
                metadata=dict(metadata) if metadata else None,
            )
            sess.messages.append(msg)
            sess.updated_at = now
            return msg

    def list_messages(self, session_id: str) -> List[ChatMessage]:
        with self._lock:
            return list(self._require(session_id).messages)

    def set_analysis(self, session_id: str, result: AnalysisResult) -> None:
        with self._lock:
            sess = self._require(session_id)
            sess.analysis = result
            sess.updated_at = self._now()

    def get_analysis(self, session_id: str) -> Optional[AnalysisResult]:
        with self._lock:
            return self._require(session_id).analysis


_store: SessionStore | None = None


def get_session_store() -> SessionStore:
    global _store
    if _store is None:
        _store = InMemorySessionStore()
    return _store


def reset_session_store() -> None:
    """Drop every session (useful for tests)."""

    global _store
    _store = None
