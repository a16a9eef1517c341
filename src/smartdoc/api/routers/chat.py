from __future__ import annotations

from typing import List
from fastapi import APIRouter, HTTPException, Response, status

from ...domain.chat_models import (
    ChatExchange,
    ChatMessage,
    ChatMessageCreate,
    ChatSession,
    ChatSessionCreate,
    ChatSessionUpdate,
    ChatSessionWithMessages,
)
from ...infrastructure.session_store import SessionNotFound
from ...services.assistant import SessionBusy, get_assistant


router = APIRouter(prefix="/chat", tags=["chat"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Session not found")


@router.post("/sessions", response_model=ChatSessionWithMessages, status_code=status.HTTP_201_CREATED)
def create_session(req: ChatSessionCreate) -> ChatSessionWithMessages:
    assistant = get_assistant()
    sess = assistant.start_session(subject=req.subject, title=req.title)
    return ChatSessionWithMessages(session=sess, messages=assistant.store.list_messages(sess.session_id))


@router.get("/sessions/{session_id}", response_model=ChatSessionWithMessages)
def get_session(session_id: str) -> ChatSessionWithMessages:
    store = get_assistant().store
    sess = store.get_session(session_id)
    if not sess:
        raise _not_found()
    return ChatSessionWithMessages(session=sess, messages=store.list_messages(session_id))


@router.patch("/sessions/{session_id}", response_model=ChatSession)
def update_session(session_id: str, req: ChatSessionUpdate) -> ChatSession:
    try:
        return get_assistant().change_subject(session_id, req.subject)
    except SessionNotFound:
        raise _not_found()
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session(session_id: str) -> Response:
    if not get_assistant().end_session(session_id):
        raise _not_found()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/sessions/{session_id}/messages", response_model=List[ChatMessage])
def list_messages(session_id: str) -> List[ChatMessage]:
    try:
        return get_assistant().store.list_messages(session_id)
    except SessionNotFound:
        raise _not_found()


@router.post("/sessions/{session_id}/messages", response_model=ChatExchange)
def post_message(session_id: str, msg: ChatMessageCreate) -> ChatExchange:
    try:
        user_msg, model_msg = get_assistant().send_message(session_id, msg.text)
    except SessionNotFound:
        raise _not_found()
    except SessionBusy as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return ChatExchange(user=user_msg, model=model_msg)
