from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field


Role = Literal["user", "model"]


class Turn(BaseModel):
    role: Role
    text: str


class ChatSessionCreate(BaseModel):
    subject: Optional[str] = None
    title: Optional[str] = None


class ChatSessionUpdate(BaseModel):
    subject: str = Field(min_length=1)


class ChatSession(BaseModel):
    session_id: str
    subject: str
    title: str
    created_at: datetime
    updated_at: datetime


class ChatMessageCreate(BaseModel):
    text: str = Field(min_length=1)


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    session_id: str
    role: Role
    text: str
    timestamp: datetime
    metadata: Optional[dict] = None


class ChatSessionWithMessages(BaseModel):
    session: ChatSession
    messages: List[ChatMessage]


class ChatExchange(BaseModel):
    """A user message together with the single model message it produced."""

    user: ChatMessage
    model: ChatMessage
