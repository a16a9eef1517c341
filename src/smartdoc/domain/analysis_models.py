from __future__ import annotations

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class AnalysisRequest(BaseModel):
    file_name: str = Field(min_length=1)
    file_type: str = ""
    company: str = Field(min_length=1)
    doc_type: str = Field(min_length=1)
    session_id: Optional[str] = None


class AnalysisResult(BaseModel):
    # Opaque markdown blob; nothing is parsed out of it.
    text: str
    request: AnalysisRequest
    created_at: datetime
    fallback: bool = False
    provider: Optional[str] = None
    model: Optional[str] = None


class AnalysisUploadResponse(BaseModel):
    analysis: AnalysisResult
    file_size: str
