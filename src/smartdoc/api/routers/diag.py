from __future__ import annotations

from fastapi import APIRouter

from ...config import LLMSettings
from ...services.genai_client import describe_provider

router = APIRouter(prefix="/diag", tags=["diagnostics"])


@router.get("/llm")
def diag_llm():
    ready, meta = describe_provider("conversation")
    settings = LLMSettings.from_env()
    return {
        **meta,
        "has_api_key": ready,
        "ready": ready,
        "connect_timeout": settings.connect_timeout,
        "read_timeout": settings.read_timeout,
        "retries": settings.retries,
    }
