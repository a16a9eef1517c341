from __future__ import annotations

from typing import Optional
from fastapi import APIRouter, File, Form, HTTPException, UploadFile

from ...domain.analysis_models import AnalysisRequest, AnalysisResult, AnalysisUploadResponse
from ...infrastructure.session_store import SessionNotFound
from ...services.assistant import SessionBusy, get_assistant
from ...services.catalog_service import format_size


router = APIRouter(prefix="/analysis", tags=["analysis"])


def _run(req: AnalysisRequest) -> AnalysisResult:
    try:
        return get_assistant().analyze(req)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="Session not found")
    except SessionBusy as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("", response_model=AnalysisResult)
def analyze(req: AnalysisRequest) -> AnalysisResult:
    return _run(req)


@router.post("/upload", response_model=AnalysisUploadResponse)
def analyze_upload(
    file: UploadFile = File(...),
    company: str = Form(...),
    doc_type: str = Form(...),
    session_id: Optional[str] = Form(None),
) -> AnalysisUploadResponse:
    # Only the upload metadata is used; the file body is never read.
    req = AnalysisRequest(
        file_name=file.filename or "upload",
        file_type=file.content_type or "",
        company=company,
        doc_type=doc_type,
        session_id=session_id or None,
    )
    result = _run(req)
    return AnalysisUploadResponse(analysis=result, file_size=format_size(getattr(file, "size", None)))


@router.get("/{session_id}", response_model=AnalysisResult)
def last_analysis(session_id: str) -> AnalysisResult:
    try:
        result = get_assistant().last_analysis(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="Session not found")
    if result is None:
        raise HTTPException(status_code=404, detail="No analysis for this session")
    return result
