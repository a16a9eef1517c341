from __future__ import annotations

from typing import List, Optional
from fastapi import APIRouter, HTTPException, Query

from ...domain.catalog_models import DashboardOptions, Document, StatCard, User
from ...services import catalog_service


router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=List[StatCard])
def stats() -> List[StatCard]:
    return catalog_service.list_stats()


@router.get("/documents", response_model=List[Document])
def documents(
    status: Optional[str] = Query(None),
    query: Optional[str] = Query(None),
    q: Optional[str] = Query(None),
) -> List[Document]:
    # `q` is the short form of `query`; `query` wins when both are given
    return catalog_service.list_documents(status=status, query=query or q)


@router.get("/documents/{doc_id}", response_model=Document)
def document(doc_id: str) -> Document:
    doc = catalog_service.get_document(doc_id)
    if not doc:
        raise HTTPException(status_code=404, detail="Document not found")
    return doc


@router.get("/users", response_model=List[User])
def users(status: Optional[str] = Query(None)) -> List[User]:
    return catalog_service.list_users(status=status)


@router.get("/me", response_model=User)
def me() -> User:
    return catalog_service.current_user()


@router.get("/options", response_model=DashboardOptions)
def options() -> DashboardOptions:
    return catalog_service.dashboard_options()
