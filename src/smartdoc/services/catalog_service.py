from __future__ import annotations

from typing import Iterable, List, Optional

from ..domain.catalog_models import DashboardOptions, Document, StatCard, User, UserRole


# NOTE: Static mock data for the dashboard panels. Nothing here is persisted.
DOC_TYPES: List[str] = [
    "Contrato de Trabalho",
    "Contrato de Locação",
    "NDA",
    "Proposta Comercial",
    "Relatório Técnico",
]

COMPANIES: List[str] = ["Paipe Tecnologia", "Empresa X", "Partner Corp", "Consultoria ABC"]

KNOWLEDGE_SUBJECTS: List[str] = [
    "Política de RH",
    "Processos de Vendas",
    "Normas de Segurança",
    "Documentação Técnica",
    "Jurídico Geral",
]

_STATS: List[StatCard] = [
    StatCard(stat_id="knowledge-sources", title="Total de Fontes de Conhecimento", value="1,215"),
    StatCard(stat_id="monthly-queries", title="Consultas no Mês", value="8,432"),
    StatCard(stat_id="monthly-analyses", title="Análises no Mês", value="942"),
]

_USERS: List[User] = [
    User(id="1", name="Alice Silva", email="alice@paipe.co", role=UserRole.ADMIN, status="Active"),
    User(id="2", name="Bob Santos", email="bob@paipe.co", role=UserRole.USER, status="Active"),
    User(id="3", name="Charlie Costa", email="charlie@paipe.co", role=UserRole.VIEWER, status="Inactive"),
]

_DOCUMENTS: List[Document] = [
    Document(
        id="1",
        name="Contrato_Prestacao_Servicos_XPTO.pdf",
        type="Contrato",
        uploaded_by="Alice Silva",
        date="2023-10-25",
        size="2.4 MB",
        status="Processed",
    ),
    Document(
        id="2",
        name="Manual_Conduta_Interna.docx",
        type="Normativo",
        uploaded_by="Bob Santos",
        date="2023-10-24",
        size="1.1 MB",
        status="Processed",
    ),
    Document(
        id="3",
        name="Relatorio_Financeiro_Q3.csv",
        type="Relatório",
        uploaded_by="Alice Silva",
        date="2023-10-20",
        size="500 KB",
        status="Processed",
    ),
    Document(
        id="4",
        name="NDA_Partner_Y.pdf",
        type="NDA",
        uploaded_by="Bob Santos",
        date="2023-10-18",
        size="1.8 MB",
        status="Pending",
    ),
]


def list_stats() -> List[StatCard]:
    return list(_STATS)


def list_documents(status: Optional[str] = None, query: Optional[str] = None) -> List[Document]:
    """Return documents, newest first, filtered by status and a name/type substring."""
    docs: Iterable[Document] = _DOCUMENTS
    if status:
        wanted = status.strip().lower()
        docs = [d for d in docs if d.status.lower() == wanted]
    needle = (query or "").strip().lower()
    if needle:
        docs = [d for d in docs if needle in d.name.lower() or needle in d.type.lower()]
    return sorted(docs, key=lambda d: d.date, reverse=True)


def get_document(doc_id: str) -> Optional[Document]:
    for doc in _DOCUMENTS:
        if doc.id == doc_id:
            return doc
    return None


def list_users(status: Optional[str] = None) -> List[User]:
    if not status:
        return list(_USERS)
    wanted = status.strip().lower()
    return [u for u in _USERS if u.status.lower() == wanted]


def current_user() -> User:
    # Mock login always resolves to the first (admin) user.
    return _USERS[0]


def dashboard_options() -> DashboardOptions:
    return DashboardOptions(doc_types=list(DOC_TYPES), companies=list(COMPANIES), subjects=list(KNOWLEDGE_SUBJECTS))


def format_size(num_bytes: Optional[int]) -> str:
    """Human-readable size in the same style as the documents table ("2.4 MB", "500 KB")."""
    if num_bytes is None or num_bytes < 0:
        return "—"
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes // 1024} KB"
    return f"{num_bytes / (1024 * 1024):.1f} MB"
