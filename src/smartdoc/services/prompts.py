from __future__ import annotations

"""Prompt construction for the knowledge-base chat and the document analysis panel.

Everything here is pure string formatting. History is passed through as-is:
no truncation or filtering happens at this layer, so callers own any
retention policy.
"""

from typing import Dict, Iterable, List, Mapping, Sequence, Tuple, Union

from ..domain.chat_models import Turn


ANALYSIS_SECTIONS: Tuple[str, ...] = (
    "Resumo Executivo",
    "Cláusulas e Pontos Chave",
    "Análise de Risco",
    "Recomendações",
)

TurnLike = Union[Turn, Mapping[str, str]]


def build_system_instruction(subject: str) -> str:
    lines = [
        "You are Smart Doc, an intelligent assistant for the company.",
        f'The user is asking questions about the subject: "{subject}".',
        "Assume you have access to a vast knowledge base about this topic.",
        "Answer professionally, concisely, and use Markdown formatting.",
        "If the question is about specific internal documents, pretend you found relevant info.",
    ]
    return "\n".join(lines)


def _as_turn(item: TurnLike) -> Turn:
    if isinstance(item, Turn):
        return Turn(role=item.role, text=item.text)
    return Turn(role=item["role"], text=item["text"])


def build_chat_context(
    subject: str,
    history: Iterable[TurnLike],
    new_message: str,
) -> Tuple[str, List[Turn]]:
    """Return ``(system_instruction, turns)`` for one chat request.

    ``turns`` is ``history`` in order with roles untouched, followed by
    ``new_message`` as the final user turn.
    """

    turns = [_as_turn(h) for h in history]
    turns.append(Turn(role="user", text=new_message))
    return build_system_instruction(subject), turns


def build_analysis_prompt(file_name: str, file_type: str, company: str, doc_type: str) -> str:
    """Prompt for the simulated analysis of an uploaded document.

    Only the file metadata is used; the model is asked to produce plausible
    content for this kind of document.
    """

    s1, s2, s3, s4 = ANALYSIS_SECTIONS
    lines = [
        "Atue como um analista de documentos sênior e especialista jurídico.",
        "Acabei de fazer upload de um documento com os seguintes detalhes:",
        f"- Nome do Arquivo: {file_name}",
        f"- Formato: {file_type}",
        f"- Contexto da Empresa: {company}",
        f"- Tipo de Documento: {doc_type}",
        "",
        "Por favor, forneça uma análise simulada e detalhada do que este documento provavelmente contém.",
        "Estruture sua resposta estritamente em Markdown (pt-BR) com as seguintes seções, nesta ordem:",
        f"1. **{s1}**: Uma visão geral breve e direta do propósito do documento.",
        f"2. **{s2}**: Detalhes importantes extraídos que são tipicamente críticos em um {doc_type}.",
        f"3. **{s3}**: Riscos potenciais encontrados (Alto/Médio/Baixo) e pontos de atenção.",
        f"4. **{s4}**: Ações sugeridas para a empresa.",
        "",
        "Mantenha o tom profissional, corporativo e realista, preenchendo com dados fictícios plausíveis para este tipo de documento.",
    ]
    return "\n".join(lines)


def to_wire_contents(turns: Sequence[TurnLike]) -> List[Dict[str, object]]:
    """Convert turns to the ``[{role, parts: [{text}]}]`` request shape."""

    out: List[Dict[str, object]] = []
    for item in turns:
        turn = _as_turn(item)
        out.append({"role": turn.role, "parts": [{"text": turn.text}]})
    return out
