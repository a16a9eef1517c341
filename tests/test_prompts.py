from __future__ import annotations

import pytest

from src.smartdoc.domain.chat_models import Turn
from src.smartdoc.services import prompts


HISTORIES = [
    [],
    [{"role": "model", "text": "Olá! Como posso ajudar?"}],
    [
        {"role": "user", "text": "Qual a política de férias?"},
        {"role": "model", "text": "São 30 dias por ano."},
        {"role": "user", "text": "E o abono?"},
        {"role": "model", "text": "Até 10 dias podem ser vendidos."},
    ],
]


@pytest.mark.parametrize("history", HISTORIES)
def test_chat_context_appends_new_message_and_keeps_history(history):
    system, turns = prompts.build_chat_context("Política de RH", history, "Posso parcelar?")
    assert len(turns) == len(history) + 1
    assert turns[-1] == Turn(role="user", text="Posso parcelar?")
    assert [t.model_dump() for t in turns[:-1]] == history
    assert "Política de RH" in system


def test_chat_context_does_not_mutate_history():
    history = [{"role": "user", "text": "a"}, {"role": "model", "text": "b"}]
    snapshot = [dict(h) for h in history]
    prompts.build_chat_context("Jurídico Geral", history, "c")
    assert history == snapshot


def test_chat_context_accepts_turn_objects_and_preserves_roles():
    history = [Turn(role="model", text="hi"), Turn(role="model", text="again")]
    _, turns = prompts.build_chat_context("x", history, "next")
    assert [t.role for t in turns] == ["model", "model", "user"]


def test_chat_context_scenario_empty_history():
    system, turns = prompts.build_chat_context("Jurídico Geral", [], "Qual o prazo de resposta?")
    assert [t.model_dump() for t in turns] == [{"role": "user", "text": "Qual o prazo de resposta?"}]
    assert "Jurídico Geral" in system


def test_system_instruction_is_deterministic_and_asks_for_markdown():
    a = prompts.build_system_instruction("Normas de Segurança")
    b = prompts.build_system_instruction("Normas de Segurança")
    assert a == b
    assert "Markdown" in a
    assert "professionally" in a and "concisely" in a
    assert prompts.build_system_instruction("Outro") != a


@pytest.mark.parametrize(
    "args",
    [
        ("NDA_Partner_Y.pdf", "application/pdf", "Partner Corp", "NDA"),
        ("Contrato {x}.docx", "", "Empresa X", "Contrato de Locação"),
        ("relatório%s.csv", "text/csv", "Consultoria ABC", "Relatório Técnico"),
    ],
)
def test_analysis_prompt_echoes_every_input(args):
    prompt = prompts.build_analysis_prompt(*args)
    for value in args:
        assert value in prompt


def test_analysis_prompt_scenario_sections_in_order():
    prompt = prompts.build_analysis_prompt("NDA_Partner_Y.pdf", "application/pdf", "Partner Corp", "NDA")
    for literal in ("NDA_Partner_Y.pdf", "application/pdf", "Partner Corp", "NDA"):
        assert literal in prompt
    positions = [prompt.index(f"**{s}**") for s in prompts.ANALYSIS_SECTIONS]
    assert positions == sorted(positions)
    assert prompts.ANALYSIS_SECTIONS == (
        "Resumo Executivo",
        "Cláusulas e Pontos Chave",
        "Análise de Risco",
        "Recomendações",
    )


def test_to_wire_contents_shape():
    contents = prompts.to_wire_contents([Turn(role="user", text="oi"), {"role": "model", "text": "olá"}])
    assert contents == [
        {"role": "user", "parts": [{"text": "oi"}]},
        {"role": "model", "parts": [{"text": "olá"}]},
    ]
