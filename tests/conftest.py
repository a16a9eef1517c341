import sys
from pathlib import Path
from typing import List, Optional, Sequence

import pytest

ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)


class StubTransport:
    """Records every request and answers with canned text or an exception."""

    provider = "stub"
    model = "stub-model"

    def __init__(self, reply: str = "OK", error: Optional[Exception] = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: List[dict] = []

    def generate(self, system_instruction, turns: Sequence):
        self.calls.append({"system_instruction": system_instruction, "turns": list(turns)})
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture(autouse=True)
def _no_provider_env(monkeypatch):
    """Keep real credentials out of tests so nothing reaches the network."""
    for key in (
        "GEMINI_API_KEY",
        "API_KEY",
        "GEMINI_MODEL",
        "GEMINI_BASE_URL",
        "OPENAI_API_KEY",
        "OPENAI_MODEL",
        "OPENAI_BASE_URL",
        "SMARTDOC_MODEL_PROVIDER",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def transport():
    return StubTransport(reply="**Resposta** do modelo")


@pytest.fixture
def assistant(monkeypatch, transport):
    """Fresh assistant wired to the stub transport and installed for the API routes."""
    from src.smartdoc.infrastructure.session_store import InMemorySessionStore
    from src.smartdoc.services import assistant as assistant_mod
    from src.smartdoc.services.genai_client import TextGenerationClient

    svc = assistant_mod.AssistantService(
        store=InMemorySessionStore(),
        client=TextGenerationClient(transport=transport),
    )
    monkeypatch.setattr(assistant_mod, "_assistant", svc)
    return svc
