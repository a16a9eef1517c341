from __future__ import annotations

"""Runtime settings for the text-generation client.

Env vars:
- SMARTDOC_LLM_CONNECT_TIMEOUT (seconds, default 3)
- SMARTDOC_LLM_READ_TIMEOUT (seconds, default 60)
- SMARTDOC_LLM_RETRIES (default 0; retried only on 429/5xx)
- SMARTDOC_LLM_TEMPERATURE (default 0.2, OpenAI-compatible provider only)
"""

from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

import os


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


@dataclass(frozen=True)
class LLMSettings:
    connect_timeout: float = 3.0
    read_timeout: float = 60.0
    retries: int = 0
    temperature: float = 0.2

    @property
    def timeout(self) -> Tuple[float, float]:
        return (self.connect_timeout, self.read_timeout)

    @staticmethod
    def from_env(env: Optional[Mapping[str, str]] = None) -> "LLMSettings":
        env = os.environ if env is None else env
        return LLMSettings(
            connect_timeout=_env_float(env, "SMARTDOC_LLM_CONNECT_TIMEOUT", 3.0),
            read_timeout=_env_float(env, "SMARTDOC_LLM_READ_TIMEOUT", 60.0),
            retries=_env_int(env, "SMARTDOC_LLM_RETRIES", 0),
            temperature=_env_float(env, "SMARTDOC_LLM_TEMPERATURE", 0.2),
        )
