"""Routing helpers for selecting the text-generation provider.

The router does not couple directly to concrete SDK clients; instead it
selects a provider configuration that the client uses to build its
transport. This keeps the selection policy unit-testable without network
access or provider SDKs installed.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Set, Tuple


@dataclass(frozen=True)
class ProviderSelection:
    """Returned details about the provider that should handle a task."""

    name: str
    model: str
    api_key_env: Optional[str]
    base_url: str
    api_key: Optional[str] = None

    def public_metadata(self) -> Dict[str, Optional[str]]:
        return {
            "provider": self.name,
            "model": self.model,
            "api_key_env": self.api_key_env,
            "base_url": self.base_url,
        }


class ModelRouter:
    """Environment-driven provider selection for chat and analysis calls."""

    PROVIDER_CONFIG: Dict[str, Dict[str, object]] = {
        "gemini": {
            # API_KEY is accepted for older .env files.
            "api_key_envs": ("GEMINI_API_KEY", "API_KEY"),
            "base_url_env": "GEMINI_BASE_URL",
            "model_env": "GEMINI_MODEL",
            "default_model": "gemini-2.5-flash",
            "default_base_url": "https://generativelanguage.googleapis.com/v1beta",
        },
        "openai": {
            "api_key_envs": ("OPENAI_API_KEY",),
            "base_url_env": "OPENAI_BASE_URL",
            "model_env": "OPENAI_MODEL",
            "default_model": "gpt-4o-mini",
            "default_base_url": "https://api.openai.com/v1",
        },
    }

    ROUTING_POLICY: Dict[str, Tuple[str, ...]] = {
        "conversation": ("gemini", "openai"),
        "analysis": ("gemini", "openai"),
    }

    def __init__(
        self,
        env: Optional[Mapping[str, str]] = None,
        allowed_providers: Optional[Iterable[str]] = None,
    ) -> None:
        self._env = os.environ if env is None else env
        self._allowed: Optional[Set[str]] = set(allowed_providers) if allowed_providers else None
        preferred = (self._env.get("SMARTDOC_MODEL_PROVIDER") or "").strip().lower()
        self._preferred_provider = preferred if preferred in self.PROVIDER_CONFIG else None

    # ------------------------------------------------------------------
    # Provider resolution helpers
    # ------------------------------------------------------------------
    def _api_key(self, provider: str) -> Tuple[Optional[str], Optional[str]]:
        cfg = self.PROVIDER_CONFIG[provider]
        for env_name in cfg.get("api_key_envs") or ():
            value = (self._env.get(str(env_name)) or "").strip()
            if value:
                return str(env_name), value
        return None, None

    def provider_available(self, provider: str) -> bool:
        if provider not in self.PROVIDER_CONFIG:
            return False
        if self._allowed is not None and provider not in self._allowed:
            return False
        _, key = self._api_key(provider)
        return bool(key)

    def resolve_provider(self, provider: str) -> ProviderSelection:
        """Build the selection for ``provider`` regardless of availability.

        Raises ``KeyError`` for unknown provider names.
        """

        cfg = self.PROVIDER_CONFIG[provider]
        model = self._env.get(str(cfg["model_env"])) or str(cfg["default_model"])
        base_url = self._env.get(str(cfg["base_url_env"])) or str(cfg["default_base_url"])
        key_env, key = self._api_key(provider)
        return ProviderSelection(
            name=provider,
            model=model.strip(),
            api_key_env=key_env or str((cfg.get("api_key_envs") or (None,))[0]),
            base_url=base_url.rstrip("/"),
            api_key=key,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def select_provider(self, purpose: str) -> ProviderSelection:
        """Return the provider selected for the supplied purpose.

        Raises
        ------
        RuntimeError
            If no provider configured for the purpose has credentials.
        """

        priority = list(self.ROUTING_POLICY.get(purpose, self.ROUTING_POLICY["conversation"]))
        if self._preferred_provider:
            priority = [self._preferred_provider] + [p for p in priority if p != self._preferred_provider]
        for provider in priority:
            if self.provider_available(provider):
                return self.resolve_provider(provider)
        raise RuntimeError("No active model provider available for this task.")

    def maybe_select_provider(self, purpose: str) -> Optional[ProviderSelection]:
        """Like :meth:`select_provider` but returns ``None`` on failure."""

        try:
            return self.select_provider(purpose)
        except RuntimeError:
            return None
