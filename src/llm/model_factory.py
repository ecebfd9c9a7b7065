"""Vision chat model construction for the analyzer.

Building a model may query the local Ollama daemon over HTTP, which blocks;
async callers should build through ``asyncio.to_thread``.
"""

import json
import time
from abc import ABC, abstractmethod
from typing import Any
from urllib import request

from src.config.logger import get_logger
from src.config.settings import settings

_logger = get_logger(__name__)

# How long a fetched Ollama model list is trusted before asking again.
_PULLED_MODELS_TTL = 30.0


class BaseModelProvider(ABC):
    """One backend able to serve vision chat models."""

    name: str = "base"

    @abstractmethod
    def is_available(self, agent_key: str, model: str) -> bool:
        """Whether `model` can be served for `agent_key` right now."""

    @abstractmethod
    def create(self, agent_key: str, model: str, temperature: float, num_ctx: int) -> Any:
        """Return a langchain chat model bound to `model`."""


class OpenAIProvider(BaseModelProvider):
    """DashScope or any other OpenAI-compatible endpoint with an API key."""

    name = "openai"

    def is_available(self, agent_key: str, model: str) -> bool:
        return settings.has_openai_like_creds(agent_key)

    def create(self, agent_key: str, model: str, temperature: float, num_ctx: int) -> Any:
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=model,
            api_key=settings.get_agent_api_key(agent_key),
            base_url=settings.get_agent_base_url(agent_key, provider_hint=self.name),
            temperature=temperature,
            max_retries=1,
        )


class OllamaProvider(BaseModelProvider):
    name = "ollama"

    def __init__(self) -> None:
        self._pulled: dict[str, tuple[float, frozenset[str]]] = {}

    def _base_url(self, agent_key: str) -> str:
        return settings.get_agent_base_url(agent_key, provider_hint=self.name).rstrip("/")

    def pulled_models(self, base_url: str) -> frozenset[str]:
        """Lowercased model tags the daemon at `base_url` has pulled; empty when unreachable."""
        cached = self._pulled.get(base_url)
        now = time.monotonic()
        if cached and now - cached[0] < _PULLED_MODELS_TTL:
            return cached[1]

        try:
            with request.urlopen(f"{base_url}/api/tags", timeout=1.5) as resp:
                payload = json.loads(resp.read().decode("utf-8"))
        except (OSError, ValueError) as exc:
            _logger.debug("[model] ollama at %s unreachable: %s", base_url, exc)
            names: frozenset[str] = frozenset()
        else:
            names = frozenset(
                (item.get("name", "") or "").strip().lower()
                for item in payload.get("models", [])
            )
        self._pulled[base_url] = (now, names)
        return names

    def is_available(self, agent_key: str, model: str) -> bool:
        wanted = (model or "").strip().lower()
        if not wanted:
            return False
        names = self.pulled_models(self._base_url(agent_key))
        return wanted in names or (":" not in wanted and f"{wanted}:latest" in names)

    def create(self, agent_key: str, model: str, temperature: float, num_ctx: int) -> Any:
        from langchain_ollama import ChatOllama

        return ChatOllama(
            model=model,
            base_url=self._base_url(agent_key),
            temperature=temperature,
            num_ctx=num_ctx,
        )


class ModelFactory:
    """Provider registry with per-agent resolution."""

    def __init__(self) -> None:
        self.providers: dict[str, BaseModelProvider] = {
            OpenAIProvider.name: OpenAIProvider(),
            OllamaProvider.name: OllamaProvider(),
        }

    def resolve_provider(self, agent_key: str, model: str) -> BaseModelProvider | None:
        """Pick the provider for `model`; None when auto mode finds nothing usable."""
        provider_name = settings.get_agent_provider(agent_key).lower()
        if provider_name and provider_name != "auto":
            provider = self.providers.get(provider_name)
            if provider is None:
                raise ValueError(f"Unknown provider: {provider_name}")
            return provider

        # Auto: a locally pulled Ollama model first, then any OpenAI-compatible endpoint.
        for name in (OllamaProvider.name, OpenAIProvider.name):
            if self.providers[name].is_available(agent_key, model):
                return self.providers[name]
        return None

    def create_chat_model(
        self,
        agent_key: str,
        default_model: str,
        temperature: float,
        num_ctx: int,
        model: str = "",
    ) -> Any | None:
        # An explicit model name wins over the per-agent setting.
        model = (model or "").strip() or settings.get_agent_model(agent_key, default_model)
        provider = self.resolve_provider(agent_key, model)
        if provider is None:
            _logger.warning("[model] no provider can serve %s model %s", agent_key, model)
            return None
        _logger.debug("[model] agent=%s provider=%s model=%s", agent_key, provider.name, model)
        return provider.create(
            agent_key=agent_key,
            model=model,
            temperature=temperature,
            num_ctx=num_ctx,
        )


_FACTORY = ModelFactory()


def get_chat_model(
    agent_key: str,
    default_model: str = "qwen-vl-max",
    temperature: float = 0.3,
    num_ctx: int = 8192,
    model: str = "",
) -> Any | None:
    """Build a chat model, or None when no provider can serve it."""
    try:
        return _FACTORY.create_chat_model(
            agent_key=agent_key,
            default_model=default_model,
            temperature=temperature,
            num_ctx=num_ctx,
            model=model,
        )
    except Exception as exc:
        _logger.warning("[model] cannot build %s model %s: %s", agent_key, model or default_model, exc)
        return None
