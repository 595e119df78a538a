"""
Model Registry
==============
Fixed table of model shorthands and the provider configuration each one
resolves to, plus the helpers that turn a caller-supplied model spec into a
concrete ProviderConfig.

Shorthands are chosen by hand: a vendor prefix, a model family and a tier,
e.g. ``alter-claude-haiku`` or ``ollama-llama3``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "alter-claude-haiku"


class ConfigurationError(ValueError):
    """Raised when a call cannot be dispatched because of bad caller input."""


class ProviderKind(Enum):
    """The four upstream wire protocols the engine can speak"""

    ALTERHQ = "alter"  # routing proxy, OpenAI-compatible surface
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"  # local inference, no credential

    @property
    def is_local(self) -> bool:
        return self is ProviderKind.OLLAMA

    @classmethod
    def from_name(cls, name: str) -> ProviderKind | None:
        normalized = name.strip().lower()
        for kind in cls:
            if normalized in (kind.value, kind.name.lower()):
                return kind
        return None


# Used when an ad-hoc config omits the endpoint or the model.
DEFAULT_ENDPOINTS: dict[ProviderKind, str] = {
    ProviderKind.ALTERHQ: "https://alterhq.com/api",
    ProviderKind.OPENAI: "https://api.openai.com/v1",
    ProviderKind.ANTHROPIC: "https://api.anthropic.com",
    ProviderKind.OLLAMA: "http://localhost:11434",
}

DEFAULT_UPSTREAM_MODELS: dict[ProviderKind, str] = {
    ProviderKind.ALTERHQ: "OpenAI#gpt-4o",
    ProviderKind.OPENAI: "gpt-4o",
    ProviderKind.ANTHROPIC: "claude-opus-4-6",
    ProviderKind.OLLAMA: "llama3",
}


@dataclass(frozen=True)
class ProviderConfig:
    """Immutable provider configuration resolved for a single call"""

    kind: ProviderKind
    endpoint: str
    model: str

    @property
    def base_url(self) -> str:
        return self.endpoint.rstrip("/")


def _alter(model: str) -> ProviderConfig:
    # AlterHQ routes on the "Vendor#model-id" tag; it is passed through as-is.
    return ProviderConfig(ProviderKind.ALTERHQ, DEFAULT_ENDPOINTS[ProviderKind.ALTERHQ], model)


def _anthropic(model: str) -> ProviderConfig:
    return ProviderConfig(ProviderKind.ANTHROPIC, DEFAULT_ENDPOINTS[ProviderKind.ANTHROPIC], model)


def _openai(model: str) -> ProviderConfig:
    return ProviderConfig(ProviderKind.OPENAI, DEFAULT_ENDPOINTS[ProviderKind.OPENAI], model)


def _ollama(model: str) -> ProviderConfig:
    return ProviderConfig(ProviderKind.OLLAMA, DEFAULT_ENDPOINTS[ProviderKind.OLLAMA], model)


BUILTIN_MODELS: dict[str, ProviderConfig] = {
    # AlterHQ - OpenAI models
    "alter-openai-4o": _alter("OpenAI#gpt-4o"),
    "alter-openai-4o-mini": _alter("OpenAI#gpt-4o-mini"),
    "alter-openai-o1": _alter("OpenAI#o1"),
    "alter-openai-o3": _alter("OpenAI#o3"),
    "alter-openai-o3-mini": _alter("OpenAI#o3-mini"),
    # AlterHQ - Claude models
    "alter-claude-opus": _alter("Claude#Claude-3-Opus-20240229"),
    "alter-claude-sonnet": _alter("Claude#Claude-3-5-Sonnet-20240620"),
    "alter-claude-37-sonnet": _alter("Claude#Claude-3-7-Sonnet-20250219"),
    "alter-claude-haiku": _alter("Claude#Claude-3-5-Haiku-20241022"),
    # AlterHQ - Gemini models
    "alter-gemini-pro": _alter("Gemini#gemini-1.5-pro"),
    "alter-gemini-15-flash": _alter("Gemini#gemini-1.5-flash"),
    "alter-gemini-fast": _alter("Gemini#gemini-2.0-flash"),
    "alter-gemini-25-pro": _alter("Gemini#gemini-2.5-pro"),
    # AlterHQ - Mistral models
    "alter-mistral-large": _alter("Mistral#mistral-large-latest"),
    "alter-mistral-small": _alter("Mistral#mistral-small-latest"),
    "alter-codestral": _alter("Mistral#codestral-latest"),
    "alter-pixtral": _alter("Mistral#pixtral-large-latest"),
    # Anthropic - direct API
    "anthropic-opus": _anthropic("claude-opus-4-6"),
    "anthropic-sonnet": _anthropic("claude-sonnet-4-6"),
    "anthropic-haiku": _anthropic("claude-haiku-4-5-20251001"),
    # OpenAI - direct API
    "openai-5-mini": _openai("gpt-4o"),
    "openai-5-nano": _openai("gpt-4o-mini"),
    # Ollama - local inference
    "ollama-llama3": _ollama("llama3"),
    "ollama-mistral": _ollama("mistral"),
}


def detect_provider(endpoint: str | None) -> ProviderKind | None:
    """
    Infer the provider kind from an endpoint URL.

    Any non-empty endpoint that matches none of the known hosts is treated
    as OpenAI-compatible, which covers self-hosted compatible servers.
    Returns None only when there is no endpoint to inspect.
    """
    if not endpoint:
        return None
    url = endpoint.lower()
    if "alterhq.com" in url:
        return ProviderKind.ALTERHQ
    if "openai.com" in url:
        return ProviderKind.OPENAI
    if "anthropic.com" in url:
        return ProviderKind.ANTHROPIC
    if "localhost" in url or "127.0.0.1" in url or "ollama" in url:
        return ProviderKind.OLLAMA
    logger.debug(f"No known provider for endpoint {endpoint!r}; assuming OpenAI-compatible")
    return ProviderKind.OPENAI


class ModelRegistry:
    """Registry of model shorthands and their provider configurations"""

    def __init__(self, models: Mapping[str, ProviderConfig] | None = None) -> None:
        self._models: dict[str, ProviderConfig] = dict(
            BUILTIN_MODELS if models is None else models
        )

    def __contains__(self, key: object) -> bool:
        return key in self._models

    def __iter__(self) -> Iterator[str]:
        return iter(self._models)

    def __len__(self) -> int:
        return len(self._models)

    @property
    def models(self) -> Mapping[str, ProviderConfig]:
        """Read-only view of the registered shorthands"""
        return MappingProxyType(self._models)

    def get_model(self, key: str) -> ProviderConfig | None:
        return self._models.get(key)

    def register(self, key: str, config: ProviderConfig) -> None:
        """Add or replace a shorthand. Intended for load-time extension only."""
        if key in self._models:
            logger.info(f"Overriding built-in model shorthand: {key}")
        self._models[key] = config

    def unknown_model_message(self, key: str) -> str:
        available = ", ".join(self._models)
        return f'ai-engine: unknown model "{key}". Available: {available}'


def config_from_mapping(data: Mapping[str, Any]) -> ProviderConfig:
    """
    Build a ProviderConfig from an ad-hoc mapping such as
    ``{"provider": "ollama", "endpoint": "http://localhost:11434", "model": "phi3"}``.

    The kind comes from an explicit ``provider``/``kind`` field when present,
    otherwise from the endpoint.
    """
    endpoint = data.get("endpoint") or ""
    if not isinstance(endpoint, str):
        raise ConfigurationError("ai-engine: config endpoint must be a string.")

    explicit = data.get("provider", data.get("kind"))
    kind: ProviderKind | None
    if isinstance(explicit, ProviderKind):
        kind = explicit
    elif isinstance(explicit, str) and explicit.strip():
        kind = ProviderKind.from_name(explicit)
        if kind is None:
            raise ConfigurationError(f'ai-engine: unrecognised provider "{explicit}".')
    else:
        kind = detect_provider(endpoint)

    if kind is None:
        raise ConfigurationError(
            "ai-engine: a valid model shorthand or config object with an endpoint is required."
        )

    model = data.get("model") or DEFAULT_UPSTREAM_MODELS[kind]
    return ProviderConfig(
        kind=kind,
        endpoint=endpoint or DEFAULT_ENDPOINTS[kind],
        model=str(model),
    )


def resolve_provider_config(spec: Any, registry: ModelRegistry) -> ProviderConfig:
    """Resolve a shorthand, ProviderConfig or mapping into a ProviderConfig"""
    if isinstance(spec, str):
        config = registry.get_model(spec)
        if config is None:
            raise ConfigurationError(registry.unknown_model_message(spec))
        return config
    if isinstance(spec, ProviderConfig):
        return spec
    if isinstance(spec, Mapping):
        return config_from_mapping(spec)
    raise ConfigurationError(
        "ai-engine: a valid model shorthand or config object with an endpoint is required."
    )
