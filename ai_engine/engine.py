"""
AI Engine - Provider Dispatch
=============================
The public entry point. An AIEngine owns the process-wide state a call
needs (model registry, PII rules and flag, credentials, HTTP transport,
drafts) and routes each call to exactly one provider adapter.

Initialization order: built-in models and PII rules are loaded first,
user extensions from settings are appended after.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .config import EngineSettings, configure_logging, load_settings
from .credentials import CredentialManager, get_credential_manager
from .handlers import resolve_success_strategy
from .host import ActionContext
from .models import (
    DEFAULT_MODEL,
    ConfigurationError,
    ModelRegistry,
    ProviderConfig,
    ProviderKind,
    resolve_provider_config,
)
from .prompts import PromptParams
from .providers import PROVIDERS, BaseProvider, ErrorCallback
from .sanitizer import PIISanitizer, SanitizationRule
from .storage import DraftStorage, DraftWorkspace
from .transport import HTTPTransport, HttpxTransport

logger = logging.getLogger(__name__)

ERROR_PREFIX = "AI Engine Error:"


class AIEngine:
    """
    Dispatches prompts to AI providers.

    Example:
        >>> engine = AIEngine(workspace=DraftWorkspace(DraftStorage()))
        >>> engine.sanitize_pii = True
        >>> engine.call_ai("alter-claude-haiku", {"role": "Editor", "input": text}, "replace")
    """

    def __init__(
        self,
        registry: ModelRegistry | None = None,
        sanitizer: PIISanitizer | None = None,
        sanitize_pii: bool = False,
        credentials: CredentialManager | None = None,
        transport: HTTPTransport | None = None,
        workspace: DraftWorkspace | None = None,
        context: ActionContext | None = None,
        default_model: str = DEFAULT_MODEL,
    ) -> None:
        self.registry = registry if registry is not None else ModelRegistry()
        self.sanitizer = sanitizer if sanitizer is not None else PIISanitizer()
        self.sanitize_pii = sanitize_pii
        self._credentials = credentials
        self.transport = transport or HttpxTransport()
        self._workspace = workspace
        self.context = context or ActionContext()
        self.default_model = default_model
        self._providers: dict[ProviderKind, BaseProvider] = {}

    @classmethod
    def from_settings(cls, settings: EngineSettings, **overrides: Any) -> AIEngine:
        registry = overrides.pop("registry", None)
        if registry is None:
            registry = ModelRegistry()
        sanitizer = overrides.pop("sanitizer", None)
        if sanitizer is None:
            sanitizer = PIISanitizer()
        settings.apply_models(registry)
        settings.apply_pii_patterns(sanitizer)
        overrides.setdefault("transport", HttpxTransport(timeout=settings.timeout))
        overrides.setdefault("sanitize_pii", settings.sanitize_pii)
        overrides.setdefault("default_model", settings.default_model)
        return cls(registry=registry, sanitizer=sanitizer, **overrides)

    @property
    def models(self) -> Mapping[str, ProviderConfig]:
        """Read-only map of model shorthands"""
        return self.registry.models

    @property
    def pii_patterns(self) -> list[SanitizationRule]:
        """The live, ordered PII rule list; appended rules run last"""
        return self.sanitizer.rules

    @property
    def credentials(self) -> CredentialManager:
        if self._credentials is None:
            self._credentials = get_credential_manager()
        return self._credentials

    @property
    def workspace(self) -> DraftWorkspace:
        if self._workspace is None:
            self._workspace = DraftWorkspace(DraftStorage())
        return self._workspace

    def sanitize(self, text: Any) -> Any:
        return self.sanitizer.sanitize(text)

    def _default_error_handler(self, message: str) -> None:
        self.context.fail(f"{ERROR_PREFIX} {message}")

    def _get_provider(self, kind: ProviderKind) -> BaseProvider:
        if kind not in self._providers:
            provider_cls = PROVIDERS.get(kind)
            if provider_cls is None:
                raise ConfigurationError(f'ai-engine: unrecognised provider "{kind}".')
            self._providers[kind] = provider_cls(self.credentials, self.transport)
        return self._providers[kind]

    def call_ai(
        self,
        model: str | ProviderConfig | Mapping[str, Any],
        params: str | PromptParams | Mapping[str, Any] | None = None,
        on_success: Any = None,
        on_error: ErrorCallback | None = None,
    ) -> bool:
        """
        Send a prompt to the provider behind ``model``.

        Args:
            model: A registry shorthand (see ``models``), a ProviderConfig,
                or a mapping with ``endpoint``/``model`` and optionally
                ``provider``.
            params: The user text, or structured fields role, goal, steps,
                output, example and input.
            on_success: "new", "replace", "append", "prepend", "tokens", or
                a callable taking ``(response_text, raw_payload)``.
                Defaults to "new".
            on_error: Called with an error message. Defaults to failing the
                action context.

        Returns:
            True if the response was delivered to the success handler.
        """
        error_handler: ErrorCallback = (
            on_error if callable(on_error) else self._default_error_handler
        )

        try:
            config = resolve_provider_config(model, self.registry)
            prompt = PromptParams.coerce(params)
            strategy = resolve_success_strategy(on_success)
            provider = self._get_provider(config.kind)
            # Last, so a rejected call never opens the draft store.
            success_handler = strategy.callback or strategy.bind(self.workspace)
        except ConfigurationError as e:
            logger.warning(f"Call not dispatched: {e}")
            error_handler(str(e))
            return False

        # Only user input is scrubbed; local models never leave the machine.
        if self.sanitize_pii and not config.kind.is_local:
            prompt = prompt.with_input(self.sanitizer.sanitize(prompt.input))

        return provider.call(config, prompt, success_handler, error_handler)


_engine: AIEngine | None = None


def get_engine() -> AIEngine:
    """
    Get the default engine, built from the user's settings on first use.

    Logging is configured from the ``logging`` settings key when present;
    otherwise the host application's logging setup is left alone.
    """
    global _engine
    if _engine is None:
        settings = load_settings()
        if settings.logging:
            configure_logging(settings)
        _engine = AIEngine.from_settings(settings)
    return _engine


def call_ai(
    model: str | ProviderConfig | Mapping[str, Any],
    params: str | PromptParams | Mapping[str, Any] | None = None,
    on_success: Any = None,
    on_error: ErrorCallback | None = None,
) -> bool:
    """call_ai on the default engine"""
    return get_engine().call_ai(model, params, on_success, on_error)


def sanitize(text: Any) -> Any:
    """Sanitize with the default engine's rules, including user additions"""
    return get_engine().sanitize(text)
