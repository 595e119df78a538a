"""
Provider Adapters
=================
One adapter per upstream wire protocol. Each adapter builds its own request
payload type, performs exactly one HTTP exchange and decodes the provider's
response envelope into plain text.

Failures are reported through ``on_error``; nothing raised while talking to
the provider escapes ``call``.
"""

from __future__ import annotations

import json
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .credentials import CredentialManager
from .models import ProviderConfig, ProviderKind
from .prompts import PromptParams, build_system_prompt
from .sanitizer import sanitize_for_logging
from .transport import HTTPTransport

logger = logging.getLogger(__name__)

SuccessCallback = Callable[[str, Any], None]
ErrorCallback = Callable[[str], None]

ANTHROPIC_VERSION = "2023-06-01"
ANTHROPIC_MAX_TOKENS = 4096

# Errors a malformed-but-successful response can produce while decoding
DECODE_ERRORS = (ValueError, KeyError, IndexError, TypeError, AttributeError)


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str

    def to_json(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ChatCompletionRequest:
    """OpenAI-style chat completion body (AlterHQ and OpenAI)"""

    model: str
    messages: tuple[ChatMessage, ...]

    def to_json(self) -> dict[str, Any]:
        return {"model": self.model, "messages": [m.to_json() for m in self.messages]}


@dataclass(frozen=True)
class AnthropicMessagesRequest:
    """Anthropic Messages body: the system prompt is a top-level field"""

    model: str
    system: str
    messages: tuple[ChatMessage, ...]
    max_tokens: int = ANTHROPIC_MAX_TOKENS

    def to_json(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": self.system,
            "messages": [m.to_json() for m in self.messages],
        }


@dataclass(frozen=True)
class OllamaChatRequest:
    """Ollama /api/chat body, always non-streaming"""

    model: str
    messages: tuple[ChatMessage, ...]
    stream: bool = field(default=False, init=False)

    def to_json(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "stream": self.stream,
            "messages": [m.to_json() for m in self.messages],
        }


def _system_and_user(params: PromptParams) -> tuple[ChatMessage, ...]:
    return (
        ChatMessage("system", build_system_prompt(params)),
        ChatMessage("user", params.input or ""),
    )


class BaseProvider(ABC):
    """Abstract base class for provider adapters"""

    #: Credential store id and prompt label; None means no credential needed.
    credential_id: str | None = None
    credential_label: str | None = None

    def __init__(self, credentials: CredentialManager, transport: HTTPTransport):
        self.credentials = credentials
        self.transport = transport

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    def build_request(self, config: ProviderConfig, params: PromptParams) -> Any:
        """Return the provider-specific payload object"""

    @abstractmethod
    def url(self, config: ProviderConfig) -> str:
        pass

    @abstractmethod
    def headers(self, api_key: str | None) -> dict[str, str]:
        pass

    @abstractmethod
    def extract_text(self, payload: Any) -> str:
        """Pull the response text out of the decoded envelope"""

    def call(
        self,
        config: ProviderConfig,
        params: PromptParams,
        on_success: SuccessCallback,
        on_error: ErrorCallback,
    ) -> bool:
        """Send one request. Returns True if ``on_success`` was invoked."""
        api_key: str | None = None
        if self.credential_id is not None:
            api_key = self.credentials.resolve_secret(
                self.credential_id, self.credential_label or self.credential_id
            )
            if not api_key:
                on_error(f"{self.provider_name}: failed to retrieve API key.")
                return False

        request = self.build_request(config, params)
        url = self.url(config)
        logger.info(f"Calling {self.provider_name} model {config.model}")
        start_time = time.time()
        response = self.transport.post(url, self.headers(api_key), request.to_json())
        latency = (time.time() - start_time) * 1000

        if not response.success:
            logger.warning(
                f"{self.provider_name} returned {response.status_code} after {latency:.0f}ms: "
                f"{sanitize_for_logging(response.response_text)}"
            )
            on_error(
                f"{self.provider_name} API error {response.status_code}: {response.response_text}"
            )
            return False

        try:
            payload = json.loads(response.response_text)
            text = self.extract_text(payload)
        except DECODE_ERRORS as e:
            logger.error(f"{self.provider_name} response could not be decoded: {e!r}")
            on_error(f"{self.provider_name}: failed to parse response: {e!r}")
            return False

        logger.debug(f"{self.provider_name} responded in {latency:.0f}ms")
        on_success(text, payload)
        return True


class ChatCompletionsProvider(BaseProvider):
    """Shared behaviour for the OpenAI-compatible chat completions surface"""

    def build_request(self, config: ProviderConfig, params: PromptParams) -> ChatCompletionRequest:
        return ChatCompletionRequest(model=config.model, messages=_system_and_user(params))

    def url(self, config: ProviderConfig) -> str:
        return f"{config.base_url}/chat/completions"

    def headers(self, api_key: str | None) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }

    def extract_text(self, payload: Any) -> str:
        content = payload["choices"][0]["message"]["content"]
        if not isinstance(content, str):
            raise TypeError(f"expected message content string, got {type(content).__name__}")
        return content


class AlterHQProvider(ChatCompletionsProvider):
    """
    AlterHQ routing proxy.

    The model string is a "Vendor#model-id" tag the proxy uses to pick the
    real backend; it is sent unchanged.
    """

    credential_id = "AlterHQ API"
    credential_label = "AlterHQ API Key"

    @property
    def provider_name(self) -> str:
        return "AlterHQ"


class OpenAIProvider(ChatCompletionsProvider):
    """OpenAI and OpenAI-compatible endpoints"""

    credential_id = "openai"
    credential_label = "OpenAI API Key"

    @property
    def provider_name(self) -> str:
        return "OpenAI"


class AnthropicProvider(BaseProvider):
    """Anthropic Messages API"""

    credential_id = "anthropic"
    credential_label = "Anthropic API Key"

    @property
    def provider_name(self) -> str:
        return "Anthropic"

    def build_request(self, config: ProviderConfig, params: PromptParams) -> AnthropicMessagesRequest:
        return AnthropicMessagesRequest(
            model=config.model,
            system=build_system_prompt(params),
            messages=(ChatMessage("user", params.input or ""),),
        )

    def url(self, config: ProviderConfig) -> str:
        return f"{config.base_url}/v1/messages"

    def headers(self, api_key: str | None) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": api_key or "",
            "anthropic-version": ANTHROPIC_VERSION,
        }

    def extract_text(self, payload: Any) -> str:
        text = payload["content"][0]["text"]
        if not isinstance(text, str):
            raise TypeError(f"expected content text string, got {type(text).__name__}")
        return text


class OllamaProvider(BaseProvider):
    """Ollama local model provider; no API key"""

    @property
    def provider_name(self) -> str:
        return "Ollama"

    def build_request(self, config: ProviderConfig, params: PromptParams) -> OllamaChatRequest:
        return OllamaChatRequest(model=config.model, messages=_system_and_user(params))

    def url(self, config: ProviderConfig) -> str:
        return f"{config.base_url}/api/chat"

    def headers(self, api_key: str | None) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    def extract_text(self, payload: Any) -> str:
        content = payload["message"]["content"]
        if not isinstance(content, str):
            raise TypeError(f"expected message content string, got {type(content).__name__}")
        return content


PROVIDERS: dict[ProviderKind, type[BaseProvider]] = {
    ProviderKind.ALTERHQ: AlterHQProvider,
    ProviderKind.OPENAI: OpenAIProvider,
    ProviderKind.ANTHROPIC: AnthropicProvider,
    ProviderKind.OLLAMA: OllamaProvider,
}
