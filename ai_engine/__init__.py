"""
AI Engine - Multi-Provider Prompt Dispatch
==========================================

Send text to an LLM and do something with the answer, without knowing each
provider's request format, authentication scheme or key handling.

Supported providers:
- AlterHQ routing proxy (OpenAI, Claude, Gemini and Mistral families)
- OpenAI and OpenAI-compatible endpoints
- Anthropic
- Ollama (local, no API key)

Example Usage:
    >>> from ai_engine import AIEngine, DraftStorage, DraftWorkspace
    >>>
    >>> workspace = DraftWorkspace(DraftStorage())
    >>> workspace.current = workspace.create_draft()
    >>> workspace.current.content = "notes from today's meeting ..."
    >>>
    >>> engine = AIEngine(workspace=workspace, sanitize_pii=True)
    >>> engine.call_ai("alter-claude-haiku", {
    ...     "role": "You are a professional editor.",
    ...     "goal": "Improve the writing quality of the text.",
    ...     "input": workspace.current.content,
    ... }, "replace")
"""

__version__ = "1.0.0"

from .engine import AIEngine, call_ai, get_engine, sanitize
from .handlers import SuccessKeyword, SuccessStrategy
from .host import ActionContext
from .models import (
    DEFAULT_MODEL,
    ConfigurationError,
    ModelRegistry,
    ProviderConfig,
    ProviderKind,
    detect_provider,
)
from .prompts import PromptParams, build_system_prompt
from .sanitizer import PIISanitizer, SanitizationRule
from .storage import Draft, DraftStorage, DraftWorkspace

__all__ = [
    # Version
    "__version__",

    # Dispatch
    "AIEngine",
    "call_ai",
    "get_engine",
    "SuccessKeyword",
    "SuccessStrategy",
    "ActionContext",

    # Models
    "DEFAULT_MODEL",
    "ConfigurationError",
    "ModelRegistry",
    "ProviderConfig",
    "ProviderKind",
    "detect_provider",

    # Prompts and PII
    "PromptParams",
    "build_system_prompt",
    "PIISanitizer",
    "SanitizationRule",
    "sanitize",

    # Drafts
    "Draft",
    "DraftStorage",
    "DraftWorkspace",
]
