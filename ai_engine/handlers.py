"""
Success handlers
================
Built-in strategies for applying a model response to drafts, plus the
resolution of the caller's ``on_success`` argument into a concrete strategy.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .models import ConfigurationError
from .providers import SuccessCallback
from .storage import Draft, DraftWorkspace

logger = logging.getLogger(__name__)


TITLE_TAG = "ai_title"
CONTENT_TAG = "ai_content"
MAX_TITLE_LENGTH = 80


class SuccessKeyword(Enum):
    NEW = "new"
    REPLACE = "replace"
    APPEND = "append"
    PREPEND = "prepend"
    TOKENS = "tokens"

    @property
    def needs_current_draft(self) -> bool:
        return self is not SuccessKeyword.NEW


def create_new_draft(workspace: DraftWorkspace, text: str) -> Draft:
    draft = workspace.create_draft()
    draft.content = text
    draft.update()
    logger.info(f"Created draft {draft.id} from AI response")
    return draft


def replace_current(draft: Draft, text: str) -> None:
    draft.content = text
    draft.update()


def append_to_current(draft: Draft, text: str) -> None:
    draft.content = f"{draft.content}\n{text}"
    draft.update()


def prepend_to_current(draft: Draft, text: str) -> None:
    draft.content = f"{text}\n{draft.content}"
    draft.update()


def response_title(text: str) -> str:
    """First line of the response, cut to MAX_TITLE_LENGTH characters"""
    first_line = text.split("\n", 1)[0]
    return first_line[:MAX_TITLE_LENGTH]


def set_response_tokens(draft: Draft, text: str) -> None:
    draft.set_template_tag(TITLE_TAG, response_title(text))
    draft.set_template_tag(CONTENT_TAG, text)
    draft.update()


_DRAFT_HANDLERS: dict[SuccessKeyword, Callable[[Draft, str], None]] = {
    SuccessKeyword.REPLACE: replace_current,
    SuccessKeyword.APPEND: append_to_current,
    SuccessKeyword.PREPEND: prepend_to_current,
    SuccessKeyword.TOKENS: set_response_tokens,
}


@dataclass(frozen=True)
class SuccessStrategy:
    """Either a built-in keyword strategy or a caller-supplied callback"""

    keyword: SuccessKeyword | None = None
    callback: SuccessCallback | None = None

    def bind(self, workspace: DraftWorkspace) -> SuccessCallback:
        """Produce the concrete ``(text, raw)`` callback for this call."""
        if self.callback is not None:
            return self.callback

        keyword = self.keyword or SuccessKeyword.NEW
        if keyword is SuccessKeyword.NEW:
            return lambda text, _raw: create_new_draft(workspace, text)

        draft = workspace.current
        if draft is None:
            raise ConfigurationError(
                f'ai-engine: success keyword "{keyword.value}" needs a current draft.'
            )
        handler = _DRAFT_HANDLERS[keyword]
        return lambda text, _raw: handler(draft, text)


def resolve_success_strategy(spec: Any) -> SuccessStrategy:
    """
    Resolve ``on_success`` as passed to call_ai.

    A keyword string selects a built-in strategy, a callable is used as-is,
    and anything else falls back to creating a new draft.
    """
    if isinstance(spec, SuccessKeyword):
        return SuccessStrategy(keyword=spec)
    if isinstance(spec, str):
        try:
            return SuccessStrategy(keyword=SuccessKeyword(spec))
        except ValueError:
            valid = ", ".join(k.value for k in SuccessKeyword)
            raise ConfigurationError(
                f'ai-engine: unknown success keyword "{spec}". Valid keywords: {valid}'
            ) from None
    if callable(spec):
        return SuccessStrategy(callback=spec)
    return SuccessStrategy(keyword=SuccessKeyword.NEW)
