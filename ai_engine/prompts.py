"""
Prompt parameters and system prompt assembly.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from typing import Any

from .models import ConfigurationError

logger = logging.getLogger(__name__)

# (label, field) in the order they appear in the system prompt
SECTIONS: tuple[tuple[str, str], ...] = (
    ("Role", "role"),
    ("Goal", "goal"),
    ("Instructions", "steps"),
    ("Output Format", "output"),
    ("Example", "example"),
)


@dataclass(frozen=True)
class PromptParams:
    """Structured prompt for a single call"""

    role: str | None = None
    goal: str | None = None
    steps: str | None = None
    output: str | None = None
    example: str | None = None
    input: str = ""

    @classmethod
    def coerce(cls, value: Any) -> PromptParams:
        """
        Normalize caller input: a bare string becomes the user input.

        A mapping contributes only the known fields; other keys are ignored.
        """
        if value is None:
            return cls()
        if isinstance(value, PromptParams):
            return value
        if isinstance(value, str):
            return cls(input=value)
        if isinstance(value, Mapping):
            known = {f.name for f in fields(cls)}
            extra = sorted(str(k) for k in value if k not in known)
            if extra:
                logger.debug(f"Ignoring extra prompt field(s): {', '.join(extra)}")
            data = {k: v for k, v in value.items() if k in known}
            if data.get("input") is None:
                data["input"] = ""
            return cls(**data)
        raise ConfigurationError(
            f"ai-engine: prompt must be a string or mapping, got {type(value).__name__}"
        )

    def with_input(self, text: str) -> PromptParams:
        return replace(self, input=text)


def build_system_prompt(params: PromptParams) -> str:
    """
    Assemble the system prompt from the structured fields.

    Each non-blank field becomes a ``# Label`` heading followed by its trimmed
    value; sections are separated by one blank line. The user ``input`` is
    never part of the system prompt.
    """
    parts: list[str] = []
    for label, name in SECTIONS:
        value = getattr(params, name)
        if not isinstance(value, str) or not value.strip():
            continue
        parts.append(f"# {label}\n{value.strip()}")
    return "\n\n".join(parts)
