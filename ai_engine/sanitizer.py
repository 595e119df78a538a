"""
PII Sanitizer
=============
Replaces personally identifiable substrings with labelled placeholders
before text leaves the machine.

Rules run in order; a later rule sees text already rewritten by earlier
ones. Built-in rules are loaded first and user rules are appended after.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SanitizationRule:
    """A compiled pattern and the literal label that replaces its matches"""

    pattern: re.Pattern[str]
    replacement: str

    def apply(self, text: str) -> str:
        # Function replacement keeps the label literal (no backreference expansion).
        return self.pattern.sub(lambda _match: self.replacement, text)


def make_rule(pattern: str | re.Pattern[str], replacement: str, flags: int = 0) -> SanitizationRule:
    if isinstance(pattern, str):
        pattern = re.compile(pattern, flags)
    return SanitizationRule(pattern=pattern, replacement=replacement)


# SSN and card run before phone so their digit groups are not split up.
DEFAULT_PII_PATTERNS: tuple[tuple[str, str, int], ...] = (
    (r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}", "[EMAIL]", 0),
    (r"\b\d{3}-\d{2}-\d{4}\b", "[SSN]", 0),
    (r"\b(?:\d{4}[ -]?){3}\d{4}\b", "[CARD]", 0),
    (r"(?:\+?1[ .-]?)?(?:\(\d{3}\)|\b\d{3})[ .-]?\d{3}[ .-]?\d{4}\b", "[PHONE]", 0),
    (r"\b(?:\d{1,3}\.){3}\d{1,3}\b", "[IP]", 0),
)


def default_rules() -> list[SanitizationRule]:
    return [make_rule(p, r, f) for p, r, f in DEFAULT_PII_PATTERNS]


class PIISanitizer:
    """Ordered, appendable list of sanitization rules"""

    def __init__(self, rules: list[SanitizationRule] | None = None) -> None:
        self.rules: list[SanitizationRule] = default_rules() if rules is None else rules

    def add_rule(
        self, pattern: str | re.Pattern[str], replacement: str, flags: int = 0
    ) -> SanitizationRule:
        """Append a rule; it runs after every rule already present."""
        rule = make_rule(pattern, replacement, flags)
        self.rules.append(rule)
        logger.debug(f"Added PII rule {rule.pattern.pattern!r} -> {replacement}")
        return rule

    def sanitize(self, text: Any) -> Any:
        """Apply every rule in order. Non-string input is returned unchanged."""
        if not isinstance(text, str):
            return text
        for rule in self.rules:
            text = rule.apply(text)
        return text


def sanitize_for_logging(text: str | None, max_len: int = 100) -> str:
    """Truncate and redact text so it is safe to put in a log line"""
    if not text:
        return ""
    sanitized = text[:max_len]
    sanitized = re.sub(
        r"(sk-|api[_-]?key|bearer\s+)[a-zA-Z0-9\-_]{20,}",
        "[REDACTED]",
        sanitized,
        flags=re.IGNORECASE,
    )
    return sanitized + ("..." if len(text) > max_len else "")
