"""Action context: how a running action reports failure to its host."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class ActionContext:
    """Collects failures signalled by the action currently running."""

    failed: bool = False
    messages: list[str] = field(default_factory=lambda: [])

    def fail(self, message: str) -> None:
        logger.error(message)
        self.failed = True
        self.messages.append(message)
