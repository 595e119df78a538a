"""
User configuration and logging setup.

Settings live in ``~/.ai_engine/config.json``. Every key is optional:

    {
        "defaultModel": "alter-claude-haiku",
        "sanitizePII": true,
        "timeout": 120,
        "logging": {"level": "INFO", "file": "~/ai_engine.log"},
        "models": {
            "local-phi3": {"provider": "ollama", "model": "phi3"}
        },
        "piiPatterns": [
            {"pattern": "\\bEMP-\\d{5,8}\\b", "replacement": "[EMPLOYEE_ID]", "ignoreCase": true}
        ]
    }
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .credentials import CONFIG_DIR
from .models import DEFAULT_MODEL, ConfigurationError, ModelRegistry, config_from_mapping
from .sanitizer import PIISanitizer
from .transport import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

CONFIG_FILE = CONFIG_DIR / "config.json"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class EngineSettings:
    default_model: str = DEFAULT_MODEL
    sanitize_pii: bool = False
    timeout: float = DEFAULT_TIMEOUT
    logging: dict[str, Any] = field(default_factory=lambda: {})
    models: dict[str, dict[str, Any]] = field(default_factory=lambda: {})
    pii_patterns: list[dict[str, Any]] = field(default_factory=lambda: [])

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EngineSettings:
        settings = cls()
        if isinstance(data.get("defaultModel"), str):
            settings.default_model = data["defaultModel"]
        if isinstance(data.get("sanitizePII"), bool):
            settings.sanitize_pii = data["sanitizePII"]
        if isinstance(data.get("timeout"), (int, float)) and data["timeout"] > 0:
            settings.timeout = float(data["timeout"])
        if isinstance(data.get("logging"), dict):
            settings.logging = data["logging"]
        if isinstance(data.get("models"), dict):
            settings.models = {
                k: v for k, v in data["models"].items() if isinstance(v, dict)
            }
        if isinstance(data.get("piiPatterns"), list):
            settings.pii_patterns = [p for p in data["piiPatterns"] if isinstance(p, dict)]
        return settings

    def apply_models(self, registry: ModelRegistry) -> None:
        """Register user-defined shorthands after the built-ins."""
        for key, entry in self.models.items():
            try:
                registry.register(key, config_from_mapping(entry))
            except ConfigurationError as e:
                logger.warning(f"Skipping model '{key}' from config: {e}")

    def apply_pii_patterns(self, sanitizer: PIISanitizer) -> None:
        """Append user-defined PII rules after the built-ins."""
        for entry in self.pii_patterns:
            pattern = entry.get("pattern")
            replacement = entry.get("replacement")
            if not isinstance(pattern, str) or not isinstance(replacement, str):
                logger.warning(f"Skipping malformed PII pattern entry: {entry}")
                continue
            flags = re.IGNORECASE if entry.get("ignoreCase") else 0
            try:
                sanitizer.add_rule(pattern, replacement, flags)
            except re.error as e:
                logger.warning(f"Skipping invalid PII pattern {pattern!r}: {e}")


def load_settings(path: Path | None = None) -> EngineSettings:
    """Load settings from disk, falling back to defaults."""
    config_path = path or CONFIG_FILE
    if not config_path.exists():
        return EngineSettings()

    try:
        with config_path.open("r", encoding="utf-8") as config_file:
            loaded = json.load(config_file)
    except (OSError, ValueError) as exc:
        logger.warning(f"Failed to load config from {config_path}: {exc}")
        return EngineSettings()

    if not isinstance(loaded, dict):
        logger.warning(f"Config file {config_path} did not contain an object.")
        return EngineSettings()

    return EngineSettings.from_dict(loaded)


def configure_logging(settings: EngineSettings, verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO

    log_config = settings.logging
    if not verbose and "level" in log_config:
        level_name = str(log_config["level"]).upper()
        level = getattr(logging, level_name, logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    log_file = log_config.get("file")
    if log_file:
        try:
            expanded_path = os.path.expanduser(log_file)
            handlers.append(logging.FileHandler(expanded_path, encoding="utf-8"))
        except OSError as e:
            # Fallback to console only if file setup fails
            logger.warning(f"Failed to setup log file {log_file}: {e}")

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
