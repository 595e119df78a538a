"""
Secure Credentials Manager for AI Engine
========================================
Resolves provider API keys, prompting the user once per provider and
persisting the answer. Storage backends, in priority order:
1. System keyring (most secure - uses OS credential store)
2. Encrypted file with machine-specific key
3. Environment variables (fallback, read-mostly)

NEVER stores API keys in plain text or in code.
"""

import base64
import getpass
import hashlib
import json
import logging
import os
import sys
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import keyring
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from keyring.errors import KeyringError

logger = logging.getLogger(__name__)

# Constants
SERVICE_NAME = "ai_engine"
CONFIG_DIR = Path.home() / ".ai_engine"
ENCRYPTED_CREDS_FILE = CONFIG_DIR / "credentials.enc"

# Returns the entered secret, or None when the user cancels.
PromptFn = Callable[[str, str], Optional[str]]


@dataclass(frozen=True)
class APICredential:
    """Immutable credential container with secure string handling"""
    provider: str
    _key: str  # Private - never exposed directly

    def get_key(self) -> str:
        logger.debug(f"API key accessed for provider: {self.provider}")
        return self._key

    def __repr__(self) -> str:
        """Prevent accidental key exposure in logs"""
        return f"APICredential(provider={self.provider}, key=****)"

    def __str__(self) -> str:
        return self.__repr__()


class CredentialBackend(ABC):
    """Abstract base class for credential storage backends"""

    @abstractmethod
    def get(self, provider: str) -> Optional[str]:
        """Retrieve API key for provider"""

    @abstractmethod
    def set(self, provider: str, api_key: str) -> bool:
        """Store API key for provider"""

    @abstractmethod
    def delete(self, provider: str) -> bool:
        """Remove API key for provider"""

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Check if this backend is usable on the system"""


class KeyringBackend(CredentialBackend):
    """Uses OS keychain/keyring for secure storage (most secure option)"""

    def __init__(self, service_name: str = SERVICE_NAME):
        self.service_name = service_name
        self._available: Optional[bool] = None

    @property
    def is_available(self) -> bool:
        if self._available is None:
            try:
                keyring.get_password(self.service_name, "__probe__")
                self._available = True
            except KeyringError as e:
                logger.info(f"Keyring unavailable: {e}")
                self._available = False
        return self._available

    def get(self, provider: str) -> Optional[str]:
        if not self.is_available:
            return None
        try:
            return keyring.get_password(self.service_name, provider)
        except KeyringError as e:
            logger.warning(f"Keyring get failed for {provider}: {e}")
            return None

    def set(self, provider: str, api_key: str) -> bool:
        if not self.is_available:
            return False
        try:
            keyring.set_password(self.service_name, provider, api_key)
            logger.info(f"Stored credential in keyring for: {provider}")
            return True
        except KeyringError as e:
            logger.error(f"Keyring set failed for {provider}: {e}")
            return False

    def delete(self, provider: str) -> bool:
        if not self.is_available:
            return False
        try:
            keyring.delete_password(self.service_name, provider)
            return True
        except KeyringError as e:
            logger.warning(f"Keyring delete failed for {provider}: {e}")
            return False


class EncryptedFileBackend(CredentialBackend):
    """Encrypted file storage using machine-specific key derivation"""

    def __init__(self, path: Path = ENCRYPTED_CREDS_FILE):
        self.path = path
        self._fernet: Optional[Fernet] = None
        self._init_encryption()

    @property
    def is_available(self) -> bool:
        return self._fernet is not None

    def _get_machine_id(self) -> bytes:
        """Generate machine-specific identifier for key derivation"""
        identifiers = []

        if sys.platform == "linux":
            try:
                with open("/etc/machine-id", "r") as f:
                    identifiers.append(f.read().strip())
            except OSError:
                pass

        identifiers.extend([
            getpass.getuser(),
            os.uname().nodename if hasattr(os, "uname") else "unknown",
        ])

        combined = ":".join(identifiers)
        return hashlib.sha256(combined.encode()).digest()

    def _init_encryption(self):
        try:
            salt = b"ai_engine_v1"  # Static salt for key derivation
            kdf = PBKDF2HMAC(
                algorithm=hashes.SHA256(),
                length=32,
                salt=salt,
                iterations=480000,  # OWASP recommended minimum
            )
            key = base64.urlsafe_b64encode(kdf.derive(self._get_machine_id()))
            self._fernet = Fernet(key)
            self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to initialize encryption: {e}")
            self._fernet = None

    def _load_credentials(self) -> Dict[str, str]:
        if not self.is_available or not self.path.exists():
            return {}

        try:
            with open(self.path, "rb") as f:
                encrypted = f.read()
            decrypted = self._fernet.decrypt(encrypted)
            return json.loads(decrypted.decode())
        except (OSError, InvalidToken, ValueError) as e:
            logger.error(f"Failed to load credentials: {e}")
            return {}

    def _save_credentials(self, creds: Dict[str, str]) -> bool:
        if not self.is_available:
            return False

        try:
            encrypted = self._fernet.encrypt(json.dumps(creds).encode())

            # Write atomically with restricted permissions
            temp_file = self.path.with_suffix(".tmp")
            with open(temp_file, "wb") as f:
                f.write(encrypted)
            os.chmod(temp_file, 0o600)
            temp_file.replace(self.path)
            return True
        except OSError as e:
            logger.error(f"Failed to save credentials: {e}")
            return False

    def get(self, provider: str) -> Optional[str]:
        return self._load_credentials().get(provider)

    def set(self, provider: str, api_key: str) -> bool:
        creds = self._load_credentials()
        creds[provider] = api_key
        success = self._save_credentials(creds)
        if success:
            logger.info(f"Stored credential in encrypted file for: {provider}")
        return success

    def delete(self, provider: str) -> bool:
        creds = self._load_credentials()
        if provider in creds:
            del creds[provider]
            return self._save_credentials(creds)
        return True


class EnvironmentBackend(CredentialBackend):
    """Environment variable fallback (least secure, but always available)"""

    ENV_VAR_MAP = {
        "alterhq api": "ALTERHQ_API_KEY",
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
    }

    @property
    def is_available(self) -> bool:
        return True

    def _get_env_var(self, provider: str) -> str:
        return self.ENV_VAR_MAP.get(
            provider.lower(),
            f"{provider.upper().replace(' ', '_')}_API_KEY",
        )

    def get(self, provider: str) -> Optional[str]:
        return os.environ.get(self._get_env_var(provider))

    def set(self, provider: str, api_key: str) -> bool:
        # Can't persistently set environment variables
        os.environ[self._get_env_var(provider)] = api_key
        logger.warning(f"Set API key in environment (non-persistent) for: {provider}")
        return True

    def delete(self, provider: str) -> bool:
        os.environ.pop(self._get_env_var(provider), None)
        return True


def prompt_for_secret(provider_id: str, display_label: str) -> Optional[str]:
    """Ask for a secret on the terminal. Cancelling returns None."""
    if not sys.stdin or not sys.stdin.isatty():
        logger.warning(f"Cannot prompt for {display_label}: stdin is not a terminal")
        return None
    try:
        value = getpass.getpass(f"{display_label}: ")
    except (EOFError, KeyboardInterrupt):
        return None
    return value.strip() or None


class CredentialManager:
    """
    Credential manager with fallback chain:
    1. System keyring (most secure)
    2. Encrypted file (secure, portable)
    3. Environment variables (fallback)

    A missing key is requested from the user once and stored in the first
    secure backend, so later calls for the same provider do not prompt again.
    """

    def __init__(
        self,
        backends: Optional[List[CredentialBackend]] = None,
        prompt: PromptFn = prompt_for_secret,
    ):
        if backends is None:
            backends = [KeyringBackend(), EncryptedFileBackend(), EnvironmentBackend()]
        self._backends = backends
        self._prompt = prompt
        self._cache: Dict[str, APICredential] = {}

    def get_credential(self, provider: str) -> Optional[APICredential]:
        """Retrieve a stored credential, checking backends in priority order."""
        if provider in self._cache:
            return self._cache[provider]

        for backend in self._backends:
            if not backend.is_available:
                continue

            api_key = backend.get(provider)
            if api_key:
                credential = APICredential(provider=provider, _key=api_key)
                self._cache[provider] = credential
                logger.debug(
                    f"Retrieved credential for {provider} from {type(backend).__name__}"
                )
                return credential

        return None

    def set_credential(self, provider: str, api_key: str) -> bool:
        """Store API credential in the most secure available backend."""
        if not api_key:
            logger.error("Invalid API key: empty")
            return False

        self._cache.pop(provider, None)
        for backend in self._backends:
            if backend.is_available and not isinstance(backend, EnvironmentBackend):
                if backend.set(provider, api_key):
                    return True

        for backend in self._backends:
            if isinstance(backend, EnvironmentBackend):
                return backend.set(provider, api_key)
        return False

    def delete_credential(self, provider: str) -> bool:
        """Remove credential from all backends"""
        self._cache.pop(provider, None)

        success = True
        for backend in self._backends:
            if backend.is_available:
                success = backend.delete(provider) and success
        return success

    def resolve_secret(self, provider_id: str, display_label: str) -> Optional[str]:
        """
        Return the API key for ``provider_id``, prompting for it if none is
        stored yet. Returns None if the user cancels the prompt.
        """
        credential = self.get_credential(provider_id)
        if credential is not None:
            return credential.get_key()

        logger.info(f"No stored credential for {provider_id}; requesting {display_label}")
        api_key = self._prompt(provider_id, display_label)
        if not api_key:
            logger.warning(f"Credential request cancelled for: {provider_id}")
            return None

        if not self.set_credential(provider_id, api_key):
            logger.warning(f"Could not persist credential for: {provider_id}")
        self._cache[provider_id] = APICredential(provider=provider_id, _key=api_key)
        return api_key

    def clear_cache(self):
        self._cache.clear()


_manager: Optional[CredentialManager] = None


def get_credential_manager() -> CredentialManager:
    """Get the global credential manager instance"""
    global _manager
    if _manager is None:
        _manager = CredentialManager()
    return _manager
