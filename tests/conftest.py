"""Shared fakes for the HTTP transport, credential store and drafts."""

import json

import pytest

from ai_engine.credentials import CredentialBackend, CredentialManager
from ai_engine.engine import AIEngine
from ai_engine.host import ActionContext
from ai_engine.storage import DraftStorage, DraftWorkspace
from ai_engine.transport import HTTPResponse


class FakeTransport:
    """Records every POST and answers with a canned response."""

    def __init__(self, response=None):
        self.response = response or HTTPResponse(True, 200, "{}")
        self.requests = []

    def post(self, url, headers, data):
        self.requests.append({"url": url, "headers": headers, "data": data})
        return self.response

    def respond_json(self, payload, status_code=200):
        self.response = HTTPResponse(True, status_code, json.dumps(payload))


class MemoryBackend(CredentialBackend):
    def __init__(self, values=None):
        self.values = dict(values or {})

    @property
    def is_available(self):
        return True

    def get(self, provider):
        return self.values.get(provider)

    def set(self, provider, api_key):
        self.values[provider] = api_key
        return True

    def delete(self, provider):
        self.values.pop(provider, None)
        return True


class RecordingPrompt:
    """Credential prompt that answers from a fixed value and counts calls."""

    def __init__(self, answer="test-api-key-123"):
        self.answer = answer
        self.calls = []

    def __call__(self, provider_id, display_label):
        self.calls.append((provider_id, display_label))
        return self.answer


CHAT_RESPONSE = {"choices": [{"message": {"role": "assistant", "content": "Hello from chat"}}]}
ANTHROPIC_RESPONSE = {"content": [{"type": "text", "text": "Hello from Claude"}]}
OLLAMA_RESPONSE = {"message": {"role": "assistant", "content": "Hello from Ollama"}}


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def prompt():
    return RecordingPrompt()


@pytest.fixture
def credentials(prompt):
    return CredentialManager(backends=[MemoryBackend()], prompt=prompt)


@pytest.fixture
def workspace(tmp_path):
    storage = DraftStorage(db_path=tmp_path / "drafts.db")
    current = storage.create("original content")
    current.update()
    return DraftWorkspace(storage=storage, current=current)


@pytest.fixture
def engine(transport, credentials, workspace):
    return AIEngine(
        credentials=credentials,
        transport=transport,
        workspace=workspace,
        context=ActionContext(),
    )


class Recorder:
    """Collects success and error callbacks."""

    def __init__(self):
        self.successes = []
        self.errors = []

    def on_success(self, text, raw):
        self.successes.append((text, raw))

    def on_error(self, message):
        self.errors.append(message)


@pytest.fixture
def recorder():
    return Recorder()
