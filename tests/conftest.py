"""
Core pytest configuration and fixtures for consolechat testing.

SDK clients are never created here: adapters receive a `client_factory` that
hands back MagicMock clients shaped like the OpenAI and google-genai ones.
"""

from types import SimpleNamespace
from typing import Dict, List
from unittest.mock import MagicMock

import pytest
from consolechat.config import Settings
from consolechat.dispatch import Dispatcher
from consolechat.llm import Gemini, OpenAI
from consolechat.models import ASSISTANT_ROLE, SYSTEM_ROLE, USER_ROLE
from consolechat.store import InMemory

# ===== RESPONSE BUILDERS =====


def openai_completion(text: str, completion_id: str = "chatcmpl-123"):
    """Object shaped like a ChatCompletion."""
    return SimpleNamespace(
        id=completion_id,
        choices=[SimpleNamespace(message=SimpleNamespace(content=text))],
    )


def openai_chunk(text):
    """Object shaped like a ChatCompletionChunk."""
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=text))])


def gemini_response(text: str, response_id=None):
    """Object shaped like a GenerateContentResponse."""
    return SimpleNamespace(text=text, response_id=response_id)


class FakeStream:
    """Iterable of chunks that records whether it was closed."""

    def __init__(self, chunks, fail_after=None, error=None):
        self._chunks = list(chunks)
        self._fail_after = fail_after
        self._error = error or RuntimeError("connection reset")
        self.closed = False
        self.pulled = 0

    def __iter__(self):
        for index, chunk in enumerate(self._chunks):
            if self._fail_after is not None and index >= self._fail_after:
                raise self._error
            self.pulled += 1
            yield chunk
        if self._fail_after is not None and self._fail_after >= len(self._chunks):
            raise self._error

    def close(self):
        self.closed = True


# ===== TEST DATA FIXTURES =====


@pytest.fixture
def sample_messages() -> List[Dict]:
    """A short conversation as the UI would send it."""
    return [
        {"id": "1", "role": USER_ROLE, "content": "Hello, how are you?"},
        {"id": "2", "role": ASSISTANT_ROLE, "content": "Doing well. How can I help?"},
        {"id": "3", "role": USER_ROLE, "content": "Explain quantum computing."},
    ]


@pytest.fixture
def system_led_messages() -> List[Dict]:
    return [
        {"role": SYSTEM_ROLE, "content": "x"},
        {"role": ASSISTANT_ROLE, "content": "y"},
        {"role": USER_ROLE, "content": "z"},
    ]


# ===== CONFIGURATION FIXTURES =====


@pytest.fixture
def settings(monkeypatch):
    """Settings built from a clean environment."""
    for name in (
        "CONSOLE_CHAT_REQUEST_TIMEOUT",
        "CONSOLE_CHAT_MAX_OUTPUT_TOKENS",
        "CONSOLE_CHAT_MAX_RETRIES",
        "CONSOLE_CHAT_OPENAI_ENV_FALLBACK",
        "CONSOLE_CHAT_STORE_DIR",
        "OPENAI_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    return Settings()


# ===== MOCK CLIENT FIXTURES =====


@pytest.fixture
def openai_client():
    """MagicMock shaped like openai.OpenAI."""
    client = MagicMock()
    client.chat.completions.create.return_value = openai_completion("Hi there!")
    return client


@pytest.fixture
def gemini_client():
    """MagicMock shaped like google.genai.Client."""
    client = MagicMock()
    client.models.generate_content.return_value = gemini_response("single-shot reply")
    chat = client.chats.create.return_value
    chat.send_message.return_value = gemini_response("session reply")
    return client


@pytest.fixture
def client_calls():
    """Records the (api_key, timeout) of every client the factories build."""
    return []


@pytest.fixture
def openai_adapter(settings, openai_client, client_calls):
    def factory(api_key, timeout):
        client_calls.append((api_key, timeout))
        return openai_client

    return OpenAI(settings, client_factory=factory)


@pytest.fixture
def gemini_adapter(settings, gemini_client, client_calls):
    def factory(api_key, timeout):
        client_calls.append((api_key, timeout))
        return gemini_client

    return Gemini(settings, client_factory=factory)


@pytest.fixture
def dispatcher(settings, openai_adapter, gemini_adapter):
    return Dispatcher(openai=openai_adapter, gemini=gemini_adapter, settings=settings)


# ===== APP FIXTURES =====


@pytest.fixture
def test_app(settings, dispatcher):
    """
    A ConsoleChat app wired to mocked SDK clients and an in-memory store.
    """
    from consolechat import ConsoleChat

    return ConsoleChat(dispatcher=dispatcher, store=InMemory(), settings=settings)


@pytest.fixture
def http(test_app):
    """Flask test client for the JSON API."""
    return test_app.server.test_client()


# ===== CONFIGURATION =====


def pytest_configure(config):
    """Pytest configuration."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on location."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
