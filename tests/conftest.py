import json
import os

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("GEMINI_API_KEY", "test-key")

from app.main import app, get_memory_store, get_model_gateway  # noqa: E402
from characters.core.memory import CharacterMemoryStore  # noqa: E402


DEFAULT_REPLY = json.dumps(
    {
        "text": "أهلاً بك يا صديقي!",
        "emotion": "سعيد",
        "scene": "حديقة القصر",
        "imagePrompt": "Layla smiling in a palace garden",
    },
    ensure_ascii=False,
)


class FakeGateway:
    """Stands in for the Gemini gateway; replays canned responses in order."""

    def __init__(self, responses=None, error=None):
        self.responses = list(responses or [])
        self.error = error
        self.calls = []

    async def generate(self, prompt, api_key=None):
        self.calls.append({"prompt": prompt, "api_key": api_key})
        if self.error is not None:
            raise self.error
        if self.responses:
            return self.responses.pop(0)
        return DEFAULT_REPLY


@pytest.fixture
def store():
    return CharacterMemoryStore()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(store, gateway):
    app.dependency_overrides[get_memory_store] = lambda: store
    app.dependency_overrides[get_model_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def layla():
    return {
        "name": "Layla",
        "personality": "لطيفة وفضولية",
        "story": "أميرة تعيش في قصر قديم",
        "scene": "حديقة القصر",
    }
