import asyncio
from types import SimpleNamespace

import pytest

import characters.gateway as gateway_module
from characters.gateway import ModelGateway, ModelGatewayError, message_text
from config.settings import Settings


class FakeLLM:
    instances = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.prompts = []
        self.error = None
        self.content = "رد"
        FakeLLM.instances.append(self)

    async def ainvoke(self, messages):
        self.prompts.append(messages[0].content)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=self.content)


@pytest.fixture
def fake_llm(monkeypatch):
    FakeLLM.instances = []
    monkeypatch.setattr(gateway_module, "ChatGoogleGenerativeAI", FakeLLM)
    return FakeLLM


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "default-key")
    monkeypatch.setenv("GEMINI_MODEL", "gemini-test")
    return Settings()


def test_generate_uses_default_key(fake_llm, settings):
    gateway = ModelGateway(settings)
    assert asyncio.run(gateway.generate("hello")) == "رد"
    assert asyncio.run(gateway.generate("again")) == "رد"

    assert len(fake_llm.instances) == 1
    llm = fake_llm.instances[0]
    assert llm.kwargs["google_api_key"] == "default-key"
    assert llm.kwargs["model"] == "gemini-test"
    assert llm.prompts == ["hello", "again"]


def test_generate_prefers_caller_key(fake_llm, settings):
    gateway = ModelGateway(settings)
    asyncio.run(gateway.generate("hello", api_key="user-key"))

    assert fake_llm.instances[0].kwargs["google_api_key"] == "user-key"


def test_missing_default_key(fake_llm, monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    gateway = ModelGateway(Settings())

    with pytest.raises(ModelGatewayError):
        asyncio.run(gateway.generate("hello"))
    assert fake_llm.instances == []


def test_provider_errors_are_wrapped(fake_llm, settings):
    gateway = ModelGateway(settings)
    gateway._llm_for(None).error = ConnectionError("network down")

    with pytest.raises(ModelGatewayError) as excinfo:
        asyncio.run(gateway.generate("hello"))
    assert isinstance(excinfo.value.__cause__, ConnectionError)


def test_message_text_joins_parts():
    assert message_text("plain") == "plain"
    assert message_text(["a", {"type": "text", "text": "b"}, {"type": "image_url"}]) == "ab"
    assert message_text(None) == ""
