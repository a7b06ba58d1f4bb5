from __future__ import annotations

import logging
from typing import Any, Optional

from langchain_core.messages import HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from config.settings import Settings, get_settings


logger = logging.getLogger(__name__)


class ModelGatewayError(RuntimeError):
    """Raised when the model provider cannot produce a reply."""


def build_llm(settings: Settings, api_key: str) -> ChatGoogleGenerativeAI:
    return ChatGoogleGenerativeAI(
        model=settings.gemini_model,
        google_api_key=api_key,
        temperature=settings.temperature,
        top_p=settings.top_p,
    )


def message_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    parts = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type", "text") == "text":
            parts.append(part.get("text") or "")
    return "".join(parts)


class ModelGateway:
    """Single-prompt access to the Gemini chat model.

    A caller-supplied key builds a client for that call only; otherwise the
    default client, created on first use from settings, is reused. Calls are
    attempted once: provider errors surface as ``ModelGatewayError``.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self._default_llm: Optional[ChatGoogleGenerativeAI] = None

    def _llm_for(self, api_key: Optional[str]) -> ChatGoogleGenerativeAI:
        if api_key:
            return build_llm(self.settings, api_key)
        if self._default_llm is None:
            if not self.settings.google_api_key:
                raise ModelGatewayError(
                    "GEMINI_API_KEY not set. Please configure it in environment or .env"
                )
            self._default_llm = build_llm(self.settings, self.settings.google_api_key)
        return self._default_llm

    async def generate(self, prompt: str, api_key: Optional[str] = None) -> str:
        llm = self._llm_for(api_key)
        logger.info(
            "Model call: model=%s prompt_len=%s custom_key=%s",
            self.settings.gemini_model,
            len(prompt),
            bool(api_key),
        )
        try:
            result = await llm.ainvoke([HumanMessage(content=prompt)])
        except Exception as exc:
            raise ModelGatewayError(f"Model call failed: {exc}") from exc
        text = message_text(result.content)
        logger.info("Model responded with %s chars", len(text))
        return text
