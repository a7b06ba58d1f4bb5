from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


logger = logging.getLogger(__name__)

NEUTRAL_EMOTION = "محايد"
EMOTIONS = ("سعيد", "حزين", "غاضب", "متفاجئ", NEUTRAL_EMOTION)

DEFAULT_CHARACTER_NAME = "شخصية جديدة"
DEFAULT_PERSONALITY = "ذكي، مرح، طموح"
DEFAULT_SCENE = "مكان مناسب"

_FENCE_RE = re.compile(r"```json|```")


@dataclass(frozen=True)
class Structured:
    """Model output that decoded into a JSON object."""

    fields: Dict[str, Any]
    raw: str


@dataclass(frozen=True)
class Raw:
    """Model output that could not be decoded; kept verbatim."""

    text: str


ParseResult = Union[Structured, Raw]


def _join_parts(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return "، ".join(str(item) for item in value)
    return value


class ChatReply(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    emotion: str = NEUTRAL_EMOTION
    scene: str
    image_prompt: str = Field(..., alias="imagePrompt")

    @field_validator("emotion", mode="before")
    @classmethod
    def _normalize_emotion(cls, value: Any) -> str:
        if isinstance(value, str) and value.strip() in EMOTIONS:
            return value.strip()
        return NEUTRAL_EMOTION


class GeneratedCharacter(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    story: str
    personality: str
    scene: str
    image_prompt: str = Field(..., alias="imagePrompt")
    image: Optional[str] = None

    @field_validator("story", "personality", "scene", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> Any:
        return _join_parts(value)


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def extract_json_segment(text: str) -> Optional[str]:
    start = text.find("{")
    if start == -1:
        return None
    stack = 0
    in_string = False
    escaped = False
    for idx in range(start, len(text)):
        ch = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            stack += 1
        elif ch == "}":
            stack -= 1
            if stack == 0:
                return text[start: idx + 1]
    return None


def parse_model_output(text: Any) -> ParseResult:
    raw = text if isinstance(text, str) else str(text)
    cleaned = strip_code_fences(raw)
    # json.loads also raises ValueError on oversized ints and RecursionError on deep nesting
    try:
        decoded = json.loads(cleaned)
    except (ValueError, RecursionError):
        segment = extract_json_segment(cleaned)
        if not segment:
            return Raw(raw)
        try:
            decoded = json.loads(segment)
        except (ValueError, RecursionError):
            return Raw(raw)
    if not isinstance(decoded, dict):
        return Raw(raw)
    return Structured(fields=decoded, raw=raw)


def _present(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


def to_chat_reply(result: ParseResult, name: str, scene: str) -> ChatReply:
    """Build the chat reply for ``result``, falling back to the raw text.

    Missing structured fields take the same defaults as the fallback, so a
    partial JSON reply still yields a complete shape.
    """
    raw = result.raw if isinstance(result, Structured) else result.text
    defaults = {
        "text": raw,
        "emotion": NEUTRAL_EMOTION,
        "scene": scene,
        "imagePrompt": f"{name} in {scene}",
    }
    if isinstance(result, Structured):
        try:
            return ChatReply.model_validate({**defaults, **_present(result.fields)})
        except ValidationError as exc:
            logger.warning("Structured chat reply rejected, using raw text: %s", exc.error_count())
    return ChatReply.model_validate(defaults)


def to_generated_character(result: ParseResult, name: Optional[str] = None) -> GeneratedCharacter:
    raw = result.raw if isinstance(result, Structured) else result.text
    defaults = {
        "name": name or DEFAULT_CHARACTER_NAME,
        "story": raw,
        "personality": DEFAULT_PERSONALITY,
        "scene": DEFAULT_SCENE,
        "imagePrompt": f"{name or 'character'} portrait",
    }
    if isinstance(result, Structured):
        fields = _present(result.fields)
        fields.pop("image", None)
        try:
            return GeneratedCharacter.model_validate({**defaults, **fields})
        except ValidationError as exc:
            logger.warning("Structured character rejected, using raw text: %s", exc.error_count())
    return GeneratedCharacter.model_validate(defaults)
