from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import quote

from config.settings import get_settings


logger = logging.getLogger(__name__)

MAX_PROMPT_CHARS = 50
# characters left unescaped by JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_uri_component(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def resolve_image(prompt: Any, base_url: Optional[str] = None) -> Optional[str]:
    """Return a placeholder image URL captioned with the start of ``prompt``.

    No image is generated; the placeholder service renders the text. Returns
    ``None`` when the prompt cannot be turned into a caption.
    """
    if not isinstance(prompt, str):
        logger.warning("Image reference skipped for non-text prompt: %r", type(prompt))
        return None
    base = base_url or get_settings().placeholder_image_url
    try:
        encoded = encode_uri_component(prompt[:MAX_PROMPT_CHARS])
    except UnicodeEncodeError as exc:
        logger.warning("Image reference could not be resolved: %s", exc)
        return None
    return f"{base}?text={encoded}"


def avatar_url(name: str, base_url: Optional[str] = None) -> str:
    base = base_url or get_settings().avatar_url
    return f"{base}?seed={encode_uri_component(name)}"
