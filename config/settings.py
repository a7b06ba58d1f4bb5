from __future__ import annotations

import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv


load_dotenv()


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here.
    """

    def __init__(self) -> None:
        self.app_env: str = os.getenv("APP_ENV", "development")
        self.host: str = os.getenv("HOST", "0.0.0.0")
        self.port: int = int(os.getenv("PORT", "3000"))
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

        self.google_api_key: Optional[str] = (
            os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or None
        )
        self.gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
        self.temperature: float = float(os.getenv("MODEL_TEMPERATURE", "0.7"))
        self.top_p: float = float(os.getenv("MODEL_TOP_P", "0.9"))

        self.static_dir: str = os.getenv("STATIC_DIR", "public")
        self.cors_origins: List[str] = _split_csv(os.getenv("CORS_ORIGINS", "*"))

        self.memory_max_turns: int = int(os.getenv("MEMORY_MAX_TURNS", "50"))
        # 0 keeps every character for the process lifetime
        self.memory_max_characters: int = int(os.getenv("MEMORY_MAX_CHARACTERS", "0"))
        if self.memory_max_turns < 1:
            raise ValueError("MEMORY_MAX_TURNS must be at least 1")
        if self.memory_max_characters < 0:
            raise ValueError("MEMORY_MAX_CHARACTERS must not be negative")

        self.placeholder_image_url: str = os.getenv(
            "PLACEHOLDER_IMAGE_URL", "https://placehold.co/400x300/7C3AED/FFFFFF"
        )
        self.avatar_url: str = os.getenv(
            "AVATAR_URL", "https://api.dicebear.com/7.x/avataaars-neutral/svg"
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
