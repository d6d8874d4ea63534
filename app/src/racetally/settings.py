"""Application settings modeled via Pydantic."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings
from sqlalchemy.engine import make_url

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "groq": "meta-llama/llama-4-scout-17b-16e-instruct",
    "gemini": "gemini-2.0-flash",
}


class Settings(BaseSettings):
    database_url: str = Field("sqlite:///./data/racetally.db", alias="DATABASE_URL")
    ai_provider: str = Field("groq", alias="AI_PROVIDER")
    ai_ocr_model: str | None = Field(None, alias="AI_OCR_MODEL")
    ai_ocr_timeout: float = Field(60.0, alias="AI_OCR_TIMEOUT")
    openai_api_key: str | None = Field(None, alias="OPENAI_API_KEY")
    groq_api_key: str | None = Field(None, alias="GROQ_API_KEY")
    gemini_api_key: str | None = Field(None, alias="GEMINI_API_KEY")
    gemini_api_keys: list[str] = Field(default_factory=list, alias="GEMINI_API_KEYS")
    keep_score_on_restart: bool = Field(True, alias="KEEP_SCORE_ON_RESTART")
    show_remaining_races: bool = Field(True, alias="SHOW_REMAINING_RACES")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def gemini_keys(self) -> list[str]:
        """Primary Gemini key first, then the extra keys, without blanks or repeats."""
        keys = [self.gemini_api_key, *self.gemini_api_keys]
        return list(dict.fromkeys(key for key in keys if key))

    @property
    def resolved_model(self) -> str:
        return self.ai_ocr_model or DEFAULT_MODELS.get(self.ai_provider, DEFAULT_MODELS["openai"])


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()


def ensure_data_dir() -> None:
    """Create the parent directory for sqlite databases when needed."""
    if not settings.database_url.startswith("sqlite"):
        return
    url = make_url(settings.database_url)
    if not url.database or url.database == ":memory:":
        return
    Path(url.database).parent.mkdir(parents=True, exist_ok=True)
