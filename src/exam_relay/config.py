"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_EXAM_PROMPT = (
    "Transcribe every piece of text visible in the attached exam images, "
    "in reading order, preserving tables and section headings. "
    "Do not add commentary."
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    gemini_api_key: str
    gemini_model: str = "gemini-1.5-flash-latest"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    upstream_timeout_seconds: float = 60.0
    generation_temperature: float = 0.2
    generation_top_p: float = 0.8
    generation_top_k: int = 40
    retry_max_attempts: int = 3
    retry_delay_seconds: float = 2.0
    state_mode: str = "session"
    prompt_source: str = "caller"
    exam_prompt: str = DEFAULT_EXAM_PROMPT
    max_body_bytes: int = 25 * 1024 * 1024
    cors_allow_origins: str | None = "*"
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_cors_origins(raw: str | None) -> list[str]:
    """Parse allowed CORS origins from env."""
    if raw is None:
        return []
    cleaned = raw.strip()
    if cleaned == "*":
        return ["*"]
    origins: list[str] = []
    for chunk in cleaned.split(","):
        value = chunk.strip()
        if value:
            origins.append(value)
    return origins
