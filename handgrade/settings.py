from __future__ import annotations

from typing import Literal

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Project-wide configuration loaded from environment variables (.env optional)."""

    # General settings
    PORT: int = Field(8000, description="HTTP port for the relay server")
    LOG_LEVEL: str = Field("INFO", description="Root log level for Loguru")
    LOG_DIR: str = Field("logs", description="Directory that receives the rotating log files")

    # Hosted model
    MODEL_PROVIDER: Literal["gemini", "ollama"] = Field(
        "gemini", description="Which backend receives the grading request"
    )
    LLM_MODEL: str = Field("gemini-2.5-pro", description="Gemini model identifier")
    GOOGLE_API_KEY: str | None = Field(
        None,
        description="API key for the Gemini API. When unset the SDK falls back to GOOGLE_API_KEY / GEMINI_API_KEY from the environment.",
    )

    # Local model / Ollama
    OLLAMA_BASE_URL: HttpUrl = Field("http://localhost:11434", description="Base URL of the local Ollama server")
    OLLAMA_MODEL: str = Field("llava", description="Vision-capable model name passed to Ollama")

    # Prompts
    PROMPT_HOT_RELOAD: bool = Field(False, description="Reload prompt templates from disk when they change")

    # CLI
    API_URL: HttpUrl = Field(
        "http://localhost:8000/api/completion", description="Relay endpoint used by the command-line client"
    )

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
        "extra": "ignore",
        "env_prefix": "",
    }


settings = Settings()
