"""Application configuration using Pydantic Settings."""
from __future__ import annotations

import os
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings loaded from ``AIWORKS_``-prefixed environment variables."""

    # LLM
    gemini_api_key: str = ""
    default_model: str = "gemini-2.0-flash"
    llm_timeout: float = 60.0
    llm_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    llm_max_tokens: int = Field(default=4096, gt=0)

    # Workflow execution
    node_timeout: float = Field(default=60.0, gt=0)
    http_timeout: float = Field(default=30.0, gt=0)
    max_nodes: int = Field(default=100, gt=0)
    max_delay_ms: int = Field(default=60_000, ge=0)
    history_limit: int = Field(default=100, ge=0)
    workflow_dir: str = "./workflows"

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"  # "json" for production, "text" for development

    # Server
    cors_origins: str = "http://localhost:3000"
    server_host: str = "0.0.0.0"
    server_port: int = 8000

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def api_key(self) -> str | None:
        """Gemini key, falling back to the GOOGLE_API_KEY used by AI Studio."""
        return self.gemini_api_key or os.environ.get("GOOGLE_API_KEY") or None

    model_config = {"env_prefix": "AIWORKS_", "case_sensitive": False}


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
