"""Configuration management for ICAS.

Uses pydantic-settings to load configuration from environment variables.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_env_file() -> Path | None:
    """Search for .env file in common locations."""
    # Check current working directory and its parents (up to 5 levels)
    check_dir = Path.cwd()
    for _ in range(6):
        if (check_dir / ".env").exists():
            return check_dir / ".env"
        parent = check_dir.parent
        if parent == check_dir:
            break
        check_dir = parent

    # Check relative to this config file (backend/src/icas/config.py -> project root)
    project_root = Path(__file__).resolve().parent.parent.parent.parent
    if (project_root / ".env").exists():
        return project_root / ".env"

    return None


_env_file = _find_env_file()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(_env_file) if _env_file else ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================
    # Environment
    # =========================
    environment: Literal["development", "staging", "production"] = "development"

    # =========================
    # API Settings
    # =========================
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    cors_origins: str = "http://localhost:9002,http://localhost:3000"

    # =========================
    # LLM Provider
    # =========================
    llm_provider: Literal["openai", "anthropic"] = "openai"
    llm_model: str | None = Field(
        default=None,
        description="Model name; provider default is used when unset",
    )
    openai_api_key: str = Field(default="", repr=False)
    anthropic_api_key: str = Field(default="", repr=False)
    llm_temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    llm_max_tokens: int = Field(default=4000, ge=1)
    llm_timeout_seconds: float | None = Field(
        default=120.0,
        description="Per-call timeout for capability invocations; None disables it",
    )

    # =========================
    # Press Office
    # =========================
    press_office_name: str = "Civil Police Press Office"
    press_office_contact: str = "press@police.example.gov"

    # =========================
    # Case Store
    # =========================
    seed_demo_cases: bool = True

    # =========================
    # Logging
    # =========================
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def effective_llm_model(self) -> str:
        """Model to request from the configured provider."""
        if self.llm_model:
            return self.llm_model
        if self.llm_provider == "anthropic":
            return "claude-3-5-sonnet-latest"
        return "gpt-4o"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
