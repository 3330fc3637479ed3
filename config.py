"""Service configuration, all values from environment (or a .env file)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Immutable settings snapshot, built by load_settings()."""

    # AI provider
    ai_provider: str = field(default_factory=lambda: os.getenv("AI_PROVIDER", "gemini").lower())
    gemini_api_key: str = field(default_factory=lambda: os.getenv("GEMINI_API_KEY", ""))
    gemini_model: str = field(default_factory=lambda: os.getenv("GEMINI_MODEL", "gemini-1.5-flash"))
    anthropic_api_key: str = field(default_factory=lambda: os.getenv("ANTHROPIC_API_KEY", ""))
    claude_model: str = field(default_factory=lambda: os.getenv("CLAUDE_MODEL", "claude-sonnet-4-6"))

    # Documents
    business_name: str = field(default_factory=lambda: os.getenv("BUSINESS_NAME", "Orange Business"))
    currency_symbol: str = field(default_factory=lambda: os.getenv("CURRENCY_SYMBOL", "$"))

    # Server
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    app_env: str = field(default_factory=lambda: os.getenv("APP_ENV", "development"))

    @property
    def model(self) -> str:
        if self.ai_provider == "anthropic":
            return self.claude_model
        return self.gemini_model


def load_settings() -> Settings:
    """Read the environment now; later env changes need a fresh call."""
    return Settings()
