"""Application settings and configuration."""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Telegram Bot
    telegram_bot_token: str = Field(..., min_length=1)
    telegram_parse_mode: Optional[str] = "Markdown"

    # Imzo AI backend
    imzo_api_base: str = "https://imzo-ai.uzjoylar.uz"
    imzo_chat_room_id: str = Field(..., min_length=1)

    # Polling gateway (falls back to imzo_api_base)
    gateway_base: Optional[str] = None
    gateway_auth_bearer: Optional[str] = None

    # Timings, seconds
    poll_interval_seconds: float = Field(default=3.0, gt=0)
    poll_timeout_seconds: float = Field(default=120.0, gt=0)
    http_timeout_seconds: float = Field(default=20.0, gt=0)

    # Monitoring
    log_level: str = "INFO"
    log_json: bool = False

    @property
    def poll_base_url(self) -> str:
        """Base URL used for the final-answer polling endpoint."""
        if self.gateway_base and self.gateway_base.strip():
            return self.gateway_base.strip()
        return self.imzo_api_base

    @property
    def poll_auth_override(self) -> Optional[str]:
        """Static Authorization header for polling, if configured."""
        if self.gateway_auth_bearer and self.gateway_auth_bearer.strip():
            return self.gateway_auth_bearer.strip()
        return None

    @property
    def parse_mode(self) -> Optional[str]:
        """Outbound parse mode, None for plain text."""
        if self.telegram_parse_mode and self.telegram_parse_mode.strip():
            return self.telegram_parse_mode.strip()
        return None


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
