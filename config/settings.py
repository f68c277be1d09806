"""
Configuration settings for the workspace task bot.
All sensitive values are loaded from environment variables.
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Workspace Task Bot"
    debug: bool = Field(default=False)
    environment: str = Field(default="production")
    log_level: str = Field(default="INFO")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    webhook_base_url: str = Field(default="")

    # Telegram
    telegram_bot_token: str = Field(default="")
    bot_username: str = Field(default="")
    # Numeric Telegram ID or username of the bot administrator
    admin_telegram_id: str = Field(default="")

    # Database (PostgreSQL)
    database_url: str = Field(default="")
    database_echo: bool = Field(default=False)

    # Redis (empty = keep conversations in process memory)
    redis_url: str = Field(default="")

    # Dates and reminders
    timezone: str = Field(default="Asia/Irkutsk")
    default_deadline_hour: int = Field(default=18)
    reminder_minute: int = Field(default=0)

    # Conversation Settings (0 = dialogs never expire)
    conversation_ttl_seconds: int = Field(default=0)

    # Compact task lists and stats for every user (otherwise chosen per user)
    compact_output: bool = Field(default=False)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the application settings."""
    return settings
