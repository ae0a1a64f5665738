"""Application settings loaded from environment variables and .env file."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PORTVOL_",
        env_file=Path(__file__).resolve().parents[2] / "conf" / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    env_name: str = "dev"
    log_level: str = "INFO"


def get_settings() -> Settings:
    """Get application settings."""

    return Settings()


settings = get_settings()
