"""
MyAsset settings, read from the environment and an optional .env file.
"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Record store location, ledger defaults, assistant backends and monitor schedule."""

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    # Record store
    database_url: str = "sqlite:///my_asset.db"
    db_echo: bool = False

    # Currency partition shown before the user picks one
    default_currency: str = "MYR"

    # Chat assistant: OpenAI-compatible endpoint
    openai_api_key: Optional[str] = None
    openai_model: Optional[str] = None
    openai_base_url: Optional[str] = None

    # Chat assistant: local Ollama server
    local_model: str = "qwen2.5:14b"
    local_llm_url: str = "http://localhost:11434/v1"
    chat_temperature: float = 0.7

    log_level: str = "INFO"
    # Hour of day for the fixed deposit maturity sweep
    maturity_check_hour: int = 6

    @property
    def is_openai_configured(self) -> bool:
        """True when the assistant can start in cloud mode without sidebar input."""
        return bool(self.openai_api_key and self.openai_model)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Re-read the environment, e.g. after a test points DATABASE_URL elsewhere."""
    global _settings
    _settings = Settings()
    return _settings
