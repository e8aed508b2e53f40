# config.py
"""
Settings for the contact extractor, loaded from the environment or a .env file.

OPENAI_API_KEY is read here and nowhere else; the OpenAI client is built
from these settings and handed to the extractor explicitly.
"""
import logging
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    # OpenAI
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_timeout: float = 60.0      # seconds, per request
    openai_max_retries: int = 2       # SDK retries with backoff

    # Export
    csv_filename: str = "extracted_contacts.csv"
    copy_feedback_seconds: float = 2.0

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=Path(__file__).parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # the SDK's http client is chatty at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
