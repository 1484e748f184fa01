import logging
import sys

from pydantic_settings import BaseSettings
from typing import Optional


PRODUCTION_API_URL = "https://kaiz-api-213334506754.us-central1.run.app"


def setup_logging(level: str = "INFO"):
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # Set third-party loggers to WARNING to reduce noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


class Settings(BaseSettings):
    # Backend location
    api_url: str = PRODUCTION_API_URL
    stream_path: str = "/api/v1/command-center/smart-input/stream"
    fallback_path: str = "/api/v1/command-center/smart-input"

    # Credential used by SettingsTokenProvider (normally injected by the app)
    access_token: Optional[str] = None

    # Timeout settings (seconds)
    connect_timeout: float = 10.0
    request_timeout: float = 120.0
    # Deadline for each stream read; None disables it
    read_timeout: Optional[float] = None

    log_level: str = "INFO"

    class Config:
        env_prefix = "KAIZ_"
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()

# Initialize logging on import
setup_logging(settings.log_level)
