"""Application configuration pulled from environment variables via pydantic."""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the prescribed fire weather service."""
    model_config = SettingsConfigDict(env_prefix="RXFIRE_", extra="ignore")

    forecast_source: str = "nws"  # options: nws, file
    grid_file_path: str | None = None
    nws_base_url: str = "https://api.weather.gov"
    nws_user_agent: str = "PrescribedBurnApp/3.0"
    request_timeout_seconds: float = 10.0
    http_cache_seconds: int = 3600
    http_retries: int = 5
    forecast_hours: int = 72
    default_timezone: str = "America/Chicago"
    log_level: str = "INFO"

    @field_validator("nws_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs to avoid double slashes."""
        return str(v).rstrip("/")

    @field_validator("forecast_source", mode="after")
    @classmethod
    def lower_source(cls, v: str) -> str:
        return str(v).strip().lower()


settings = Settings()


if __name__ == "__main__":
    logger.logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4)}")
