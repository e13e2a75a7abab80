from functools import lru_cache
import logging
import sys
from pydantic_settings import BaseSettings, SettingsConfigDict

from static_pages.validators import ValidationError, validate_positive_duration, validate_upstream_url


logger = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing or invalid."""
    pass


class Settings(BaseSettings):
    """Application configuration pulled from environment variables or .env file."""

    # Upstream content sources
    feed_url: str = "https://medium.com/feed/@aptoslabs"
    job_board_url: str = "https://boards-api.greenhouse.io/v1/boards/aptoslabs/jobs?content=true"
    http_timeout_seconds: float = 15.0

    # Content cache
    content_cache_ttl_seconds: float = 3600
    refresh_timeout_seconds: float = 30.0

    # Cache-Control max-age sent with every page
    page_max_age_seconds: int = 3600

    # CORS settings
    # Comma-separated list of allowed origins, or "*" for all (not recommended)
    cors_allowed_origins: str = "http://localhost:5173,http://localhost:3000"

    # Environment (development, staging, production)
    environment: str = "development"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")

    def validate_required(self) -> list[str]:
        """Validate required configuration settings.

        Returns a list of error messages for invalid settings.
        """
        errors: list[str] = []
        warnings: list[str] = []

        for name, url in (("FEED_URL", self.feed_url), ("JOB_BOARD_URL", self.job_board_url)):
            try:
                validate_upstream_url(url)
            except ValidationError as e:
                errors.append(f"{name} is invalid: {e}")

        for name, value in (
            ("HTTP_TIMEOUT_SECONDS", self.http_timeout_seconds),
            ("CONTENT_CACHE_TTL_SECONDS", self.content_cache_ttl_seconds),
            ("REFRESH_TIMEOUT_SECONDS", self.refresh_timeout_seconds),
        ):
            try:
                validate_positive_duration(value, name)
            except ValidationError as e:
                errors.append(str(e))

        if self.page_max_age_seconds < 0:
            errors.append("PAGE_MAX_AGE_SECONDS cannot be negative")

        if self.refresh_timeout_seconds < self.http_timeout_seconds:
            warnings.append(
                "REFRESH_TIMEOUT_SECONDS is shorter than HTTP_TIMEOUT_SECONDS, "
                "slow upstream responses will be abandoned before the request times out"
            )

        # Check CORS settings in production
        if self.environment.lower() == "production" and self.cors_allowed_origins == "*":
            errors.append(
                "CORS_ALLOWED_ORIGINS is set to '*' (allow all) in production. "
                "Set specific allowed origins."
            )

        for warning in warnings:
            logger.warning(f"Config warning: {warning}")

        return errors


def validate_config_on_startup(settings: Settings) -> None:
    """Validate configuration and raise if critical settings are invalid."""
    errors = settings.validate_required()

    if errors:
        logger.error("Configuration validation failed:")
        for error in errors:
            logger.error(f"  - {error}")
        print("\nConfiguration Error:", file=sys.stderr)
        print("The following settings are missing or invalid:", file=sys.stderr)
        for error in errors:
            print(f"  - {error}", file=sys.stderr)
        print("\nPlease check your .env file or environment variables.", file=sys.stderr)
        raise ConfigurationError(f"Configuration validation failed: {'; '.join(errors)}")

    logger.info("Configuration validated successfully")


@lru_cache
def get_settings() -> Settings:
    return Settings()
