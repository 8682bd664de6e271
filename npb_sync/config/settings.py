import logging
from typing import Optional

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    # Supabase Configuration
    supabase_url: HttpUrl = Field(..., description="URL for the Supabase project.")
    supabase_key: str = Field(..., description="Anon key for the Supabase project.")
    supabase_service_key: Optional[str] = Field(
        None, description="Service role key for Supabase (preferred for writes)."
    )

    # SerpApi Configuration
    serpapi_key: str = Field(..., description="API key for SerpApi.")
    serpapi_base_url: str = Field(
        "https://serpapi.com/search.json", description="SerpApi search endpoint."
    )
    request_timeout_seconds: float = Field(
        30.0, gt=0, description="Timeout for a single SerpApi request."
    )

    # Cycle Settings
    timezone: str = Field(
        "Asia/Tokyo", description="Timezone used to resolve the default run date."
    )
    cycle_max_attempts: int = Field(
        1,
        ge=1,
        le=5,
        description="Attempts the one-shot runner makes for a cycle on transport errors.",
    )

    # Cron API
    api_host: str = Field("0.0.0.0", description="Host the cron API binds to.")
    api_port: int = Field(3000, ge=1, le=65535, description="Port the cron API binds to.")

    # Logging Configuration
    log_level: str = Field(
        "INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."
    )

    # Pydantic Settings Configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @property
    def supabase_write_key(self) -> str:
        """Key used for the store: the service role key when present."""
        return self.supabase_service_key or self.supabase_key


def load_settings() -> AppSettings:
    """Loads and validates application settings."""
    try:
        settings = AppSettings()
        log_level_upper = settings.log_level.upper()
        # Validate log_level even if loaded from .env
        if log_level_upper not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            logging.warning(
                f"Invalid LOG_LEVEL '{settings.log_level}' found in .env or default. Using INFO."
            )
            settings.log_level = "INFO"
        else:
            settings.log_level = log_level_upper
        return settings
    except Exception as e:
        logging.exception(f"Error loading application settings: {e}")
        raise SystemExit("Failed to load application settings. Exiting.")


settings: AppSettings = load_settings()
