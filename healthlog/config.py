"""
Runtime settings for the health log, read from the environment (and `.env`).

Sections are pydantic models so bad values fail at startup rather than on
the first save. Credentials are not configuration: they are entered at
login and remembered in the local preference store.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

# Load environment variables from .env file
load_dotenv()

DEFAULT_BASE_URL = "https://api.jsonbin.io/v3/b"


class RemoteConfig(BaseModel):
    """Document store (jsonbin.io style) endpoint settings."""

    base_url: str = Field(default=DEFAULT_BASE_URL, description="Base URL of the bin API")
    timeout_seconds: float = Field(default=10.0, gt=0.0, description="HTTP request timeout")

    @field_validator("base_url")
    def validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        return v.rstrip("/")


class StoreConfig(BaseModel):
    """Application data store behaviour."""

    save_debounce_seconds: float = Field(
        default=2.0, gt=0.0, description="Quiet period before a remote save fires"
    )
    default_medications: list[str] = Field(
        default_factory=lambda: ["Medicina A", "Medicina B"],
        description="Catalog installed for a brand new bundle",
    )


class PreferencesConfig(BaseModel):
    """Local preference store settings."""

    path: Path = Field(
        default_factory=lambda: Path.home() / ".healthlog" / "preferences.json",
        description="JSON file holding locally remembered values",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    preferences: PreferencesConfig = Field(default_factory=PreferencesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    remote_config = RemoteConfig(
        base_url=os.getenv("JSONBIN_BASE_URL", DEFAULT_BASE_URL),
        timeout_seconds=float(os.getenv("JSONBIN_TIMEOUT_SECONDS", "10.0")),
    )

    store_config = StoreConfig(
        save_debounce_seconds=float(os.getenv("SAVE_DEBOUNCE_SECONDS", "2.0")),
    )

    preferences_path = os.getenv("HEALTHLOG_PREFERENCES_PATH")
    preferences_config = (
        PreferencesConfig(path=Path(preferences_path).expanduser())
        if preferences_path
        else PreferencesConfig()
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "WARNING")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        remote=remote_config,
        store=store_config,
        preferences=preferences_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


def validate_config() -> None:
    """Validate configuration at startup."""
    try:
        config = get_config()
        print(f"Configuration loaded for {config.environment} environment")
    except Exception as e:
        print(f"Configuration validation failed: {e}")
        raise


def print_config_summary() -> None:
    """Print configuration summary for debugging."""
    config = get_config()

    print("\nCONFIGURATION SUMMARY")
    print(f"Environment: {config.environment}")
    print(f"Debug Mode: {config.debug}")
    print(f"Log Level: {config.logging.level}")

    print("\nDOCUMENT STORE")
    print(f"Base URL: {config.remote.base_url}")
    print(f"Timeout: {config.remote.timeout_seconds}s")

    print("\nDATA STORE")
    print(f"Save Debounce: {config.store.save_debounce_seconds}s")
    print(f"Preferences File: {config.preferences.path}")


if __name__ == "__main__":
    validate_config()
    print_config_summary()
