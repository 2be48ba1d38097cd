"""Application configuration using Pydantic Settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Server
    APP_NAME: str = "StepRunner"
    HOST: str = "127.0.0.1"
    PORT: int = 3000
    STATIC_DIR: str = "static"

    # Durable run log (bracketed-timestamp lines, append-only)
    LOG_FILE: str = "steprunner.log"

    # Registry
    RUN_TTL_SECONDS: float = 600  # entries evicted 10 minutes after completion

    # Browser
    DEFAULT_BROWSER: str = "chromium"
    HEADLESS: bool = True
    VIEWPORT_WIDTH: int = 1280
    VIEWPORT_HEIGHT: int = 800

    # Step execution
    NAVIGATION_TIMEOUT_MS: int = 15000
    ACTION_TIMEOUT_MS: int = 10000
    SCREENSHOT_QUALITY: int = 75

    # Worker
    SHUTDOWN_TIMEOUT: float = 10

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


# Global settings instance
settings = Settings()
