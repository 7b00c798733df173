"""Environment-based configuration for the reg/VIN extractor."""

from pathlib import Path

from pydantic_settings import BaseSettings

SERVICE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    """Extractor settings, loaded from environment variables and .env."""

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    # Static frontend (skipped if the directory does not exist)
    PUBLIC_DIR: str = str(SERVICE_DIR / "public")

    # Request bodies carry base64 data URLs
    MAX_BODY_BYTES: int = 50 * 1024 * 1024

    # Upstream inference provider (empty key = misconfigured, reported per request)
    OPENROUTER_API_KEY: str = ""
    OPENROUTER_URL: str = "https://openrouter.ai/api/v1/chat/completions"
    MODEL_ID: str = "anthropic/claude-sonnet-4"
    MAX_TOKENS: int = 1024
    APP_TITLE: str = "Reg/VIN Extractor"

    # Upstream timeouts (no retry)
    UPSTREAM_TIMEOUT_SECONDS: int = 120
    UPSTREAM_CONNECT_TIMEOUT: int = 10

    model_config = {
        "env_prefix": "",
        "case_sensitive": True,
        "env_file": ".env",
        "extra": "ignore",
        "frozen": True,
    }


settings = Settings()
