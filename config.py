"""Environment-based configuration for the abstraction service."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Abstraction service settings, loaded from environment variables."""

    # Server
    PORT: int = 8092
    LOG_LEVEL: str = "INFO"

    # Completion service credentials (empty = requests will be rejected upstream)
    API_KEY: str = ""

    # Attribution headers (empty = fall back to the defaults below)
    YOUR_SITE_URL: str = ""
    YOUR_APP_NAME: str = ""

    # Completion endpoint and sampling
    COMPLETIONS_URL: str = "https://openrouter.ai/api/v1/chat/completions"
    MODEL_ID: str = "google/gemma-3-27b-it:free"
    TEMPERATURE: float = 0.0
    SEED: int = 42

    # Completion timeout in seconds (unset = wait indefinitely)
    COMPLETION_TIMEOUT_SECONDS: float | None = None

    model_config = {"env_prefix": "", "case_sensitive": True}


DEFAULT_SITE_URL = "http://localhost:3000"
DEFAULT_APP_NAME = "Clinical Data Extraction"

settings = Settings()
