"""
Application configuration using Pydantic Settings
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Console settings with environment variable support"""

    # Backend
    API_BASE_URL: str = "http://localhost:8080"
    API_PREFIX: str = "/api/v1"
    REQUEST_TIMEOUT: float = 15.0  # uploads go through the same client

    # Retries apply to idempotent GET requests only
    MAX_RETRIES: int = 3
    RETRY_DELAY: float = 1.0

    # Session
    CREDENTIAL_STORE_PATH: str = "~/.txmatch/credentials.json"
    TOKEN_CHECK_INTERVAL_SECONDS: int = 60
    TOKEN_REFRESH_THRESHOLD_SECONDS: int = 300
    LOGIN_PATH: str = "/login"

    # Views
    SEARCH_DEBOUNCE_SECONDS: float = 0.5
    DEFAULT_PAGE_SIZE: int = 10

    # Import wizard
    DEFAULT_DATE_FORMAT: str = "2006-01-02"
    WIZARD_AUTO_ADVANCE: bool = True

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
