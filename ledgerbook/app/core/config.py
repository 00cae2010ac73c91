from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./ledgerbook.db"
    DB_ECHO: bool = False
    # Pool sizing applies to server databases only; SQLite uses its own pool
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    SQLITE_BUSY_TIMEOUT: float = 30.0

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"  # "console" or "json"

    # Attempts at committing an entry when the sequence number collides
    SEQUENCE_RETRY_ATTEMPTS: int = 3

    # Upper bound for report generation over the API, unset = no limit
    REPORT_TIMEOUT_SECONDS: float | None = None

    DEFAULT_PRINCIPAL: str = "system"
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]


settings = Settings()
