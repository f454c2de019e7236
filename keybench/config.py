"""
Configuration

Benchmark settings read from environment variables (and an optional .env file).
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings for a benchmark run."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Database connection
    DB_HOST: str = "postgres"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_NAME: str = "performance_test"
    DB_CONNECT_TIMEOUT: float = Field(60.0, gt=0)

    # Workload
    TOTAL_RECORDS: int = Field(1_000_000, ge=1)
    TEST_ITERATIONS: int = Field(5, ge=1)
    BATCH_SIZE: int = Field(10_000, ge=1)

    # Output
    RESULTS_DIR: str = "results"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "[%(asctime)s] %(levelname)s: %(message)s"
    LOG_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"
    LOG_FILE: Optional[str] = None

    @property
    def dsn_display(self) -> str:
        """Connection target without the password, for logging."""
        return f"{self.DB_USER}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
