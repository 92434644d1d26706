"""
Runtime configuration, read from environment variables (or a ``.env`` file).
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SEED_URL = "https://s3.amazonaws.com/roxiler.com/product_transaction.json"


class Settings(BaseSettings):
    # Storage
    data_dir: Path = Field(
        default_factory=lambda: Path.cwd() / ".data", alias="DASHBOARD_DATA_DIR"
    )
    db_path: Path | None = Field(None, alias="DASHBOARD_DB_PATH")

    # Seed feed
    seed_url: str = Field(DEFAULT_SEED_URL, alias="DASHBOARD_SEED_URL")
    seed_timeout: float = Field(30.0, gt=0, alias="DASHBOARD_SEED_TIMEOUT")

    # Month selection; December rolls into reference_year + 1
    reference_year: int = Field(2024, ge=1, le=9998, alias="DASHBOARD_REFERENCE_YEAR")
    default_month: int = Field(3, ge=1, le=12, alias="DASHBOARD_DEFAULT_MONTH")

    # Server
    host: str = Field("127.0.0.1", alias="HOST")
    port: int = Field(5000, ge=1, le=65535, alias="PORT")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @model_validator(mode="after")
    def _default_db_path(self) -> "Settings":
        if self.db_path is None:
            self.db_path = self.data_dir / "transactions.sqlite"
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
