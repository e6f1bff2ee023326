"""Configuration management for the Vello template builder."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Draft storage
    database_url: str = "sqlite:///./vello_drafts.db"
    draft_expiry_hours: int = 24

    # History
    history_limit: int = 50

    # Canvas
    grid_size: float = 10.0
    snap_to_grid: bool = False
    snap_threshold: float = 5.0
    align_margin: float = 20.0
    distribute_gap: float = 10.0

    # Debounced side effects
    text_debounce_seconds: float = 0.3
    autosave_debounce_seconds: float = 1.0

    # Logging
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Normalize log level to uppercase."""
        return v.upper()


settings = Settings()
