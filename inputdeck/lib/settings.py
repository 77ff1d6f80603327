"""Environment-based settings for a Deck.

Values are read once when a ``Deck`` is constructed and stay fixed for the
life of that deck.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["DeckSettings"]


class DeckSettings(BaseSettings):
    """Deck settings using pydantic-settings.

    Automatically loads from environment variables with INPUTDECK_ prefix.

    Example:
        >>> # INPUTDECK_DOCS_ENABLED=false
        >>> # INPUTDECK_LOG_FORMAT=json
        >>> settings = DeckSettings()
        >>> settings.docs_enabled
        False
    """

    docs_enabled: bool = Field(default=True, description="Retain descriptions and allow writing schema docs")
    expand_env: bool = Field(default=False, description="Expand ${VAR} references in YAML string values")
    env_file: Optional[str] = Field(default=None, description="Optional .env file loaded before env expansion")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="Log format: 'json' or 'console'")
    log_file: Optional[str] = Field(default=None, description="Optional log file path")

    model_config = SettingsConfigDict(
        env_prefix="INPUTDECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level is a known value."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate format is a known value."""
        valid_formats = ["json", "console"]
        if v.lower() not in valid_formats:
            raise ValueError(f"log_format must be one of: {valid_formats}")
        return v.lower()
