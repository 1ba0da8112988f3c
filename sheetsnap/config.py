"""
Configuration management for sheetsnap.

All options can be set through environment variables with the SHEETSNAP_
prefix, or through a .env file in the working directory.

Environment Variables:
    SHEETSNAP_SCALE: Supersampling factor for the canvas (default: 2.0)
    SHEETSNAP_DEFAULT_FONT_FAMILY: Font family used when a style names none (default: Calibri)
    SHEETSNAP_DEFAULT_FONT_SIZE: Font size in points used by default styles (default: 11)
    SHEETSNAP_FONT_DIRS: Comma-separated extra directories scanned for fonts
    SHEETSNAP_EMU_TO_PIXEL: Factor converting picture offsets to pixels (default: 0.0008)
    SHEETSNAP_RAW_VALUES: Show stored values without applying number formats (default: false)
    SHEETSNAP_MAX_CELLS: Largest rows x columns product accepted for rendering (default: 2000000)
    SHEETSNAP_MAX_WORKERS: Threads used when rendering every sheet of a workbook (default: 4)
    SHEETSNAP_LOG_LEVEL: Logging level (default: INFO)
    SHEETSNAP_SERVER_HOST: REST server bind host (default: 0.0.0.0)
    SHEETSNAP_SERVER_PORT: REST server bind port (default: 8000)
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Example .env file:
        SHEETSNAP_SCALE=3
        SHEETSNAP_FONT_DIRS=/opt/fonts,/srv/fonts
        SHEETSNAP_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="SHEETSNAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # Rendering Settings
    # =========================================================================

    scale: float = 2.0
    """Linear supersampling factor applied to the logical canvas (1.0-8.0)."""

    default_font_family: str = "Calibri"
    """Font family assigned to styles that do not name one."""

    default_font_size: float = 11.0
    """Font size in points assigned to styles that do not set one."""

    font_dirs: str = ""
    """Comma-separated directories searched for fonts before the system ones."""

    emu_to_pixel: float = 0.0008
    """Linear factor converting picture anchor offsets to logical pixels."""

    raw_values: bool = False
    """Show stored cell values as-is instead of applying their number formats."""

    # =========================================================================
    # Limits
    # =========================================================================

    max_cells: int = 2_000_000
    """Largest rows x columns product a sheet may have to be rendered."""

    max_workers: int = 4
    """Worker threads used when rendering all sheets of a workbook."""

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = "INFO"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    # =========================================================================
    # Server Settings
    # =========================================================================

    server_host: str = "0.0.0.0"
    """Host address for the REST server to bind to."""

    server_port: int = 8000
    """Port for the REST server to listen on."""

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(sorted(valid_levels))}"
            )
        return upper_v

    @field_validator("scale")
    @classmethod
    def validate_scale(cls, v: float) -> float:
        """Validate the supersampling factor."""
        if not 1.0 <= v <= 8.0:
            raise ValueError(f"scale must be between 1.0 and 8.0, got {v}")
        return v

    @field_validator("default_font_size")
    @classmethod
    def validate_font_size(cls, v: float) -> float:
        """Validate the default font size is positive."""
        if v <= 0:
            raise ValueError(f"default_font_size must be positive, got {v}")
        return v

    @field_validator("max_cells", "max_workers")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate limits are at least 1."""
        if v < 1:
            raise ValueError(f"value must be at least 1, got {v}")
        return v

    @field_validator("server_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is in valid range."""
        if not 1 <= v <= 65535:
            raise ValueError(f"server_port must be between 1 and 65535, got {v}")
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def font_dir_list(self) -> list[Path]:
        """Get the extra font directories as paths."""
        return [Path(part.strip()).expanduser() for part in self.font_dirs.split(",") if part.strip()]

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        level: int = getattr(logging, self.log_level)
        return level


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
