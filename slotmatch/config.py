"""
Configuration management using Pydantic models loaded from YAML.
"""

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.time_codec import time_to_minutes


class GridConfig(BaseModel):
    """Selection grid used by the ``select`` command."""
    granularity_minutes: int = 60
    start_hour: int = 8
    end_hour: int = 21

    @field_validator("granularity_minutes")
    @classmethod
    def validate_granularity(cls, value: int) -> int:
        """Ensure units tile an hour exactly."""
        if value <= 0 or 60 % value:
            raise ValueError(f"granularity_minutes must divide 60, got {value}")
        return value

    @field_validator("start_hour", "end_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 23."""
        if not 0 <= v <= 23:
            raise ValueError(f"Hour must be between 0 and 23, got {v}")
        return v

    @model_validator(mode="after")
    def validate_hours_order(self) -> "GridConfig":
        """Ensure the grid opens before it closes."""
        if self.end_hour <= self.start_hour:
            raise ValueError("end_hour must be later than start_hour")
        return self

    def contains(self, unit: str) -> bool:
        """Check whether a well-formed ``HH:MM`` unit lies inside the grid hours."""
        return self.start_hour * 60 <= time_to_minutes(unit) < self.end_hour * 60


class LoggingConfig(BaseModel):
    """Log output settings for the CLI."""
    level: str = "WARNING"

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        """Accept only standard logging level names."""
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level

    def as_int(self) -> int:
        return logging.getLevelName(self.level)


class AppConfig(BaseModel):
    """Application configuration."""
    store_file: Path = Path("slots.json")
    owner: Optional[str] = None
    timezone: str = "Europe/Berlin"
    grid: GridConfig = Field(default_factory=GridConfig)
    reject_batch_overlaps: bool = True
    enforce_store_exclusion: bool = True
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("owner")
    @classmethod
    def validate_owner(cls, value: Optional[str]) -> Optional[str]:
        """Treat blank owners as unset."""
        if value is not None and not value.strip():
            return None
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Relative ``store_file`` paths are resolved against the config file's
        directory.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)
        if not config.store_file.is_absolute():
            config.store_file = config_path.parent / config.store_file
        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of slotmatch/)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load the given config file, or defaults when no file is present."""
    path = config_path or get_default_config_path()
    if config_path is None and not path.exists():
        return AppConfig()
    return AppConfig.load_from_yaml(path)
