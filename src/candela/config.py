"""
Configuration management for the Candela pattern engine.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from .patterns.pattern_config import PatternDetectionConfig


class MetricsConfig(BaseModel):
    """Metric cache settings."""

    cache_capacity: int = Field(default=20, ge=1)


class PatternsConfig(BaseModel):
    """Where pattern thresholds come from."""

    config_path: Optional[str] = Field(
        default=None,
        description="JSON file with PatternDetectionConfig overrides"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO")
    file_path: Optional[str] = Field(default=None)
    max_size: str = Field(default="10MB")
    backup_count: int = Field(default=5, ge=0)
    console_output: bool = Field(default=True)

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper().strip()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Config(BaseModel):
    """Main configuration class."""

    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    patterns: PatternsConfig = Field(default_factory=PatternsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load_from_env(cls, env_file: Optional[str] = None) -> "Config":
        """Load configuration from environment variables."""
        if env_file:
            load_dotenv(env_file)
        else:
            # Try to load from .env file in current directory
            env_path = Path(".env")
            if env_path.exists():
                load_dotenv(env_path)

        metrics = MetricsConfig(
            cache_capacity=int(os.getenv("CANDELA_CACHE_CAPACITY", "20"))
        )

        patterns = PatternsConfig(
            config_path=os.getenv("CANDELA_PATTERN_CONFIG") or None
        )

        logging = LoggingConfig(
            level=os.getenv("LOG_LEVEL", "INFO"),
            file_path=os.getenv("LOG_FILE_PATH") or None,
            max_size=os.getenv("LOG_MAX_SIZE", "10MB"),
            backup_count=int(os.getenv("LOG_BACKUP_COUNT", "5")),
            console_output=os.getenv("LOG_CONSOLE", "true").lower() == "true"
        )

        return cls(
            metrics=metrics,
            patterns=patterns,
            logging=logging
        )

    def load_pattern_config(self) -> PatternDetectionConfig:
        """Pattern thresholds from the configured file, or the defaults."""
        if self.patterns.config_path:
            return PatternDetectionConfig.load_from_file(Path(self.patterns.config_path))
        return PatternDetectionConfig()
