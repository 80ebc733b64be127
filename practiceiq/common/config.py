"""
Centralized Configuration for PracticeIQ

Engine parameters, database and logging options as validated pydantic
models. Values come from defaults, optionally overridden by a YAML or JSON
file named by ``CONFIG_PATH``.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from practiceiq.common.exceptions import ConfigurationError
from practiceiq.common.logger import APP_LOGGER_NAME, app_logger, configure_logger
from practiceiq.config import Settings

logger = app_logger.getChild("config")


class DatabaseConfig(BaseModel):
    """Database configuration"""
    url: str = "sqlite:///./practiceiq.db"
    echo: bool = False
    pool_size: int = Field(default=5, ge=1)
    pool_pre_ping: bool = True


class LoggingConfig(BaseModel):
    """Logging configuration"""
    level: str = "INFO"
    use_json: bool = False
    file_path: Optional[str] = None

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level"""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class AdaptiveConfig(BaseModel):
    """
    Tunable parameters of the adaptive learning engine.

    The two response windows are deliberately independent: a short window
    drives the difficulty signal, a long one drives topic classification.
    """
    # Response windows
    recent_accuracy_window: int = Field(default=10, ge=1)
    pattern_window: int = Field(default=50, ge=1)

    # Difficulty progression
    min_attempts_to_adjust: int = Field(default=3, ge=0)
    correct_streak_to_advance: int = Field(default=3, ge=1)
    wrong_streak_to_decrease: int = Field(default=2, ge=1)
    mastery_threshold_medium: int = Field(default=70, ge=0, le=100)
    mastery_threshold_low: int = Field(default=55, ge=0, le=100)

    # Mastery estimate
    mastery_alpha: float = Field(default=0.3, gt=0, le=1)
    accuracy_weight: float = Field(default=0.6, ge=0, le=1)

    # SM-2 scheduling
    default_ease_factor: float = 2.5
    min_ease_factor: float = 1.3
    max_ease_factor: float = 3.0
    max_interval_days: int = Field(default=365, ge=1)

    # Pattern analysis
    min_topic_samples: int = Field(default=3, ge=1)
    weak_topic_threshold: float = Field(default=60, ge=0, le=100)
    strong_topic_threshold: float = Field(default=85, ge=0, le=100)
    slow_answer_seconds: float = Field(default=180, gt=0)

    @model_validator(mode='after')
    def validate_ranges(self) -> 'AdaptiveConfig':
        """Validate that paired bounds are ordered"""
        if not self.min_ease_factor <= self.default_ease_factor <= self.max_ease_factor:
            raise ValueError(
                f"Ease factors must satisfy min <= default <= max, got "
                f"{self.min_ease_factor}, {self.default_ease_factor}, {self.max_ease_factor}"
            )
        if self.weak_topic_threshold > self.strong_topic_threshold:
            raise ValueError("weak_topic_threshold must not exceed strong_topic_threshold")
        if self.mastery_threshold_low > self.mastery_threshold_medium:
            raise ValueError("mastery_threshold_low must not exceed mastery_threshold_medium")
        return self


class AppConfig(BaseModel):
    """Main application configuration"""
    app_name: str = "PracticeIQ"
    environment: str = "development"
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    adaptive: AdaptiveConfig = Field(default_factory=AdaptiveConfig)

    @field_validator('environment')
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment"""
        valid_envs = ['development', 'testing', 'staging', 'production']
        if v.lower() not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of {valid_envs}")
        return v.lower()

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


class ConfigLoader:
    """
    Builds an ``AppConfig`` from defaults overlaid with an optional YAML or
    JSON file (``config_path``, else the CONFIG_PATH variable). The result is
    cached on the loader.
    """

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or Settings().CONFIG_PATH
        self._config: Optional[AppConfig] = None

    def load(self) -> AppConfig:
        """
        Return the configuration, reading the file on first call.

        Returns:
            The validated configuration

        Raises:
            ConfigurationError: If the file cannot be parsed or fails validation
        """
        if self._config is not None:
            return self._config

        file_config: Dict[str, Any] = {}
        if self.config_path:
            file_config = self._load_from_file(self.config_path)

        try:
            self._config = AppConfig(**file_config)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}", e) from e
        return self._config

    def _load_from_file(self, path: str) -> Dict[str, Any]:
        """Read a YAML or JSON file into a dictionary."""
        path = Path(path)
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return {}

        suffix = path.suffix.lower()
        try:
            with open(path, 'r', encoding='utf-8') as f:
                if suffix in ['.yaml', '.yml']:
                    data = yaml.safe_load(f)
                elif suffix == '.json':
                    data = json.load(f)
                else:
                    raise ConfigurationError(f"Unsupported config file format: {path.suffix}")
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Could not parse {path}: {e}", e) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        logger.info(f"Loaded configuration from {path}")
        return data


_config_loader: Optional[ConfigLoader] = None


def get_config() -> AppConfig:
    """Get the loaded configuration, loading it on first use."""
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader.load()


def reload_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Reload the configuration.

    Args:
        config_path: Path to config file

    Returns:
        Reloaded configuration
    """
    global _config_loader
    _config_loader = ConfigLoader(config_path)
    return _config_loader.load()


def configure_logging(logging_config: LoggingConfig) -> None:
    """Apply a logging section to the application logger."""
    configure_logger(
        name=APP_LOGGER_NAME,
        level=logging_config.level,
        use_json=logging_config.use_json,
        log_file=logging_config.file_path
    )
