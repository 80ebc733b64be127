"""
Common Components for PracticeIQ

This package contains infrastructure shared across the engine:

1. Logging - Centralized logging configuration
2. Error Handling - The exception taxonomy
3. Configuration - Validated engine, database and logging settings
4. Performance - The adaptive learning components (``practiceiq.common.performance``)
"""

# Initialize logging
from practiceiq.common.logger import app_logger

from practiceiq.common.exceptions import (
    BaseError, NotFoundError, InvalidInputError, InternalError, DatabaseError,
    ConcurrentUpdateError, SubmissionFailedError, ConfigurationError
)

from practiceiq.common.config import (
    AppConfig, AdaptiveConfig, DatabaseConfig, LoggingConfig,
    ConfigLoader, configure_logging, get_config, reload_config
)

__all__ = [
    'app_logger',
    'BaseError', 'NotFoundError', 'InvalidInputError', 'InternalError', 'DatabaseError',
    'ConcurrentUpdateError', 'SubmissionFailedError', 'ConfigurationError',
    'AppConfig', 'AdaptiveConfig', 'DatabaseConfig', 'LoggingConfig',
    'ConfigLoader', 'configure_logging', 'get_config', 'reload_config',
]
