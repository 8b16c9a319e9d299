"""
Utility modules for configuration, logging, and error handling.
"""

from soundprint.utils.errors import (
    AudioEngineError,
    InvalidInput,
    UnsupportedOperation,
    DecodeError,
    AudioTooLargeError,
    InternalError,
    AnalysisError,
    ConfigurationError,
    RequestTimeout,
)
from soundprint.utils.logging import get_logger, setup_logging, JSONFormatter
from soundprint.utils.config import ConfigManager, load_config

__all__ = [
    "AudioEngineError",
    "InvalidInput",
    "UnsupportedOperation",
    "DecodeError",
    "AudioTooLargeError",
    "InternalError",
    "AnalysisError",
    "ConfigurationError",
    "RequestTimeout",
    "get_logger",
    "setup_logging",
    "JSONFormatter",
    "ConfigManager",
    "load_config",
]
