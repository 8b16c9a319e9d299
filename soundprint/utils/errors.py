"""
Custom exceptions for the SoundPrint audio analysis engine.

This module defines a hierarchy of exceptions for handling various
error conditions throughout the engine. Every error that reaches the
task dispatcher is converted into a single error response message.
"""

from typing import Any, Optional


class AudioEngineError(Exception):
    """Base exception for all audio engine errors."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class InvalidInput(AudioEngineError):
    """Raised when a request is missing a required payload field."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field
        self.details = {"field": field} if field else None


class UnsupportedOperation(AudioEngineError):
    """Raised when a request carries an unknown type tag."""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation
        self.details = {"operation": operation}


class DecodeError(AudioEngineError):
    """Raised when a byte buffer is not a parseable audio container."""

    def __init__(self, message: str, byte_count: Optional[int] = None):
        super().__init__(message)
        self.byte_count = byte_count
        self.details = {"byte_count": byte_count}


class AudioTooLargeError(DecodeError):
    """Raised when an encoded buffer exceeds the configured size limit."""

    def __init__(
        self,
        message: str,
        byte_count: Optional[int] = None,
        max_bytes: Optional[int] = None,
    ):
        super().__init__(message, byte_count=byte_count)
        self.max_bytes = max_bytes
        self.details = {"byte_count": byte_count, "max_bytes": max_bytes}


class InternalError(AudioEngineError):
    """Raised for any unexpected failure inside a pipeline stage."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error
        self.details = {
            "original_error": type(original_error).__name__ if original_error else None,
        }


class AnalysisError(InternalError):
    """Raised when a single analyzer fails."""

    def __init__(
        self,
        message: str,
        analyzer_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, original_error=original_error)
        self.analyzer_name = analyzer_name
        self.details = {
            "analyzer_name": analyzer_name,
            "original_error": str(original_error) if original_error else None,
        }


class ConfigurationError(AudioEngineError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message)
        self.config_key = config_key
        self.details = {"config_key": config_key}


class RequestTimeout(AudioEngineError):
    """Raised when a worker does not answer before the request deadline."""

    def __init__(self, message: str, timeout: Optional[float] = None):
        super().__init__(message)
        self.timeout = timeout
        self.details = {"timeout": timeout}
