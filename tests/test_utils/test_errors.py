"""Tests for the exception hierarchy."""

import pytest

from soundprint.utils.errors import (
    AnalysisError,
    AudioEngineError,
    AudioTooLargeError,
    ConfigurationError,
    DecodeError,
    InternalError,
    InvalidInput,
    RequestTimeout,
    UnsupportedOperation,
)


@pytest.mark.parametrize("error", [
    InvalidInput("x"),
    UnsupportedOperation("x"),
    DecodeError("x"),
    AudioTooLargeError("x"),
    InternalError("x"),
    AnalysisError("x"),
    ConfigurationError("x"),
    RequestTimeout("x"),
])
def test_all_share_base(error):
    assert isinstance(error, AudioEngineError)
    assert error.message == "x"


def test_str_includes_details():
    error = DecodeError("Corrupt header", byte_count=12)
    assert str(error) == "Corrupt header (Details: {'byte_count': 12})"


def test_str_without_details():
    assert str(InvalidInput("No audio buffer provided")) == "No audio buffer provided"


def test_invalid_input_field():
    error = InvalidInput("missing", field="audioBytes")
    assert error.field == "audioBytes"
    assert error.details == {"field": "audioBytes"}


def test_too_large_is_decode_error():
    error = AudioTooLargeError("big", byte_count=10, max_bytes=5)
    assert isinstance(error, DecodeError)
    assert error.details == {"byte_count": 10, "max_bytes": 5}


def test_analysis_error_wraps_original():
    original = ZeroDivisionError("division by zero")
    error = AnalysisError("spectral failed", analyzer_name="spectral", original_error=original)
    assert isinstance(error, InternalError)
    assert error.original_error is original
    assert error.details["analyzer_name"] == "spectral"
