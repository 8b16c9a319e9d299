"""Shared fixtures for engine tests: synthetic signals and encoded audio."""

import io

import numpy as np
import pytest
import soundfile as sf

from soundprint.core.dispatcher import TaskDispatcher
from soundprint.core.engine import create_analysis_engine
from soundprint.core.models import SampleSequence

CD_RATE = 44100
TEST_RATE = 1000  # small rate keeps window arithmetic readable


# ---------------------------------------------------------------------------
# Signal helpers
# ---------------------------------------------------------------------------


def sine(freq, duration=1.0, sr=CD_RATE, amplitude=0.5):
    """Sine wave as float64 array."""
    t = np.arange(int(round(duration * sr))) / sr
    return amplitude * np.sin(2 * np.pi * freq * t)


def click_track(sr=TEST_RATE, duration=2.0, every=5, window_seconds=0.1):
    """
    Full-scale bursts in every ``every``-th beat window, silence elsewhere.

    With the default arguments the onsets land at 0.0, 0.5, 1.0, 1.5 s.
    """
    window = int(sr * window_seconds)
    y = np.zeros(int(sr * duration))
    for start in range(0, len(y), window * every):
        y[start:start + window] = 1.0
    return y


def encode(channels, sr=CD_RATE, fmt='WAV', subtype='PCM_16'):
    """Encode (channels, frames) or (frames,) float data into container bytes."""
    data = np.asarray(channels, dtype=np.float64)
    if data.ndim == 2:
        data = data.T  # soundfile expects (frames, channels)
    buffer = io.BytesIO()
    sf.write(buffer, data, sr, format=fmt, subtype=subtype)
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def tone_440():
    """One second of 440 Hz at 44.1 kHz."""
    return SampleSequence(sine(440.0), CD_RATE)


@pytest.fixture
def silence():
    """One second of digital silence at 44.1 kHz."""
    return SampleSequence(np.zeros(CD_RATE), CD_RATE)


@pytest.fixture
def clicks():
    """Regular click track at TEST_RATE: onsets every 0.5 s."""
    return SampleSequence(click_track(), TEST_RATE)


@pytest.fixture
def mono_wav_bytes():
    """1 s 440 Hz mono WAV."""
    return encode(sine(440.0))


@pytest.fixture
def stereo_wav_bytes():
    """1 s stereo WAV: 440 Hz left, 660 Hz right."""
    return encode(np.stack([sine(440.0), sine(660.0, amplitude=0.25)]))


@pytest.fixture
def silent_wav_bytes():
    """1 s of silence as a mono WAV."""
    return encode(np.zeros(CD_RATE))


@pytest.fixture
def make_sine():
    """Factory for sine arrays: make_sine(freq, duration=1.0, sr=44100, amplitude=0.5)."""
    return sine


@pytest.fixture
def make_clicks():
    """Factory for click tracks."""
    return click_track


@pytest.fixture
def encode_audio():
    """Factory for encoded container bytes."""
    return encode


@pytest.fixture
def engine():
    """Engine built from the default configuration."""
    return create_analysis_engine()


@pytest.fixture
def dispatcher(engine):
    """Dispatcher without a byte source."""
    return TaskDispatcher(engine)
